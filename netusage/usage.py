"""
Interface usage: turn two snapshots into per-second rates.

For each interface of the current snapshot we compute:

- byte, packet, error and collision rates, and the saturation rate
- average received/transmitted packet size
- receive, transmit and overall utilization of the link, in percent

Overall utilization depends on duplex: a full duplex link has separate
capacity per direction, so the busier direction counts; a half duplex
link shares one channel, so both directions add up.
"""

from __future__ import annotations

import logging
from typing import Dict

from netusage.exceptions import SnapshotShapeMismatch
from netusage.models import Duplex, InterfaceSample, Snapshot

logger = logging.getLogger(__name__)

RATE_FIELDS = (
    "recv_bytes",
    "sent_bytes",
    "recv_packets",
    "sent_packets",
    "recv_errs",
    "sent_errs",
    "sent_colls",
    "saturation",
)

# 8 bits per byte, 100 for percent
BYTES_TO_PERCENT_BITS = 800


def rate(prev: float, curr: float, itv: float, ticks: float) -> float:
    """
    Per-second change of a counter over `itv` uptime units.

    Zero when the interval is not positive or the counter went backwards
    (wrapped or reset by a device restart).
    """
    if itv <= 0 or curr <= prev:
        return 0.0
    return (curr - prev) / itv * ticks


def utilization(recv_rate: float, sent_rate: float, speed_bps: int, duplex: Duplex):
    """Return (recv_util, sent_util, overall) in percent of link speed."""
    if speed_bps <= 0:
        return 0.0, 0.0, 0.0

    recv_util = min(recv_rate * BYTES_TO_PERCENT_BITS / speed_bps, 100.0)
    sent_util = min(sent_rate * BYTES_TO_PERCENT_BITS / speed_bps, 100.0)

    if duplex is Duplex.FULL:
        overall = max(recv_util, sent_util)
    elif duplex is Duplex.HALF:
        overall = min((recv_rate + sent_rate) * BYTES_TO_PERCENT_BITS / speed_bps, 100.0)
    else:
        overall = 0.0
    return recv_util, sent_util, overall


def interface_usage(prev: InterfaceSample, curr: InterfaceSample, ticks: float) -> InterfaceSample:
    """Usage of one interface between two raw samples."""
    if curr.recv_packets + curr.sent_packets == 0:
        return InterfaceSample(name=curr.name)

    itv = curr.uptime - prev.uptime
    rates = {
        field: rate(getattr(prev, field), getattr(curr, field), itv, ticks)
        for field in RATE_FIELDS
    }

    recv_average = rates["recv_bytes"] / rates["recv_packets"] if rates["recv_packets"] > 0 else 0.0
    sent_average = rates["sent_bytes"] / rates["sent_packets"] if rates["sent_packets"] > 0 else 0.0

    recv_util, sent_util, overall = utilization(
        rates["recv_bytes"], rates["sent_bytes"], curr.speed_bps, curr.duplex
    )

    return InterfaceSample(
        name=curr.name,
        speed_bps=curr.speed_bps,
        duplex=curr.duplex,
        packets=curr.recv_packets + curr.sent_packets,
        recv_average=recv_average,
        sent_average=sent_average,
        recv_util=recv_util,
        sent_util=sent_util,
        utilization=overall,
        **rates,
    )


def count_usage(prev: Snapshot, curr: Snapshot, ticks: float = 1.0) -> Snapshot:
    """
    Compute usage between two snapshots of the same source.

    Interfaces are matched by name and the result follows the order of
    `curr`. An interface missing from `prev` has just appeared, so its
    row is left zeroed. Snapshots of different sizes cannot be matched
    and raise SnapshotShapeMismatch.
    """
    if len(prev) != len(curr):
        raise SnapshotShapeMismatch(len(prev), len(curr))

    previous: Dict[str, InterfaceSample] = {s.name: s for s in prev}

    usage = []
    for sample in curr:
        before = previous.get(sample.name)
        if before is None:
            logger.debug("Interface %s is new, no usage yet", sample.name)
            usage.append(InterfaceSample(name=sample.name))
            continue
        usage.append(interface_usage(before, sample, ticks))
    return tuple(usage)
