"""
Host-level lookups used by the local source.

- read_uptime:        seconds since boot, from /proc/uptime
- get_link_settings:  negotiated speed and duplex, from /sys/class/net
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

from netusage.exceptions import MalformedRecord, SourceUnavailable
from netusage.models import Duplex

logger = logging.getLogger(__name__)


def read_uptime(path: str = "/proc/uptime") -> float:
    """Return the host uptime in seconds (first field of /proc/uptime)."""
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except OSError as exc:
        raise SourceUnavailable(f"cannot read {path}: {exc}") from exc

    fields = content.split()
    if not fields:
        raise MalformedRecord(path, "empty uptime file")
    try:
        return float(fields[0])
    except ValueError as exc:
        raise MalformedRecord(path, f"bad uptime value {fields[0]!r}") from exc


def get_link_settings(
    ifname: str,
    sysfs_root: str = "/sys/class/net",
) -> Tuple[int, Duplex]:
    """
    Return (speed in bits/second, duplex) of an interface.

    sysfs reports speed in Mbit/s and -1 (or a read error) when the link
    is down or the driver does not know. Any failure gives (0, UNKNOWN).
    """
    base = Path(sysfs_root) / ifname
    try:
        speed_mbps = int((base / "speed").read_text().strip())
        duplex = Duplex.from_name((base / "duplex").read_text())
    except (OSError, ValueError) as exc:
        logger.debug("No link settings for %s: %s", ifname, exc)
        return 0, Duplex.UNKNOWN

    if speed_mbps <= 0:
        return 0, duplex
    return speed_mbps * 1_000_000, duplex
