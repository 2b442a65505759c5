"""
Collector process.

This module:
- picks the local or remote counter source from the settings
- polls it every POLL_INTERVAL_SECONDS
- diffs each snapshot against the previous one and logs interface usage

Run it as:

    python -m netusage.collector

or, against a remote host with the pgcenter schema installed:

    DATABASE_URL=postgresql://monitor@db.example.com/postgres python -m netusage.collector
"""

import logging
import time
from typing import Optional

from netusage.config import Settings, settings
from netusage.exceptions import NetdevError, SnapshotShapeMismatch
from netusage.models import InterfaceSample, Snapshot
from netusage.sources import NetdevSource, make_source
from netusage.usage import count_usage

logger = logging.getLogger(__name__)


class Collector:
    """
    Keeps the previous snapshot of a source and diffs new ones against it.
    """

    def __init__(self, source: NetdevSource):
        self.source = source
        self.previous: Optional[Snapshot] = None

    def poll(self) -> Optional[Snapshot]:
        """
        Read one snapshot and return usage since the previous poll.

        Returns None on the first poll, and after the set of interfaces
        changed size, since there is nothing to diff against yet.
        Source errors propagate; the previous snapshot is kept for the
        next attempt.
        """
        current = self.source.acquire()
        previous, self.previous = self.previous, current
        if previous is None:
            return None

        try:
            return count_usage(previous, current, self.source.ticks)
        except SnapshotShapeMismatch as exc:
            logger.warning("%s, starting over from this snapshot", exc)
            return None


def format_usage(sample: InterfaceSample) -> str:
    """One line of usage figures for an interface."""
    return (
        f"{sample.name:<12} "
        f"rx {sample.recv_bytes / 1024:10.2f} KiB/s {sample.recv_packets:8.1f} pkt/s "
        f"tx {sample.sent_bytes / 1024:10.2f} KiB/s {sample.sent_packets:8.1f} pkt/s "
        f"avg {sample.recv_average:7.1f}/{sample.sent_average:7.1f} B "
        f"sat {sample.saturation:6.1f}/s "
        f"util {sample.utilization:6.2f}% "
        f"(rx {sample.recv_util:.2f}% tx {sample.sent_util:.2f}%)"
    )


def log_usage(usage: Snapshot) -> None:
    """Log active interfaces; inactive ones have no packets at all."""
    for sample in usage:
        if sample.packets > 0:
            logger.info(format_usage(sample))


def main(config: Settings = settings) -> None:
    """
    Main collector loop: poll, diff, log, sleep, repeat.

    Poll failures are logged and retried on the next cycle. Failing to
    set up the source (e.g. the remote database is down at startup) is
    logged and exits with status 1.
    """
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("Starting interface usage collector")
    logger.info("Poll interval: %s seconds", config.poll_interval_seconds)

    try:
        source = make_source(config)
    except NetdevError as exc:
        logger.error("Cannot set up interface stats source: %s", exc)
        raise SystemExit(1) from exc

    collector = Collector(source)
    while True:
        try:
            usage = collector.poll()
        except NetdevError as exc:
            logger.error("Poll failed: %s", exc)
        else:
            if usage is not None:
                log_usage(usage)
        time.sleep(config.poll_interval_seconds)


if __name__ == "__main__":
    main()
