"""
Interface counter sources.

We support two sources behind one `acquire()` contract:

1. Local: parse /proc/net/dev of the host we run on.
2. Remote: query the pgcenter schema of a Postgres instance running on
   the monitored host.

Both return a Snapshot: an ordered tuple of raw InterfaceSample objects
with saturation pre-computed and uptime and link settings filled in.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from netusage.config import Settings
from netusage.database import create_db_engine, is_local_url, schema_exists
from netusage.exceptions import MalformedRecord, SourceUnavailable
from netusage.filters import InterfaceFilter
from netusage.models import (
    COUNTER_FIELDS,
    Duplex,
    InterfaceSample,
    Snapshot,
    total_saturation,
)
from netusage.system import get_link_settings, read_uptime

logger = logging.getLogger(__name__)

NETDEV_HEADER_LINES = 2


class NetdevSource(ABC):
    """
    A place interface counters are read from.

    `ticks` is how many uptime units make one second; pass it to
    `netusage.usage.count_usage` along with two snapshots of this source.
    """

    ticks: float = 1.0

    @abstractmethod
    def acquire(self) -> Snapshot:
        """Read one snapshot, raising NetdevError on failure."""


# ---------------------------------------------------------------------------
# Local source: /proc/net/dev
# ---------------------------------------------------------------------------


def parse_netdev_line(line: str, source: str, lineno: int) -> Tuple[str, Dict[str, float]]:
    """
    Parse one /proc/net/dev record into (name, counters).

    The record is `name:` followed by 8 receive and 8 transmit counters.
    The kernel may glue a large first counter to the colon, so we split on
    the colon rather than on whitespace.
    """
    name, sep, rest = line.partition(":")
    name = name.strip()
    values = rest.split()
    if not sep or not name or len(values) != len(COUNTER_FIELDS):
        raise MalformedRecord(
            source,
            f"line {lineno}: expected 'name:' and {len(COUNTER_FIELDS)} counters",
        )
    try:
        numbers = [int(v) for v in values]
    except ValueError as exc:
        raise MalformedRecord(source, f"line {lineno}: non-integer counter") from exc
    if any(n < 0 for n in numbers):
        raise MalformedRecord(source, f"line {lineno}: negative counter")
    return name, dict(zip(COUNTER_FIELDS, map(float, numbers)))


class LocalNetdevSource(NetdevSource):
    """Reads counters of the host we run on."""

    def __init__(
        self,
        netdev_path: str = "/proc/net/dev",
        uptime_path: str = "/proc/uptime",
        sysfs_root: str = "/sys/class/net",
        iface_filter: Optional[InterfaceFilter] = None,
    ):
        self.netdev_path = netdev_path
        self.uptime_path = uptime_path
        self.sysfs_root = sysfs_root
        self.iface_filter = iface_filter or InterfaceFilter()

    def acquire(self) -> Snapshot:
        try:
            # Interface names are raw bytes; undecodable ones are replaced.
            with open(self.netdev_path, encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except OSError as exc:
            raise SourceUnavailable(f"cannot read {self.netdev_path}: {exc}") from exc

        uptime = read_uptime(self.uptime_path)

        samples: List[InterfaceSample] = []
        for lineno, line in enumerate(
            lines[NETDEV_HEADER_LINES:], start=NETDEV_HEADER_LINES + 1
        ):
            if not line.strip():
                continue
            name, counters = parse_netdev_line(line, self.netdev_path, lineno)
            if self.iface_filter.excludes(name):
                continue

            # Link settings are polled on every read; zeros if unavailable.
            speed, duplex = get_link_settings(name, self.sysfs_root)
            samples.append(
                InterfaceSample(
                    name=name,
                    speed_bps=speed,
                    duplex=duplex,
                    saturation=total_saturation(counters),
                    uptime=uptime,
                    **counters,
                )
            )

        logger.debug("Read %d interfaces from %s", len(samples), self.netdev_path)
        return tuple(samples)


# ---------------------------------------------------------------------------
# Remote source: pgcenter schema over SQL
# ---------------------------------------------------------------------------


def _row_number(value, query: str, column: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedRecord(query, f"bad {column} value {value!r}") from exc


class RemoteNetdevSource(NetdevSource):
    """
    Reads counters of a remote host through its Postgres instance.

    `has_schema` is the result of a prior schema check; without the
    schema there is nothing to report and acquire() returns ().
    """

    def __init__(
        self,
        engine: Engine,
        has_schema: bool,
        uptime_query: str,
        netdev_query: str,
        link_settings_query: str,
        ticks: float = 1.0,
        iface_filter: Optional[InterfaceFilter] = None,
    ):
        self.engine = engine
        self.has_schema = has_schema
        self.uptime_query = uptime_query
        self.netdev_query = netdev_query
        self.link_settings_query = link_settings_query
        self.ticks = ticks
        self.iface_filter = iface_filter or InterfaceFilter()

    def acquire(self) -> Snapshot:
        if not self.has_schema:
            logger.debug("Stats schema is not installed, nothing to read")
            return ()

        try:
            with self.engine.connect() as conn:
                samples = self._read(conn)
        except SQLAlchemyError as exc:
            raise SourceUnavailable(f"remote netdev query failed: {exc}") from exc

        logger.debug("Read %d interfaces from %s", len(samples), self.engine.url)
        return samples

    def _read(self, conn: Connection) -> Snapshot:
        row = conn.execute(text(self.uptime_query)).first()
        if row is None or len(row) != 1:
            raise MalformedRecord(self.uptime_query, "expected a single uptime value")
        uptime = _row_number(row[0], self.uptime_query, "uptime")

        samples: List[InterfaceSample] = []
        for row in conn.execute(text(self.netdev_query)).all():
            name, counters = self._parse_row(row)
            if self.iface_filter.excludes(name):
                continue

            speed, duplex = self._link_settings(conn, name)
            samples.append(
                InterfaceSample(
                    name=name,
                    speed_bps=speed,
                    duplex=duplex,
                    saturation=total_saturation(counters),
                    uptime=uptime,
                    **counters,
                )
            )
        return tuple(samples)

    def _parse_row(self, row: Sequence) -> Tuple[str, Dict[str, float]]:
        # name, raw iface name, then the counters
        if len(row) != len(COUNTER_FIELDS) + 2:
            raise MalformedRecord(
                self.netdev_query,
                f"expected {len(COUNTER_FIELDS) + 2} columns, got {len(row)}",
            )
        counters = {
            field: _row_number(value, self.netdev_query, field)
            for field, value in zip(COUNTER_FIELDS, row[2:])
        }
        for field, value in counters.items():
            if not math.isfinite(value) or value < 0:
                raise MalformedRecord(self.netdev_query, f"bad {field} value {value!r}")
        return str(row[0]), counters

    def _link_settings(self, conn: Connection, name: str) -> Tuple[int, Duplex]:
        row = conn.execute(text(self.link_settings_query), {"ifname": name}).first()
        if row is None or len(row) != 2:
            raise MalformedRecord(
                self.link_settings_query, f"no speed/duplex row for {name}"
            )
        speed, duplex = row
        if speed is None:
            return 0, Duplex.from_code(duplex)
        speed = int(_row_number(speed, self.link_settings_query, "speed"))
        return max(speed, 0), Duplex.from_code(duplex)


# ---------------------------------------------------------------------------
# Public API function used by the collector
# ---------------------------------------------------------------------------


def make_source(settings: Settings) -> NetdevSource:
    """
    Main entry point: returns the source matching the configured target.

    Decision logic:
    - No DATABASE_URL, or one pointing at this host: read /proc locally.
    - Else: connect, check for the stats schema once, read remotely.
    """
    if is_local_url(settings.database_url):
        logger.info("Reading interface stats locally from %s", settings.proc_netdev_path)
        return LocalNetdevSource(
            netdev_path=settings.proc_netdev_path,
            uptime_path=settings.proc_uptime_path,
            sysfs_root=settings.sysfs_net_path,
        )

    engine = create_db_engine(settings.database_url)
    has_schema = schema_exists(engine, settings.remote_schema_query)
    if not has_schema:
        logger.warning("Stats schema not found on %s, no interfaces to report", engine.url)
    else:
        logger.info("Reading interface stats remotely from %s", engine.url)
    return RemoteNetdevSource(
        engine=engine,
        has_schema=has_schema,
        uptime_query=settings.remote_uptime_query,
        netdev_query=settings.remote_netdev_query,
        link_settings_query=settings.remote_link_settings_query,
        ticks=settings.remote_uptime_ticks,
    )
