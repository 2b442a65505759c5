"""Shared fixtures: fake /proc and sysfs trees, a SQLite pgcenter stand-in."""
from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from netusage.models import COUNTER_FIELDS, Duplex, InterfaceSample

NETDEV_HEADER = (
    "Inter-|   Receive                                                |  Transmit\n"
    " face |bytes    packets errs drop fifo frame compressed multicast|"
    "bytes    packets errs drop fifo colls carrier compressed\n"
)

NETDEV_CONTENT = NETDEV_HEADER + (
    "    lo:   5000      50    0    0    0     0          0         0     5000      50    0    0    0     0       0          0\n"
    "  eth0: 200000    2000    1    2    3     4          5         6   100000    1000    7    8    9    10      11          12\n"
    "docker0:   700       7    0    0    0     0          0         0      700       7    0    0    0     0       0          0\n"
    "veth1a2b3c:  10      1    0    0    0     0          0         0       10       1    0    0    0     0       0          0\n"
    " wlan0:      0       0    0    0    0     0          0         0        0       0    0    0    0     0       0          0\n"
)


def write_netdev(path: Path, body: str) -> Path:
    path.write_text(NETDEV_HEADER + body, encoding="utf-8")
    return path


@pytest.fixture
def proc_dir(tmp_path: Path) -> Path:
    """A fake /proc with net/dev and uptime files."""
    (tmp_path / "net").mkdir()
    (tmp_path / "net" / "dev").write_text(NETDEV_CONTENT, encoding="utf-8")
    (tmp_path / "uptime").write_text("12345.67 45678.90\n", encoding="utf-8")
    return tmp_path


def add_link(sysfs: Path, name: str, speed: str, duplex: str) -> None:
    iface = sysfs / name
    iface.mkdir(parents=True, exist_ok=True)
    (iface / "speed").write_text(speed + "\n")
    (iface / "duplex").write_text(duplex + "\n")


@pytest.fixture
def sysfs_dir(tmp_path: Path) -> Path:
    """A fake /sys/class/net where eth0 is a 1 Gbit/s full duplex link."""
    sysfs = tmp_path / "sys" / "class" / "net"
    add_link(sysfs, "eth0", "1000", "full")
    add_link(sysfs, "wlan0", "-1", "unknown")
    return sysfs


# ══════════════════════════════════════════════════════════════════
# Remote source: an in-memory SQLite stand-in for the pgcenter schema
# ══════════════════════════════════════════════════════════════════

SQLITE_UPTIME_QUERY = "SELECT seconds_total FROM sys_proc_uptime"
SQLITE_NETDEV_QUERY = (
    "SELECT substr(iface, 1, length(iface) - 1), * FROM sys_proc_netdev ORDER BY iface"
)
SQLITE_LINK_SETTINGS_QUERY = (
    "SELECT speed, duplex FROM netdev_link_settings WHERE iface = :ifname"
)
SQLITE_SCHEMA_QUERY = (
    "SELECT count(*) FROM sqlite_master WHERE name = 'sys_proc_netdev'"
)


def insert_netdev(conn, iface: str, *counters: int) -> None:
    values = dict(zip(COUNTER_FIELDS, counters))
    columns = ", ".join(COUNTER_FIELDS)
    params = ", ".join(f":{c}" for c in COUNTER_FIELDS)
    conn.execute(
        text(f"INSERT INTO sys_proc_netdev (iface, {columns}) VALUES (:iface, {params})"),
        {"iface": iface, **values},
    )


@pytest.fixture
def pg_engine():
    """SQLite engine holding tables shaped like the pgcenter views."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    columns = ", ".join(f"{c} BIGINT" for c in COUNTER_FIELDS)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE sys_proc_uptime (seconds_total REAL)"))
        conn.execute(text(f"CREATE TABLE sys_proc_netdev (iface TEXT, {columns})"))
        conn.execute(
            text("CREATE TABLE netdev_link_settings (iface TEXT, speed BIGINT, duplex BIGINT)")
        )
        conn.execute(text("INSERT INTO sys_proc_uptime VALUES (500.5)"))
        insert_netdev(conn, "eth1:", 4000, 40, 0, 1, 0, 0, 0, 0, 2000, 20, 0, 0, 0, 0, 0, 0)
        insert_netdev(conn, "eth0:", 1000, 10, 1, 0, 0, 0, 0, 0, 500, 5, 0, 2, 3, 4, 5, 0)
        insert_netdev(conn, "virbr0:", 10, 1, 0, 0, 0, 0, 0, 0, 10, 1, 0, 0, 0, 0, 0, 0)
        conn.execute(
            text(
                "INSERT INTO netdev_link_settings VALUES "
                "('eth0', 1000000000, 1), ('eth1', 100000000, 0)"
            )
        )
    yield engine
    engine.dispose()


def sample(name: str = "eth0", **fields) -> InterfaceSample:
    """Shortcut for building raw samples in tests."""
    fields.setdefault("duplex", Duplex.UNKNOWN)
    return InterfaceSample(name=name, **fields)
