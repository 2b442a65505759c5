"""
Configuration for the network interface usage collector.

We use pydantic-settings (Pydantic v2) to load settings from:
- environment variables
- a local `.env` file in the project root
"""

import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings.

    Environment variables (with defaults):

    - PROC_NETDEV_PATH:           Counter file read in local mode (/proc/net/dev)
    - PROC_UPTIME_PATH:           Host uptime file read in local mode (/proc/uptime)
    - SYSFS_NET_PATH:             Where link speed/duplex are looked up (/sys/class/net)
    - DATABASE_URL:               SQLAlchemy URL of the monitored Postgres; unset or
                                  pointing at this host means local mode
    - REMOTE_UPTIME_QUERY:        Scalar query returning remote host uptime
    - REMOTE_UPTIME_TICKS:        Units of REMOTE_UPTIME_QUERY per second (default: 1)
    - REMOTE_NETDEV_QUERY:        Query returning name, raw iface and 16 counters
    - REMOTE_LINK_SETTINGS_QUERY: Query returning (speed_bps, duplex) for :ifname
    - REMOTE_SCHEMA_QUERY:        Query returning true when the stats schema exists
    - POLL_INTERVAL_SECONDS:      How often to poll (in seconds, default: 1)
    - LOG_LEVEL:                  Logging level name (default: INFO)
    """

    proc_netdev_path: str = "/proc/net/dev"
    proc_uptime_path: str = "/proc/uptime"
    sysfs_net_path: str = "/sys/class/net"

    database_url: Optional[str] = None

    remote_uptime_query: str = "SELECT seconds_total FROM pgcenter.sys_proc_uptime"
    remote_uptime_ticks: float = 1.0
    remote_netdev_query: str = (
        "SELECT left(iface, -1), * FROM pgcenter.sys_proc_netdev ORDER BY iface"
    )
    remote_link_settings_query: str = (
        "SELECT speed::bigint * 1000000, duplex::bigint "
        "FROM pgcenter.get_netdev_link_settings(:ifname)"
    )
    remote_schema_query: str = (
        "SELECT EXISTS (SELECT 1 FROM information_schema.schemata "
        "WHERE schema_name = 'pgcenter')"
    )

    poll_interval_seconds: float = 1.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v):
        """
        Accept LOG_LEVEL in any case ("debug", "Info", ...) and reject
        names the logging module does not know.
        """
        if isinstance(v, str):
            v = v.strip().upper()
            if not isinstance(logging.getLevelName(v), int):
                raise ValueError(f"unknown log level: {v}")
        return v

    @field_validator("remote_uptime_ticks")
    @classmethod
    def check_ticks(cls, v):
        if v <= 0:
            raise ValueError("REMOTE_UPTIME_TICKS must be positive")
        return v


# Single global settings object
settings = Settings()
