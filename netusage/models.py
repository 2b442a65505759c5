"""
Pydantic models for interface counters.

Right now we only need a single entity:

- InterfaceSample: one interface's counters at one point in time

Raw samples (from a source) and usage samples (from `netusage.usage`)
share this type; usage samples hold per-second rates in the counter
fields and fill in the derived fields.
"""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict


class Duplex(str, Enum):
    """Duplex mode of a link."""

    FULL = "full"
    HALF = "half"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code) -> "Duplex":
        """Map the numeric duplex code (0=half, 1=full) reported by a host."""
        if code == 1:
            return cls.FULL
        if code == 0:
            return cls.HALF
        return cls.UNKNOWN

    @classmethod
    def from_name(cls, name: str) -> "Duplex":
        """Map the textual duplex ("full", "half", ...) found in sysfs."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            return cls.UNKNOWN


# Cumulative counters in /proc/net/dev column order.
RECV_FIELDS = (
    "recv_bytes",
    "recv_packets",
    "recv_errs",
    "recv_drop",
    "recv_fifo",
    "recv_frame",
    "recv_compressed",
    "recv_multicast",
)
SENT_FIELDS = (
    "sent_bytes",
    "sent_packets",
    "sent_errs",
    "sent_drop",
    "sent_fifo",
    "sent_colls",
    "sent_carrier",
    "sent_compressed",
)
COUNTER_FIELDS = RECV_FIELDS + SENT_FIELDS


class InterfaceSample(BaseModel):
    """
    Represents one interface in a snapshot.

    Typical usage:
    - a source reads cumulative counters into InterfaceSample objects
    - the usage engine turns two of them into per-second rates
    """

    model_config = ConfigDict(frozen=True)

    name: str

    # Link properties, best-effort
    speed_bps: int = 0
    duplex: Duplex = Duplex.UNKNOWN

    # Receive
    recv_bytes: float = 0.0
    recv_packets: float = 0.0
    recv_errs: float = 0.0
    recv_drop: float = 0.0
    recv_fifo: float = 0.0
    recv_frame: float = 0.0
    recv_compressed: float = 0.0
    recv_multicast: float = 0.0

    # Transmit
    sent_bytes: float = 0.0
    sent_packets: float = 0.0
    sent_errs: float = 0.0
    sent_drop: float = 0.0
    sent_fifo: float = 0.0
    sent_colls: float = 0.0
    sent_carrier: float = 0.0
    sent_compressed: float = 0.0

    # Derived
    packets: float = 0.0        # received + transmitted packets, not a rate
    recv_average: float = 0.0   # average received packet size
    sent_average: float = 0.0   # average transmitted packet size
    saturation: float = 0.0     # errors, drops, collisions and carrier losses
    recv_util: float = 0.0      # % of link speed used for receiving
    sent_util: float = 0.0      # % of link speed used for transmitting
    utilization: float = 0.0    # % of link speed used overall

    # Host uptime when captured, in the source's time unit
    uptime: float = 0.0


# One ordered, immutable capture of all monitored interfaces.
Snapshot = Tuple[InterfaceSample, ...]


def total_saturation(counters: dict) -> float:
    """Sum the error and drop counters that make up saturation."""
    return (
        counters["recv_errs"]
        + counters["recv_drop"]
        + counters["sent_drop"]
        + counters["sent_fifo"]
        + counters["sent_colls"]
        + counters["sent_carrier"]
    )
