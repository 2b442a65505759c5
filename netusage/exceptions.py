"""Errors raised while reading or differencing interface counters."""


class NetdevError(Exception):
    """Base class for interface statistics errors."""


class SourceUnavailable(NetdevError):
    """Raised when a counter file cannot be opened or a query fails."""


class MalformedRecord(NetdevError):
    """Raised when a line or row does not have the expected shape."""

    def __init__(self, source: str, detail: str):
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.detail = detail


class SnapshotShapeMismatch(NetdevError):
    """Raised when two snapshots hold a different number of interfaces."""

    def __init__(self, previous: int, current: int):
        super().__init__(
            f"cannot diff snapshots of {previous} and {current} interfaces"
        )
        self.previous = previous
        self.current = current
