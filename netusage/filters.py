"""
Interface name filter.

Interfaces managed by docker, libvirt or veth pairs are skipped when a
snapshot is read.
"""

import re
from typing import Iterable

VIRTUAL_INTERFACE_PATTERNS = ("docker", "virbr", "veth")


class InterfaceFilter:
    """Matches interface names containing any of the given substrings."""

    def __init__(self, patterns: Iterable[str] = VIRTUAL_INTERFACE_PATTERNS):
        self.patterns = tuple(patterns)
        self._regex = re.compile("|".join(re.escape(p) for p in self.patterns))

    def excludes(self, name: str) -> bool:
        """Return True when `name` must be left out of a snapshot."""
        return bool(self.patterns) and self._regex.search(name) is not None
