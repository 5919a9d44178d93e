# -*- coding: utf-8 -*-
"""
Comparable version value for Neo4j servers and importer releases.

Neo4j reports versions such as "3.5.35", "4.1.3" or "5.15.0-aura". Only the
numeric major.minor.patch prefix matters for the importer's behavior, so
ServerVersion keeps those three parts and orders them numerically.

Example:
    >>> ServerVersion.try_parse("4.1.3") >= ServerVersion(4, 1, 3)
    True
    >>> ServerVersion.try_parse("3.5.0").major_minor
    ServerVersion(major=3, minor=5, patch=0)
"""
import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Optional

_VERSION_PATTERN = re.compile(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


@total_ordering
@dataclass(frozen=True)
class ServerVersion:
    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def try_parse(cls, text: Optional[str]) -> Optional["ServerVersion"]:
        """Parse the leading numeric part of a version string, None if absent."""
        if not text:
            return None
        match = _VERSION_PATTERN.match(text)
        if match is None:
            return None
        major, minor, patch = match.groups()
        return cls(int(major), int(minor or 0), int(patch or 0))

    @property
    def major_minor(self) -> "ServerVersion":
        return ServerVersion(self.major, self.minor)

    def _key(self):
        return (self.major, self.minor, self.patch)

    def __lt__(self, other):
        if not isinstance(other, ServerVersion):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"
