from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .row_data import Row

__all__ = [
    "JoinedRow",
]


@dataclass(frozen=True)
class JoinedRow:
    """Pair emitted by the dual-head window join.

    Name lookups resolve against the primary row first; the secondary row only
    contributes names the primary does not carry. Derived columns (for example
    the composite result score) are looked up last.
    """
    primary: Row
    secondary: Row | None = None
    derived: dict[str, str] = field(default_factory=dict)

    @property
    def instant(self) -> datetime | None:
        return self.primary.instant

    def get(self, name: str, default: str | None = None) -> str | None:
        if self.primary.has(name):
            return self.primary.get(name)
        if self.secondary is not None and self.secondary.has(name):
            return self.secondary.get(name)
        for key, value in self.derived.items():
            if key.casefold() == name.casefold():
                return value
        return default
