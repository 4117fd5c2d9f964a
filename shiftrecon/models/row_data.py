from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

"""Row model for the reconciliation tables.

A Row stores its cells positionally (aligned 1:1 with the owning table's
headers) and keeps a derived case-insensitive name view. When a header name
repeats, only the first occurrence is reachable by name; later occurrences are
reachable by position only.
"""

__all__ = [
    "Row",
]


@dataclass(eq=False)
class Row:
    """One data line of a delimited source.

    ``instant`` is the only mutable field: it is filled in place by the
    timestamp stage and treated as read-only afterwards.
    """
    line_number: int  # 0-based line index in the source text
    values: tuple[str, ...]
    by_name: dict[str, str] = field(default_factory=dict, repr=False)  # casefolded header -> value
    instant: datetime | None = None

    @classmethod
    def from_values(cls, headers: Sequence[str], values: Sequence[str], line_number: int = -1) -> Row:
        if len(headers) != len(values):
            raise ValueError(
                f"row has {len(values)} values, expected {len(headers)}"
            )
        by_name: dict[str, str] = {}
        for header, value in zip(headers, values):
            key = header.casefold()
            if key not in by_name:  # first occurrence wins
                by_name[key] = value
        return cls(line_number=line_number, values=tuple(values), by_name=by_name)

    def get(self, name: str | None, default: str | None = None) -> str | None:
        if name is None:
            return default
        return self.by_name.get(name.casefold(), default)

    def has(self, name: str | None) -> bool:
        return name is not None and name.casefold() in self.by_name

    def at(self, index: int) -> str:
        return self.values[index]
