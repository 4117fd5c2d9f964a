from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .row_data import Row

"""Table model: headers, optional sub-headers and positional rows.

Invariant: every row holds exactly ``len(headers)`` values. The parser drops
rows that violate this before they ever reach a Table.
"""

__all__ = [
    "Table",
    "find_column",
    "same_name",
]


def same_name(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def find_column(
    headers: Iterable[str], candidates: Iterable[str], contains: bool = False
) -> str | None:
    """Return the first header matching one of ``candidates``.

    Exact mode compares case-insensitively and also accepts a header whose
    ``:`` characters are removed (``"Top:Date"`` vs ``"topdate"``). Contains
    mode accepts any header containing the candidate.
    """
    names = [c.casefold() for c in candidates if c]
    for header in headers:
        lowered = header.casefold()
        for name in names:
            if contains:
                if name in lowered:
                    return header
            elif lowered == name or lowered.replace(":", "") == name:
                return header
    return None


@dataclass
class Table:
    headers: tuple[str, ...]
    rows: list[Row] = field(default_factory=list)
    sub_headers: tuple[str, ...] | None = None
    source: str = ""

    def __post_init__(self) -> None:
        if self.sub_headers is not None and len(self.sub_headers) != len(self.headers):
            raise ValueError("sub_headers must align with headers")

    def __len__(self) -> int:
        return len(self.rows)

    def index_of(self, name: str, occurrence: int = 0) -> int:
        """Position of the ``occurrence``-th header equal to ``name`` (-1 if absent)."""
        seen = 0
        for idx, header in enumerate(self.headers):
            if same_name(header, name):
                if seen == occurrence:
                    return idx
                seen += 1
        return -1

    def find_column(self, candidates: Sequence[str], contains: bool = False) -> str | None:
        return find_column(self.headers, candidates, contains=contains)

    def timestamped_rows(self) -> list[Row]:
        return [r for r in self.rows if r.instant is not None]
