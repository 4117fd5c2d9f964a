from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ColumnPlan",
]


@dataclass(frozen=True)
class ColumnPlan:
    """Output layout for one sheet.

    ``source_indices[k]`` is the index in the original header sequence whose
    values feed output column ``k``. ``ordered_sub_headers`` is empty when the
    source has no sub-header row.
    """
    ordered_headers: tuple[str, ...]
    ordered_sub_headers: tuple[str, ...]
    source_indices: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.ordered_headers)

    @property
    def has_sub_headers(self) -> bool:
        return len(self.ordered_sub_headers) > 0
