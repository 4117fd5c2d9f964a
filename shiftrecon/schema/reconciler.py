from __future__ import annotations

from collections.abc import Sequence

from shiftrecon.models.column_plan import ColumnPlan

"""Column ordering and sub-header alignment for shift-log sheets.

Shift logs repeat column names per lane (for example several ``RN`` columns
with sub-headers TLB1, TIB1, TIB2). Resolving such a column by name would
always hit the first occurrence, so every output position is tied back to the
original header sequence by rank: the k-th ``RN`` in the output is the k-th
``RN`` in the source.
"""

__all__ = [
    "reconcile",
    "order_headers",
    "DEFAULT_LEADING",
]

DEFAULT_LEADING = ("Station", "Date", "Timestamp")


def _same(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def order_headers(headers: Sequence[str], leading: Sequence[str] = DEFAULT_LEADING) -> list[int]:
    """Original indices in output order.

    The first occurrence of each ``leading`` name is moved to the front in
    ``leading`` order; every other position keeps its relative order.
    """
    emitted: list[int] = []
    for name in leading:
        for idx, header in enumerate(headers):
            if idx not in emitted and _same(header, name):
                emitted.append(idx)
                break
    taken = set(emitted)
    emitted.extend(idx for idx in range(len(headers)) if idx not in taken)
    return emitted


def _rank_index(ordered: Sequence[str], position: int, original: Sequence[str]) -> int:
    header = ordered[position]
    rank = sum(1 for k in range(position) if _same(ordered[k], header))
    seen = 0
    for idx, name in enumerate(original):
        if _same(name, header):
            if seen == rank:
                return idx
            seen += 1
    return -1


def reconcile(
    headers: Sequence[str],
    sub_headers: Sequence[str] | None = None,
    leading: Sequence[str] = DEFAULT_LEADING,
) -> ColumnPlan:
    """Compute the ColumnPlan for one sheet. Pure: same input, same plan."""
    ordered = [headers[idx] for idx in order_headers(headers, leading)]
    source_indices = tuple(_rank_index(ordered, k, headers) for k in range(len(ordered)))

    ordered_sub: tuple[str, ...] = ()
    if sub_headers:
        ordered_sub = tuple(
            (sub_headers[idx] or "") if 0 <= idx < len(sub_headers) else ""
            for idx in source_indices
        )

    return ColumnPlan(
        ordered_headers=tuple(ordered),
        ordered_sub_headers=ordered_sub,
        source_indices=source_indices,
    )
