from __future__ import annotations

import logging

from shiftrecon.models.row_data import Row
from shiftrecon.models.table import Table

"""Asymmetric nearest-earlier join against a shift log.

The primary (merged sensor) table is the source of truth: it drives the
number and order of results. Log buffering can leave gaps or out-of-order
entries in the secondary table, so every primary row is checked against the
full secondary table rather than a moving pointer.
"""

__all__ = [
    "nearest_earlier_join",
    "nearest_earlier_match",
]

logger = logging.getLogger(__name__)


def nearest_earlier_match(primary_row: Row, candidates: list[Row], tolerance_seconds: float) -> Row | None:
    """Closest secondary row at or before ``primary_row`` within the tolerance.

    Exact ties keep the first row encountered in ``candidates`` order.
    """
    if primary_row.instant is None:
        return None
    matched: Row | None = None
    min_diff = float("inf")
    for row in candidates:
        if row.instant is None:
            continue
        diff = (primary_row.instant - row.instant).total_seconds()
        # secondary must not be later than primary
        if 0 <= diff <= tolerance_seconds and diff < min_diff:
            min_diff = diff
            matched = row
    return matched


def nearest_earlier_join(primary: Table, secondary: Table, tolerance_seconds: float) -> list[Row | None]:
    """One result per primary row, in primary order; None where nothing matches.

    A secondary row may be returned for several primary rows.
    """
    candidates = secondary.timestamped_rows()
    results = [nearest_earlier_match(p, candidates, tolerance_seconds) for p in primary.rows]
    logger.debug(
        "nearest join source=%s primary=%d candidates=%d matched=%d",
        secondary.source,
        len(primary.rows),
        len(candidates),
        sum(1 for r in results if r is not None),
    )
    return results
