from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

from shiftrecon.models.joined_row import JoinedRow
from shiftrecon.models.row_data import Row
from shiftrecon.models.table import Table

"""Symmetric window join of the two sensor heads.

Both tables must already be sorted ascending by instant. The sweep is greedy:
once a pair is emitted or a row is skipped the decision is never revisited,
so clock drift between the heads can leave later rows unmatched even when a
better pairing exists. This is a known approximation, kept as is.
"""

__all__ = [
    "windowed_pair_join",
    "merge_headers",
    "merged_table",
    "composite_result",
]

logger = logging.getLogger(__name__)


def _parse_number(value: str | None) -> float | None:
    if value is None or "_" in value:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    # "nan" and "inf" are not sensor readings
    return number if math.isfinite(number) else None


def _format_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return repr(value)


def composite_result(primary_value: str | None, secondary_value: str | None) -> str:
    """Product of the two overall-result fields, or "" if either is not numeric."""
    a = _parse_number(primary_value)
    b = _parse_number(secondary_value)
    if a is None or b is None:
        return ""
    product = a * b
    return _format_number(product) if math.isfinite(product) else ""


def windowed_pair_join(
    primary: Table,
    secondary: Table,
    tolerance_seconds: float,
    *,
    result_columns: tuple[str, str] | None = None,
    derived_column: str | None = None,
) -> list[JoinedRow]:
    """Two-pointer sweep pairing rows whose instants differ by less than the tolerance.

    Args:
        primary: sorted table whose fields win on name collisions
        secondary: sorted table contributing the remaining fields
        tolerance_seconds: exclusive bound on ``|primary - secondary|``
        result_columns: substrings locating the overall-result column on each side
        derived_column: name of the product column added to every JoinedRow
    """
    primary_result = secondary_result = None
    if result_columns is not None:
        primary_result = primary.find_column([result_columns[0]], contains=True)
        secondary_result = secondary.find_column([result_columns[1]], contains=True)

    joined: list[JoinedRow] = []
    p_rows, s_rows = primary.rows, secondary.rows
    i = j = 0
    while i < len(p_rows) and j < len(s_rows):
        p, s = p_rows[i], s_rows[j]
        if p.instant is None or s.instant is None:
            i += 1
            j += 1
            continue

        diff = abs((p.instant - s.instant).total_seconds())
        if diff < tolerance_seconds:
            derived: dict[str, str] = {}
            if derived_column:
                derived[derived_column] = composite_result(
                    p.get(primary_result), s.get(secondary_result)
                )
            joined.append(JoinedRow(primary=p, secondary=s, derived=derived))
            i += 1
            j += 1
        elif p.instant < s.instant:
            i += 1  # unmatched primary row, dropped
        else:
            j += 1  # unmatched secondary row, dropped

    logger.debug(
        "pair join primary=%d secondary=%d joined=%d tolerance=%s",
        len(p_rows), len(s_rows), len(joined), tolerance_seconds,
    )
    return joined


def merge_headers(
    primary_headers: Sequence[str],
    secondary_headers: Sequence[str],
    exclude: Iterable[str] = (),
    derived_column: str | None = None,
) -> list[str]:
    """All primary headers, then new secondary headers, then the derived column."""
    merged = list(primary_headers)
    seen = {h.casefold() for h in merged}
    excluded = {e.casefold() for e in exclude if e}
    for header in secondary_headers:
        key = header.casefold()
        if key in seen or key in excluded:
            continue
        merged.append(header)
        seen.add(key)
    if derived_column:
        merged.append(derived_column)
    return merged


def merged_table(
    primary: Table,
    secondary: Table,
    joined: Sequence[JoinedRow],
    headers: Sequence[str],
    source: str = "merged",
) -> Table:
    """Materialize JoinedRows as a Table aligned to ``headers``.

    Primary header positions copy the primary row positionally (duplicate
    names keep their own values); secondary and derived columns are looked up
    by name. Each row inherits the primary instant.
    """
    n_primary = len(primary.headers)
    rows: list[Row] = []
    for line, jr in enumerate(joined, start=1):
        values: list[str] = list(jr.primary.values)
        for header in headers[n_primary:]:
            idx = secondary.index_of(header) if jr.secondary is not None else -1
            if idx >= 0:
                values.append(jr.secondary.values[idx])
            else:
                values.append(jr.derived.get(header, ""))
        row = Row.from_values(headers, values, line_number=line)
        row.instant = jr.instant
        rows.append(row)
    return Table(headers=tuple(headers), rows=rows, source=source)
