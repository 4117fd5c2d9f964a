from __future__ import annotations

from datetime import datetime, timedelta

from shiftrecon.joins.nearest_earlier import nearest_earlier_join, nearest_earlier_match
from shiftrecon.models.row_data import Row
from shiftrecon.models.table import Table


def _row(label, instant):
    row = Row.from_values(["Id"], [label])
    row.instant = instant
    return row


def _at(second):
    return datetime(2026, 1, 28, 10, 0, 0) + timedelta(seconds=second)


def test_picks_nearest_earlier_within_window():
    candidates = [_row("a", _at(5)), _row("b", _at(8)), _row("c", _at(12))]
    assert nearest_earlier_match(_row("p", _at(10)), candidates, 10).get("Id") == "b"


def test_later_rows_never_match():
    candidates = [_row("late", _at(11))]
    assert nearest_earlier_match(_row("p", _at(10)), candidates, 10) is None


def test_window_bounds_are_inclusive():
    candidates = [_row("edge", _at(0))]
    assert nearest_earlier_match(_row("p", _at(10)), candidates, 10).get("Id") == "edge"
    assert nearest_earlier_match(_row("p", _at(11)), candidates, 10) is None
    same = [_row("same", _at(10))]
    assert nearest_earlier_match(_row("p", _at(10)), same, 10).get("Id") == "same"


def test_exact_tie_keeps_first_candidate():
    candidates = [_row("first", _at(7)), _row("second", _at(7))]
    assert nearest_earlier_match(_row("p", _at(10)), candidates, 10).get("Id") == "first"


def test_primary_without_instant_never_matches():
    assert nearest_earlier_match(_row("p", None), [_row("a", _at(5))], 10) is None


def test_join_one_result_per_primary_row_with_reuse():
    primary = Table(headers=("Id",), rows=[_row("p0", _at(9)), _row("p1", _at(10)), _row("p2", None)])
    secondary = Table(headers=("Id",), rows=[_row("s0", _at(8)), _row("s1", None)], source="log.csv")
    results = nearest_earlier_join(primary, secondary, 10)
    assert len(results) == 3
    assert results[0] is results[1]
    assert results[0].get("Id") == "s0"
    assert results[2] is None
