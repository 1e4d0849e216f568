from __future__ import annotations

from typing import Iterable, List, Tuple, TypeVar

from .periods import compare_periods, period_in_range

Row = TypeVar("Row")


def normalize_range(start_period: str | None, end_period: str | None) -> Tuple[str, str]:
    """
    Return the range with unset bounds as "" and an inverted range collapsed
    onto its start period.
    """
    start = start_period or ""
    end = end_period or ""
    if start and end and compare_periods(start, end) > 0:
        end = start
    return start, end


def filter_period_range(
    rows: Iterable[Row],
    start_period: str | None,
    end_period: str | None,
) -> List[Row]:
    """
    Keep rows whose ``period`` lies within [start, end] chronologically.
    Filtering only applies when both bounds are set.
    """
    start, end = normalize_range(start_period, end_period)
    if not (start and end):
        return list(rows)
    return [row for row in rows if period_in_range(row.period, start, end)]
