"""
Chronological ordering of quarter labels such as "Q3 2021".

Labels that do not look like "Q<1-4> <year>" compare equal to everything.
That keeps sorting total over messy datasets, at the cost of leaving such
labels wherever the stable sort happens to put them.
"""
from __future__ import annotations

import re
from functools import cmp_to_key
from typing import Iterable, List, Tuple

PERIOD_REGEX = re.compile(r"^\s*Q([1-4])\s+(\d{4})\s*$", re.IGNORECASE)


def parse_period(label: object) -> Tuple[int, int] | None:
    """Return (year, quarter) for a well-formed label, else None."""
    if not isinstance(label, str):
        return None
    match = PERIOD_REGEX.match(label)
    if not match:
        return None
    quarter, year = match.groups()
    return int(year), int(quarter)


def compare_periods(first: object, second: object) -> int:
    first_key = parse_period(first)
    second_key = parse_period(second)
    if first_key is None or second_key is None:
        return 0
    if first_key[0] != second_key[0]:
        return first_key[0] - second_key[0]
    return first_key[1] - second_key[1]


PERIOD_SORT_KEY = cmp_to_key(compare_periods)


def sort_periods_ascending(labels: Iterable[str]) -> List[str]:
    return sorted(labels, key=PERIOD_SORT_KEY)


def sort_periods_descending(labels: Iterable[str]) -> List[str]:
    """Newest first, the order period pickers are shown in."""
    return sorted(labels, key=PERIOD_SORT_KEY, reverse=True)


def earliest_period(labels: Iterable[str]) -> str:
    ordered = sort_periods_ascending(labels)
    return ordered[0] if ordered else ""


def latest_period(labels: Iterable[str]) -> str:
    ordered = sort_periods_ascending(labels)
    return ordered[-1] if ordered else ""


def period_in_range(label: str, start: str, end: str) -> bool:
    """Inclusive range check; an unset bound does not restrict."""
    if start and compare_periods(label, start) < 0:
        return False
    if end and compare_periods(label, end) > 0:
        return False
    return True
