"""
Short display strings around the comparison chart: titles, legend labels
and tooltip lines.
"""
from __future__ import annotations

from typing import List, Mapping

from .chart_builder import SERIES_KEYS, MergedRow
from .numeric import format_number
from .selection import MarketSelection

DEFAULT_SECTOR = "Office"


def market_title(city: str, sector: str = DEFAULT_SECTOR) -> str:
    return f"{city or 'Market'} {sector} Market"


def series_label(selection: MarketSelection) -> str:
    parts = [part for part in (selection.city, selection.submarket) if part]
    if not parts:
        return selection.country or "Market"
    return " – ".join(parts)


def tooltip_lines(row: MergedRow, labels: Mapping[str, str]) -> List[str]:
    """
    One "<label>: <value>" line per series present in ``row``. Series that
    share a label and value (the same market picked twice) collapse into one.
    """
    lines: List[str] = []
    seen = set()
    for key in SERIES_KEYS:
        value = getattr(row, key)
        if value is None or key not in labels:
            continue
        line = f"{labels[key]}: {format_number(value)}"
        if line in seen:
            continue
        seen.add(line)
        lines.append(line)
    return lines
