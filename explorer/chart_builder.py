from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Mapping, Sequence

import pandas as pd

from .data_filter import filter_period_range
from .dataset_reader import MarketDataset
from .numeric import coerce_number
from .periods import sort_periods_ascending
from .selection import ExplorerState, active_selections

SERIES_KEYS = ("base", "comp2", "comp3")
SLOT_SERIES_KEYS = {"primary": "base", "comp2": "comp2", "comp3": "comp3"}


@dataclass(frozen=True)
class TrendPoint:
    period: str
    value: float


@dataclass(frozen=True)
class MergedRow:
    period: str
    base: float | None = None
    comp2: float | None = None
    comp3: float | None = None


def _sanitize_value(value: object) -> float | None:
    if value is None or pd.isna(value):
        return None
    return float(value)


def build_trend_series(
    dataset: MarketDataset,
    country: str,
    city: str,
    submarket: str,
    metric_key: str,
) -> List[TrendPoint]:
    """
    Chronological (period, value) points for one market and metric.

    Each period resolves the metric with the submarket-over-leasing rule;
    periods whose value cannot be read as a number are left out.
    """
    series: List[TrendPoint] = []
    for period in sort_periods_ascending(dataset.list_periods(country, city)):
        value = coerce_number(dataset.resolve_metric(country, city, period, submarket, metric_key))
        if value is not None:
            series.append(TrendPoint(period=period, value=value))
    return series


def _value_series(points: Sequence[TrendPoint]) -> pd.Series:
    values: Dict[str, float] = {}
    for point in points:
        # first point wins for a repeated period
        values.setdefault(point.period, point.value)
    return pd.Series(values, dtype="float64")


def merge_and_filter(
    base: Sequence[TrendPoint] | None,
    comp2: Sequence[TrendPoint] | None = None,
    comp3: Sequence[TrendPoint] | None = None,
    start_period: str | None = None,
    end_period: str | None = None,
) -> List[MergedRow]:
    """
    Align up to three series on the union of their periods, then keep the
    rows inside the inclusive period range.
    """
    frames: Dict[str, Sequence[TrendPoint]] = {
        "base": base or [],
        "comp2": comp2 or [],
        "comp3": comp3 or [],
    }
    seen = dict.fromkeys(point.period for points in frames.values() for point in points)
    combined_periods = sort_periods_ascending(seen)

    aligned = pd.DataFrame(
        {key: _value_series(points).reindex(combined_periods) for key, points in frames.items()},
        index=combined_periods,
        columns=list(SERIES_KEYS),
    )
    rows = [
        MergedRow(
            period=period,
            base=_sanitize_value(values["base"]),
            comp2=_sanitize_value(values["comp2"]),
            comp3=_sanitize_value(values["comp3"]),
        )
        for period, values in aligned.iterrows()
    ]
    return filter_period_range(rows, start_period, end_period)


def build_comparison_chart(dataset: MarketDataset, state: ExplorerState) -> List[MergedRow]:
    """
    Merged chart rows for the primary market and every active comparison slot.
    """
    series: Dict[str, List[TrendPoint]] = {}
    for slot, selection in active_selections(state).items():
        series[SLOT_SERIES_KEYS[slot]] = build_trend_series(
            dataset,
            selection.country,
            selection.city,
            selection.submarket,
            state.metric,
        )
    return merge_and_filter(
        series.get("base"),
        series.get("comp2"),
        series.get("comp3"),
        state.start_period,
        state.end_period,
    )


def rows_to_records(rows: Iterable[MergedRow]) -> List[Dict]:
    return [asdict(row) for row in rows]


def merged_rows_frame(rows: Iterable[MergedRow], labels: Mapping[str, str] | None = None) -> pd.DataFrame:
    """Tabular form of merged rows, optionally with series columns renamed."""
    frame = pd.DataFrame(rows_to_records(rows), columns=["period", *SERIES_KEYS])
    if labels:
        frame = frame.rename(columns=dict(labels))
    return frame
