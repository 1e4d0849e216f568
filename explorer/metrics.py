"""
The closed set of office-market metrics the explorer knows about.

Storage and extraction treat every key the same way; the definitions here
only decide labels, display formatting and which metrics can be charted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from .dataset_reader import MarketDataset
from .numeric import format_maybe_range, format_money, format_number, format_percent


@dataclass(frozen=True)
class MetricDefinition:
    key: str
    label: str
    kind: str  # number | money | percent | range
    trend: bool = True


METRICS: Dict[str, MetricDefinition] = {
    definition.key: definition
    for definition in (
        MetricDefinition("totalStock", "Total Stock ('000m²)", "number"),
        MetricDefinition("vacancy", "Vacancy ('000m²)", "number"),
        MetricDefinition("vacancyRate", "Vacancy Rate (%)", "percent"),
        MetricDefinition("takeUp", "Take-up ('000m²)", "number"),
        MetricDefinition("netAbsorption", "Net Absorption ('000m²)", "number"),
        MetricDefinition("completionsYTD", "Completions ('000m²)", "number"),
        MetricDefinition("primeYield", "Prime Yield - Local Convention (%)", "percent"),
        MetricDefinition("capitalValueEurSqm", "Capital Value (€/m²)", "money"),
        MetricDefinition("primeRentEurSqmMonth", "Prime Rent (€/m² pm)", "money"),
        MetricDefinition("averageRentEurSqmMonth", "Average Rent (€/m² pm)", "money"),
        MetricDefinition("serviceChargeEurSqmMonth", "Service Charge (€/m² pm)", "money"),
        MetricDefinition("leaseLengthMonths", "Typical Lease Terms (years)", "range", trend=False),
        MetricDefinition(
            "rentFreeMonthPerYear", "Typical Rent Free Period (months)", "range", trend=False
        ),
    )
}

DEFAULT_TREND_METRIC = "primeRentEurSqmMonth"

PANEL_SECTIONS = (
    (
        "Market Metrics",
        (
            ("totalStock", None),
            ("vacancy", None),
            ("vacancyRate", None),
            ("primeYield", "Prime Yield (%)"),
            ("capitalValueEurSqm", None),
        ),
    ),
    (
        "Leasing Conditions",
        (
            ("primeRentEurSqmMonth", None),
            ("averageRentEurSqmMonth", None),
            ("serviceChargeEurSqmMonth", None),
            ("leaseLengthMonths", None),
            ("rentFreeMonthPerYear", None),
        ),
    ),
)

FORMATTERS = {
    "number": format_number,
    "money": format_money,
    "percent": format_percent,
    "range": format_maybe_range,
}


def is_known_metric(key: str) -> bool:
    return key in METRICS


def trend_metric_options() -> List[Dict[str, str]]:
    return [
        {"key": definition.key, "label": definition.label}
        for definition in METRICS.values()
        if definition.trend
    ]


def format_metric_value(key: str, raw: object) -> str:
    definition = METRICS.get(key)
    formatter = FORMATTERS[definition.kind] if definition else format_number
    return formatter(raw)


def metric_panel(
    dataset: MarketDataset,
    country: str,
    city: str,
    period: str,
    submarket: str,
) -> List[Dict]:
    """
    Build the single-period display sections for one market selection.
    """
    sections: List[Dict] = []
    for title, entries in PANEL_SECTIONS:
        rows = []
        for key, label in entries:
            raw = dataset.resolve_metric(country, city, period, submarket, key)
            rows.append(
                {
                    "key": key,
                    "label": label or METRICS[key].label,
                    "value": format_metric_value(key, raw),
                }
            )
        sections.append({"title": title, "rows": rows})
    return sections
