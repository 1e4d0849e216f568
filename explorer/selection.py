"""
Selection state for the explorer: one primary market, two optional
comparison markets and a shared period / period range.

All changes go through ``reduce_selection``, a pure function that takes the
current state, one event and the dataset snapshot and returns a new state in
which every selected key exists in the dataset. Fields are resolved in
dependency order (country, city, period, submarket) inside a single call, so
callers never observe a half-updated selection.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping

from .dataset_reader import MarketDataset
from .exceptions import InvalidEventError
from .metrics import DEFAULT_TREND_METRIC, is_known_metric
from .periods import compare_periods, earliest_period, latest_period, sort_periods_descending

logger = logging.getLogger(__name__)

PRIMARY = "primary"
COMPARISON_SLOTS = ("comp2", "comp3")
SLOTS = (PRIMARY,) + COMPARISON_SLOTS

DEFAULT_COMPARISON_COUNTRY = "Austria"


@dataclass(frozen=True)
class MarketSelection:
    country: str = ""
    city: str = ""
    submarket: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.country and self.city and self.submarket)


@dataclass(frozen=True)
class ExplorerState:
    primary: MarketSelection = field(default_factory=MarketSelection)
    comp2: MarketSelection = field(default_factory=MarketSelection)
    comp3: MarketSelection = field(default_factory=MarketSelection)
    comp2_enabled: bool = False
    comp3_enabled: bool = False
    period: str = ""
    start_period: str = ""
    end_period: str = ""
    metric: str = DEFAULT_TREND_METRIC

    def selection(self, slot: str) -> MarketSelection:
        return getattr(self, slot)

    def is_enabled(self, slot: str) -> bool:
        return slot == PRIMARY or bool(getattr(self, f"{slot}_enabled", False))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatasetLoaded:
    pass


@dataclass(frozen=True)
class CountryChanged:
    value: str
    slot: str = PRIMARY


@dataclass(frozen=True)
class CityChanged:
    value: str
    slot: str = PRIMARY


@dataclass(frozen=True)
class SubmarketChanged:
    value: str
    slot: str = PRIMARY


@dataclass(frozen=True)
class PeriodChanged:
    value: str


@dataclass(frozen=True)
class StartPeriodChanged:
    value: str


@dataclass(frozen=True)
class EndPeriodChanged:
    value: str


@dataclass(frozen=True)
class ComparisonToggled:
    slot: str
    enabled: bool


@dataclass(frozen=True)
class MetricChanged:
    value: str


EVENT_TYPES: Dict[str, type] = {
    "dataset_loaded": DatasetLoaded,
    "country_changed": CountryChanged,
    "city_changed": CityChanged,
    "submarket_changed": SubmarketChanged,
    "period_changed": PeriodChanged,
    "start_period_changed": StartPeriodChanged,
    "end_period_changed": EndPeriodChanged,
    "comparison_toggled": ComparisonToggled,
    "metric_changed": MetricChanged,
}


# ---------------------------------------------------------------------------
# Resolution steps
# ---------------------------------------------------------------------------


def _first(options: List[str]) -> str:
    return options[0] if options else ""


def _last(options: List[str]) -> str:
    return options[-1] if options else ""


def _settle_primary(state: ExplorerState, dataset: MarketDataset) -> ExplorerState:
    current = state.primary

    countries = dataset.list_countries()
    country = current.country if current.country in countries else _first(countries)

    cities = dataset.list_cities(country)
    city_kept = current.city in cities
    city = current.city if city_kept else _first(cities)

    # A reassigned city starts over from its most recent period and first submarket.
    periods = dataset.list_periods(country, city)
    period = state.period if city_kept and state.period in periods else _last(periods)

    submarkets = dataset.list_submarkets(country, city, period)
    submarket = current.submarket if city_kept and current.submarket in submarkets else _first(submarkets)

    return replace(
        state,
        primary=MarketSelection(country=country, city=city, submarket=submarket),
        period=period,
    )


def _comparison_country_default(countries: List[str]) -> str:
    if DEFAULT_COMPARISON_COUNTRY in countries:
        return DEFAULT_COMPARISON_COUNTRY
    return _first(countries)


def comparison_submarkets(dataset: MarketDataset, country: str, city: str) -> List[str]:
    """
    Submarkets a comparison slot may pick: those of its city's most recent
    period. Comparison slots are not validated against the shared period,
    because their cities need not report that period at all; the option
    list uses the same period, so picker and state agree.
    """
    return dataset.list_submarkets(country, city, dataset.latest_period(country, city))


def _settle_comparison(state: ExplorerState, dataset: MarketDataset, slot: str) -> ExplorerState:
    if not state.is_enabled(slot):
        return replace(state, **{slot: MarketSelection()})

    current = state.selection(slot)

    countries = dataset.list_countries()
    country = current.country if current.country in countries else _comparison_country_default(countries)

    cities = dataset.list_cities(country)
    city = current.city if current.city in cities else _first(cities)

    submarkets = comparison_submarkets(dataset, country, city)
    submarket = current.submarket if current.submarket in submarkets else _first(submarkets)

    return replace(state, **{slot: MarketSelection(country=country, city=city, submarket=submarket)})


def _settle_range(state: ExplorerState) -> ExplorerState:
    if state.start_period and state.end_period:
        if compare_periods(state.start_period, state.end_period) > 0:
            return replace(state, end_period=state.start_period)
    return state


def _settle_metric(state: ExplorerState) -> ExplorerState:
    if is_known_metric(state.metric):
        return state
    return replace(state, metric=DEFAULT_TREND_METRIC)


def resolve_state(state: ExplorerState, dataset: MarketDataset) -> ExplorerState:
    """Bring every field of ``state`` back in line with ``dataset``."""
    state = _settle_primary(state, dataset)
    for slot in COMPARISON_SLOTS:
        state = _settle_comparison(state, dataset, slot)
    return _settle_metric(_settle_range(state))


# ---------------------------------------------------------------------------
# Event handlers
# ---------------------------------------------------------------------------


def _with_field(state: ExplorerState, slot: str, name: str, value: str) -> ExplorerState:
    if slot not in SLOTS:
        logger.warning(f"Ignoring change of {name} for unknown slot '{slot}'")
        return state
    selection = replace(state.selection(slot), **{name: value or ""})
    return replace(state, **{slot: selection})


def _on_dataset_loaded(state: ExplorerState, event: DatasetLoaded, dataset: MarketDataset) -> ExplorerState:
    state = _settle_primary(replace(state, primary=MarketSelection(), period=""), dataset)
    periods = dataset.list_periods(state.primary.country, state.primary.city)
    return replace(state, start_period=earliest_period(periods), end_period=latest_period(periods))


def _on_country_changed(state: ExplorerState, event: CountryChanged, dataset: MarketDataset) -> ExplorerState:
    return _with_field(state, event.slot, "country", event.value)


def _on_city_changed(state: ExplorerState, event: CityChanged, dataset: MarketDataset) -> ExplorerState:
    return _with_field(state, event.slot, "city", event.value)


def _on_submarket_changed(state: ExplorerState, event: SubmarketChanged, dataset: MarketDataset) -> ExplorerState:
    return _with_field(state, event.slot, "submarket", event.value)


def _on_period_changed(state: ExplorerState, event: PeriodChanged, dataset: MarketDataset) -> ExplorerState:
    return replace(state, period=event.value or "")


def _on_start_period_changed(
    state: ExplorerState, event: StartPeriodChanged, dataset: MarketDataset
) -> ExplorerState:
    return replace(state, start_period=event.value or "")


def _on_end_period_changed(state: ExplorerState, event: EndPeriodChanged, dataset: MarketDataset) -> ExplorerState:
    return replace(state, end_period=event.value or "")


def _on_comparison_toggled(
    state: ExplorerState, event: ComparisonToggled, dataset: MarketDataset
) -> ExplorerState:
    if event.slot not in COMPARISON_SLOTS:
        logger.warning(f"Ignoring toggle of non-comparison slot '{event.slot}'")
        return state
    enabled = bool(event.enabled)
    if enabled and state.is_enabled(event.slot):
        return state
    # Off clears the slot; on starts it empty so the defaults are applied.
    return replace(state, **{event.slot: MarketSelection(), f"{event.slot}_enabled": enabled})


def _on_metric_changed(state: ExplorerState, event: MetricChanged, dataset: MarketDataset) -> ExplorerState:
    return replace(state, metric=event.value or "")


HANDLERS: Dict[type, Callable[[ExplorerState, Any, MarketDataset], ExplorerState]] = {
    DatasetLoaded: _on_dataset_loaded,
    CountryChanged: _on_country_changed,
    CityChanged: _on_city_changed,
    SubmarketChanged: _on_submarket_changed,
    PeriodChanged: _on_period_changed,
    StartPeriodChanged: _on_start_period_changed,
    EndPeriodChanged: _on_end_period_changed,
    ComparisonToggled: _on_comparison_toggled,
    MetricChanged: _on_metric_changed,
}


def reduce_selection(state: ExplorerState, event: object, dataset: MarketDataset) -> ExplorerState:
    """
    Apply one event and return the fully resolved next state.

    Values that do not exist in the dataset fall back to the slot's default
    (first country / city / submarket, most recent period); a default that
    cannot be resolved becomes "". Never raises.
    """
    handler = HANDLERS.get(type(event))
    if handler is None:
        logger.warning(f"Ignoring unknown selection event {event!r}")
        return resolve_state(state, dataset)
    return resolve_state(handler(state, event, dataset), dataset)


def initial_state() -> ExplorerState:
    return ExplorerState()


def active_selections(state: ExplorerState) -> Dict[str, MarketSelection]:
    """
    Slots that take part in charting: the primary whenever a city is chosen,
    comparison slots only while enabled and fully resolved.
    """
    active: Dict[str, MarketSelection] = {}
    if state.primary.country and state.primary.city:
        active[PRIMARY] = state.primary
    for slot in COMPARISON_SLOTS:
        selection = state.selection(slot)
        if state.is_enabled(slot) and selection.is_complete:
            active[slot] = selection
    return active


def selector_options(state: ExplorerState, dataset: MarketDataset) -> Dict[str, Any]:
    """Option lists for every picker, consistent with ``state``."""
    primary = state.primary
    periods_desc = sort_periods_descending(dataset.list_periods(primary.country, primary.city))
    options: Dict[str, Any] = {
        "countries": dataset.list_countries(),
        "cities": dataset.list_cities(primary.country),
        "submarkets": dataset.list_submarkets(primary.country, primary.city, state.period),
        "periods": periods_desc,
        "start_periods": periods_desc,
        "end_periods": [
            period
            for period in periods_desc
            if not state.start_period or compare_periods(period, state.start_period) >= 0
        ],
    }
    for slot in COMPARISON_SLOTS:
        if not state.is_enabled(slot):
            continue
        selection = state.selection(slot)
        options[slot] = {
            "countries": dataset.list_countries(),
            "cities": dataset.list_cities(selection.country),
            "submarkets": comparison_submarkets(dataset, selection.country, selection.city),
        }
    return options


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def state_to_dict(state: ExplorerState) -> Dict[str, Any]:
    return asdict(state)


def _text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def _selection_from_dict(payload: object) -> MarketSelection:
    if not isinstance(payload, Mapping):
        return MarketSelection()
    return MarketSelection(
        country=_text(payload.get("country")),
        city=_text(payload.get("city")),
        submarket=_text(payload.get("submarket")),
    )


def state_from_dict(payload: object) -> ExplorerState:
    """Build a state from client JSON, ignoring anything malformed."""
    if not isinstance(payload, Mapping):
        return initial_state()
    return ExplorerState(
        primary=_selection_from_dict(payload.get("primary")),
        comp2=_selection_from_dict(payload.get("comp2")),
        comp3=_selection_from_dict(payload.get("comp3")),
        comp2_enabled=payload.get("comp2_enabled") is True,
        comp3_enabled=payload.get("comp3_enabled") is True,
        period=_text(payload.get("period")),
        start_period=_text(payload.get("start_period")),
        end_period=_text(payload.get("end_period")),
        metric=_text(payload.get("metric")) or DEFAULT_TREND_METRIC,
    )


def event_from_dict(payload: object) -> object:
    """
    Decode ``{"type": "country_changed", "slot": "comp2", "value": "Austria"}``
    style payloads into event objects.
    """
    if not isinstance(payload, Mapping):
        raise InvalidEventError("Event must be a JSON object.")

    event_type = EVENT_TYPES.get(payload.get("type"))
    if event_type is None:
        raise InvalidEventError(f"Unknown event type: {payload.get('type')!r}")

    if event_type is DatasetLoaded:
        return DatasetLoaded()

    if event_type is ComparisonToggled:
        slot = payload.get("slot")
        if slot not in COMPARISON_SLOTS:
            raise InvalidEventError(f"Comparison slot must be one of {', '.join(COMPARISON_SLOTS)}.")
        return ComparisonToggled(slot=slot, enabled=payload.get("enabled") is True)

    value = payload.get("value")
    if value is not None and not isinstance(value, str):
        raise InvalidEventError("Event value must be a string.")
    value = value or ""

    if event_type in (CountryChanged, CityChanged, SubmarketChanged):
        slot = payload.get("slot", PRIMARY)
        if slot not in SLOTS:
            raise InvalidEventError(f"Slot must be one of {', '.join(SLOTS)}.")
        return event_type(value=value, slot=slot)

    return event_type(value=value)
