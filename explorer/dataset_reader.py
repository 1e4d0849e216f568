"""
Load the market dataset once and expose safe read accessors over it.

The dataset is nested country -> city -> period -> record, where a record
holds city-wide ``leasing`` metrics and per-submarket ``subMarkets`` metrics.
Every accessor tolerates missing levels and returns empty results instead
of raising.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Mapping

from django.conf import settings

from .exceptions import DatasetLoadError

logger = logging.getLogger(__name__)

WRAPPER_KEYS = ("countries", "cities", "periods")

_EMPTY: Mapping[str, Any] = {}


def _node(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else _EMPTY


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _unwrap(node: object, depth: int = 0) -> Mapping[str, Any]:
    """Strip the ``countries``/``cities``/``periods`` wrappers of the published file."""
    node = _node(node)
    if depth == len(WRAPPER_KEYS):
        return node
    wrapper = WRAPPER_KEYS[depth]
    if wrapper in node:
        node = _node(node[wrapper])
    return {key: _unwrap(child, depth + 1) for key, child in node.items()}


class MarketDataset:
    """Read-only view over one immutable dataset snapshot."""

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data = _node(data)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MarketDataset":
        return cls(_unwrap(payload))

    @property
    def is_empty(self) -> bool:
        return not self._data

    def _cities(self, country: str) -> Mapping[str, Any]:
        return _node(self._data.get(country)) if country else _EMPTY

    def _periods(self, country: str, city: str) -> Mapping[str, Any]:
        return _node(self._cities(country).get(city)) if city else _EMPTY

    def _record(self, country: str, city: str, period: str) -> Mapping[str, Any]:
        return _node(self._periods(country, city).get(period)) if period else _EMPTY

    def list_countries(self) -> List[str]:
        return list(self._data.keys())

    def list_cities(self, country: str) -> List[str]:
        return list(self._cities(country).keys())

    def list_periods(self, country: str, city: str) -> List[str]:
        """Periods in the order the dataset stores them (not necessarily chronological)."""
        return list(self._periods(country, city).keys())

    def list_submarkets(self, country: str, city: str, period: str) -> List[str]:
        return list(_node(self._record(country, city, period).get("subMarkets")).keys())

    def latest_period(self, country: str, city: str) -> str:
        periods = self.list_periods(country, city)
        return periods[-1] if periods else ""

    def resolve_metric(
        self,
        country: str,
        city: str,
        period: str,
        submarket: str,
        metric_key: str,
    ) -> Any:
        """
        Return the raw value of ``metric_key`` for one period.

        A non-empty submarket value wins over the city-wide leasing value;
        the fallback is decided per metric, not per record.
        """
        record = self._record(country, city, period)
        if submarket:
            sub_value = _node(_node(record.get("subMarkets")).get(submarket)).get(metric_key)
            if not _is_blank(sub_value):
                return sub_value
        leasing_value = _node(record.get("leasing")).get(metric_key)
        if not _is_blank(leasing_value):
            return leasing_value
        return None


def load_dataset(path: Path | str) -> MarketDataset:
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        logger.error(f"Market data file not found at {path}")
        raise DatasetLoadError(f"Market data file not found at {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        logger.error(f"Could not read market data file {path}: {exc}")
        raise DatasetLoadError(f"Could not read market data file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        logger.error(f"Market data file {path} is not valid JSON: {exc}")
        raise DatasetLoadError(f"Market data file {path} is not valid JSON: {exc}") from exc

    if not isinstance(payload, Mapping):
        logger.error(f"Market data file {path} must contain a JSON object")
        raise DatasetLoadError(f"Market data file {path} must contain a JSON object")

    dataset = MarketDataset.from_payload(payload)
    logger.info(f"Loaded market data from {path} ({len(dataset.list_countries())} countries)")
    return dataset


def data_file_path() -> Path:
    configured = getattr(settings, "MARKET_DATA_PATH", None)
    if configured:
        return Path(configured)
    return Path(settings.BASE_DIR) / "media" / "market_data.json"


@lru_cache(maxsize=None)
def _cached_dataset(path: str) -> MarketDataset:
    return load_dataset(path)


def get_dataset() -> MarketDataset:
    """Return the snapshot for the configured data file, loading it on first use."""
    return _cached_dataset(str(data_file_path()))
