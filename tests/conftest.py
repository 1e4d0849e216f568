"""Shared fixtures: a small multi-country market dataset and Django settings."""

import json
from pathlib import Path

import django
import pytest
from django.conf import settings
from django.test import override_settings

from explorer.dataset_reader import MarketDataset


def pytest_configure():
    if not settings.configured:
        settings.configure(
            SECRET_KEY="test-secret",
            DEBUG=True,
            ALLOWED_HOSTS=["*"],
            INSTALLED_APPS=[],
            ROOT_URLCONF="api.urls",
            BASE_DIR=Path(__file__).resolve().parents[1],
        )
        django.setup()


@pytest.fixture
def market_payload():
    """Dataset in the published file shape (countries/cities/periods wrappers)."""
    return {
        "countries": {
            "Germany": {
                "cities": {
                    "Berlin": {
                        "periods": {
                            "Q1 2019": {
                                "leasing": {
                                    "primeRentEurSqmMonth": 30,
                                    "vacancyRate": "4,5%",
                                    "totalStock": 18500,
                                    "leaseLengthMonths": "5 - 10",
                                },
                                "subMarkets": {
                                    "CBD": {},
                                    "West": {"primeRentEurSqmMonth": 25},
                                },
                            },
                            "Q2 2019": {
                                "leasing": {"primeRentEurSqmMonth": 31, "vacancyRate": 0.04},
                                "subMarkets": {
                                    "CBD": {"primeRentEurSqmMonth": 35},
                                    "West": {},
                                },
                            },
                            "Q4 2019": {
                                "leasing": {"primeRentEurSqmMonth": "–"},
                                "subMarkets": {
                                    "CBD": {"primeRentEurSqmMonth": ""},
                                    "West": {},
                                },
                            },
                        }
                    },
                    "Munich": {
                        "periods": {
                            "Q2 2020": {
                                "leasing": {"primeRentEurSqmMonth": "42,50"},
                                "subMarkets": {"Altstadt": {}},
                            },
                            "Q1 2019": {
                                "leasing": {"primeRentEurSqmMonth": 28},
                                "subMarkets": {"Altstadt": {}},
                            },
                            "Q4 2019": {
                                "leasing": {"primeRentEurSqmMonth": "29"},
                                "subMarkets": {"Schwabing": {}},
                            },
                        }
                    },
                }
            },
            "Austria": {
                "cities": {
                    "Vienna": {
                        "periods": {
                            "Q1 2019": {
                                "leasing": {"primeRentEurSqmMonth": 26},
                                "subMarkets": {"Innere Stadt": {"primeRentEurSqmMonth": 28}},
                            },
                            "Q2 2019": {
                                "leasing": {"primeRentEurSqmMonth": 27},
                                "subMarkets": {"Innere Stadt": {}, "Donaustadt": {}},
                            },
                        }
                    }
                }
            },
            "France": {"cities": {"Paris": {"periods": {}}}},
        }
    }


@pytest.fixture
def dataset(market_payload):
    return MarketDataset.from_payload(market_payload)


@pytest.fixture
def dataset_without_austria(market_payload):
    countries = dict(market_payload["countries"])
    countries.pop("Austria")
    return MarketDataset.from_payload({"countries": countries})


@pytest.fixture
def empty_dataset():
    return MarketDataset.from_payload({"countries": {}})


@pytest.fixture
def data_file(tmp_path, market_payload):
    path = tmp_path / "market_data.json"
    path.write_text(json.dumps(market_payload), encoding="utf-8")
    with override_settings(MARKET_DATA_PATH=str(path)):
        yield path
