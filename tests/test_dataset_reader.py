"""Tests for dataset loading and the read accessors."""

import json
import logging

import pytest

from explorer.dataset_reader import MarketDataset, get_dataset, load_dataset
from explorer.exceptions import DatasetLoadError
from explorer.selection import DatasetLoaded, MarketSelection, initial_state, reduce_selection, selector_options


def test_list_accessors(dataset):
    """Test option lists follow the dataset's own order."""
    assert dataset.list_countries() == ["Germany", "Austria", "France"]
    assert dataset.list_cities("Germany") == ["Berlin", "Munich"]
    assert dataset.list_periods("Germany", "Munich") == ["Q2 2020", "Q1 2019", "Q4 2019"]
    assert dataset.list_submarkets("Germany", "Berlin", "Q1 2019") == ["CBD", "West"]
    assert dataset.latest_period("Germany", "Munich") == "Q4 2019"


def test_missing_segments_return_empty(dataset):
    """Test absent path segments never raise."""
    assert dataset.list_cities("Narnia") == []
    assert dataset.list_cities("") == []
    assert dataset.list_periods("Germany", "Hamburg") == []
    assert dataset.list_periods("France", "Paris") == []
    assert dataset.list_submarkets("Germany", "Berlin", "Q3 2019") == []
    assert dataset.resolve_metric("Germany", "Hamburg", "Q1 2019", "", "primeRentEurSqmMonth") is None


def test_resolve_metric_falls_back_per_metric(dataset):
    """Test the submarket value wins and other metrics fall back to leasing."""
    assert dataset.resolve_metric("Germany", "Berlin", "Q1 2019", "West", "primeRentEurSqmMonth") == 25
    assert dataset.resolve_metric("Germany", "Berlin", "Q1 2019", "West", "vacancyRate") == "4,5%"
    assert dataset.resolve_metric("Germany", "Berlin", "Q1 2019", "", "primeRentEurSqmMonth") == 30
    assert dataset.resolve_metric("Germany", "Berlin", "Q1 2019", "West", "primeYield") is None


def test_blank_submarket_value_falls_back_to_leasing(dataset):
    """Test an empty submarket value does not hide the leasing value."""
    assert dataset.resolve_metric("Germany", "Berlin", "Q4 2019", "CBD", "primeRentEurSqmMonth") == "–"


def test_plain_shape_is_accepted():
    """Test datasets without the wrapper levels."""
    data = {"Spain": {"Madrid": {"Q1 2021": {"leasing": {"takeUp": 120}}}}}
    dataset = MarketDataset(data)
    assert dataset.list_cities("Spain") == ["Madrid"]
    assert dataset.resolve_metric("Spain", "Madrid", "Q1 2021", "", "takeUp") == 120
    assert MarketDataset.from_payload(data).list_periods("Spain", "Madrid") == ["Q1 2021"]


def test_empty_dataset():
    """Test an empty dataset yields empty lists."""
    dataset = MarketDataset.from_payload({})
    assert dataset.is_empty
    assert dataset.list_countries() == []


def test_load_dataset_reads_json(tmp_path, market_payload):
    """Test loading the published file."""
    path = tmp_path / "market.json"
    path.write_text(json.dumps(market_payload), encoding="utf-8")
    assert load_dataset(path).list_countries() == ["Germany", "Austria", "France"]


def test_load_dataset_errors(tmp_path):
    """Test load failures surface as DatasetLoadError."""
    with pytest.raises(DatasetLoadError):
        load_dataset(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(DatasetLoadError):
        load_dataset(broken)

    array = tmp_path / "array.json"
    array.write_text("[]", encoding="utf-8")
    with pytest.raises(DatasetLoadError):
        load_dataset(array)


def test_get_dataset_uses_configured_path(data_file):
    """Test the configured file is loaded and cached."""
    first = get_dataset()
    assert first.list_cities("Austria") == ["Vienna"]
    assert get_dataset() is first


def test_null_wrapper_levels_are_missing():
    """Test null or non-object cities/periods nodes read as empty, not as keys."""
    dataset = MarketDataset.from_payload(
        {
            "countries": {
                "France": {"cities": {"Paris": {"periods": None}, "Lyon": {"periods": [1, 2]}}},
                "Spain": {"cities": None},
            }
        }
    )
    assert dataset.list_cities("Spain") == []
    assert dataset.list_cities("France") == ["Paris", "Lyon"]
    assert dataset.list_periods("France", "Paris") == []
    assert dataset.list_periods("France", "Lyon") == []

    state = reduce_selection(initial_state(), DatasetLoaded(), dataset)
    assert state.primary == MarketSelection("France", "Paris", "")
    assert state.period == state.start_period == state.end_period == ""
    assert selector_options(state, dataset)["periods"] == []


def test_null_countries_wrapper():
    """Test a null top-level wrapper gives an empty dataset."""
    assert MarketDataset.from_payload({"countries": None}).is_empty


def test_load_dataset_logs_non_object_payload(tmp_path, caplog):
    """Test every load failure is logged at ERROR."""
    array = tmp_path / "array.json"
    array.write_text("[1, 2]", encoding="utf-8")
    with caplog.at_level(logging.ERROR, logger="explorer.dataset_reader"):
        with pytest.raises(DatasetLoadError):
            load_dataset(array)
    assert any("must contain a JSON object" in record.getMessage() for record in caplog.records)
