"""Shared pytest fixtures for recordfilter tests."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from recordfilter.conditions.model import Condition, ContextField, LiteralValue, Operator


@pytest.fixture()
def listings() -> list[dict]:
    return [
        {"id": "L1", "price": 400000, "city": "Rome", "beds": 2, "listing__c": "A1"},
        {"id": "L2", "price": 600000, "city": "Rome", "beds": 3, "listing__c": "A2"},
        {"id": "L3", "price": 350000, "city": "Milan", "beds": 1, "listing__c": "A1"},
        {"id": "L4", "price": "n/a", "city": "Turin", "beds": 4},
    ]


@pytest.fixture()
def price_city_conditions() -> list[Condition]:
    return [
        Condition(1, "price", Operator.LESS_THAN, LiteralValue(500000)),
        Condition(2, "city", Operator.EQUAL_TO, LiteralValue("Rome")),
    ]


@pytest.fixture()
def inquiry() -> dict:
    """Context record: a buyer inquiry whose fields drive comparisons."""
    return {"budget": 450000, "city": "Rome", "min_beds": "1"}


@pytest.fixture()
def context_conditions() -> list[Condition]:
    return [
        Condition(1, "price", Operator.LESS_THAN, ContextField("budget")),
        Condition(2, "city", Operator.EQUAL_TO, ContextField("city")),
        Condition(3, "beds", Operator.GREATER_THAN, ContextField("min_beds")),
    ]


@pytest.fixture()
def json_file(tmp_path: Path):
    """Return a factory that writes an object as JSON and returns the path."""

    def _make(data, name: str = "records.json") -> Path:
        p = tmp_path / name
        p.write_text(json.dumps(data), encoding="utf-8")
        return p

    return _make
