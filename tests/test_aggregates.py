import math

import pytest

from conftest import Rec
from core.aggregates import (
    count_where,
    grouped_count,
    grouped_sum,
    percentage,
    ratio,
    series,
    to_frame,
    top,
    total,
)


@pytest.mark.parametrize("records", [None, []])
def test_empty_inputs_degrade_to_zero(records):
    assert total(records, "amount") == 0.0
    assert grouped_sum(records, "class", "amount") == {}
    assert grouped_count(records, "designation") == {}
    assert count_where(records, lambda r: True) == 0
    assert to_frame(records, ["amount"]).empty


@pytest.mark.parametrize(
    "num, den",
    [(5, 0), (0, 0), (None, None), (1, float("nan")), ("x", 2)],
)
def test_ratio_never_returns_nan_or_inf(num, den):
    value = ratio(num, den)
    assert value == 0.0
    assert math.isfinite(value)


def test_percentage_rounds():
    assert percentage(1, 3) == 33.3
    assert percentage(2, 0) == 0.0


def test_total_over_records_and_dicts():
    rows = [Rec(amount=100), {"amount": "250.5"}, {"amount": None}]
    assert total(rows, "amount") == 350.5


def test_grouped_sum_keeps_first_seen_order():
    rows = [
        {"class": "Grade 2", "amount": 10},
        {"class": "Grade 1", "amount": 5},
        {"class": "Grade 2", "amount": 15},
        {"class": None, "amount": 1},
    ]
    assert grouped_sum(rows, "class", "amount") == {"Grade 2": 25.0, "Grade 1": 5.0, "Unassigned": 1.0}


def test_grouped_count():
    rows = [{"designation": "PGT"}, {"designation": "TGT"}, {"designation": "PGT"}]
    assert grouped_count(rows, "designation") == {"PGT": 2, "TGT": 1}


def test_count_where_sees_dicts():
    rows = [Rec(is_active=True), Rec(is_active=False), {"is_active": True}]
    assert count_where(rows, lambda r: r["is_active"]) == 2


def test_series_and_top():
    mapping = {"Bus": 10.0, "Van": 30.0, "Car": 20.0}
    frame = series(mapping, "Type", "Distance")
    assert list(frame.index) == ["Bus", "Van", "Car"]
    assert frame["Distance"].tolist() == [10.0, 30.0, 20.0]
    assert top(mapping) == ["Van"]
    assert top(mapping, 2) == ["Van", "Car"]
    assert top({}) == []
