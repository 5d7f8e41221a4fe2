"""Behavioural checks of the shipped roadmap examples against the fixture."""

# ruff: noqa: PLR2004

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from sql_roadmap.core.curriculum import Example, YamlCurriculumLoader
from sql_roadmap.core.fixtures import SEED_FIXTURES, Customer, FixtureSet, Order, load_fixtures
from sql_roadmap.core.runner import Harness, QueryRunner
from sql_roadmap.integrations.sqlite_backend import InMemorySQLiteBackend

ROADMAP_PATH = Path(__file__).resolve().parents[2] / "assets" / "curriculum" / "roadmap.yaml"


@pytest.fixture(scope="module")
def catalogue() -> dict[str, Example]:
    return YamlCurriculumLoader(path=ROADMAP_PATH).load()


def _run(catalogue: dict[str, Example], name: str, fixtures: FixtureSet = SEED_FIXTURES) -> list[dict[str, Any]]:
    with InMemorySQLiteBackend(timeout_s=2.0) as backend:
        load_fixtures(backend, fixtures)
        backend.freeze()
        return QueryRunner(backend=backend, catalogue=catalogue).run(name)


def test_every_shipped_example_passes(catalogue: dict[str, Example]) -> None:
    verdicts = Harness(catalogue=catalogue).execute()

    failures = {verdict.name: verdict.diff or verdict.message for verdict in verdicts if not verdict.passed}
    assert failures == {}


def test_examples_are_deterministic(catalogue: dict[str, Example]) -> None:
    for name in catalogue:
        assert _run(catalogue, name) == _run(catalogue, name), name


def test_filter_nigeria_orders_by_age_descending(catalogue: dict[str, Example]) -> None:
    rows = _run(catalogue, "week1_filter_nigeria")

    assert rows == [{"name": "Adewale Ogun", "age": 41}, {"name": "John Doe", "age": 30}]


def test_group_by_country_having_yields_only_nigeria(catalogue: dict[str, Example]) -> None:
    rows = _run(catalogue, "week2_group_by_country_having")

    assert len(rows) == 1
    assert rows[0]["country"] == "Nigeria"
    assert rows[0]["customer_count"] == 2
    assert rows[0]["avg_age"] == pytest.approx(35.5)


def test_left_join_keeps_customer_without_orders(catalogue: dict[str, Example]) -> None:
    rows = _run(catalogue, "week3_left_join")

    unmatched = [row for row in rows if row["name"] == "Aisha Bello"]
    assert unmatched == [{"name": "Aisha Bello", "order_id": None, "amount": None}]
    assert {row["name"] for row in rows} == {customer.name for customer in SEED_FIXTURES.customers}


def test_data_quality_check_returns_exactly_bad_amounts(catalogue: dict[str, Example]) -> None:
    rows = _run(catalogue, "week4_data_quality_check")

    expected = {order.order_id for order in SEED_FIXTURES.orders if order.amount is None or order.amount <= 0}
    assert {row["order_id"] for row in rows} == expected
    assert all(row["amount"] is None or row["amount"] <= 0 for row in rows)


def _crowded_fixture() -> FixtureSet:
    names = ["Ada", "Bola", "Chidi", "Dayo", "Efe"]
    customers = [Customer(index + 1, name, "Nigeria", 20 + index) for index, name in enumerate(names)]
    customers.append(Customer(6, "Grace", "Ghana", 33))
    spend = [Decimal("50.00"), Decimal("300.00"), Decimal("125.25"), Decimal("300.00"), Decimal("10.00")]
    orders = [Order(index + 1, index + 1, amount, date(2024, 5, index + 1)) for index, amount in enumerate(spend)]
    orders.append(Order(6, 6, Decimal("75.00"), date(2024, 5, 6)))
    orders.append(Order(7, 1, Decimal("500.00"), date(2024, 5, 7)))
    return FixtureSet(customers=tuple(customers), orders=tuple(orders))


def test_top3_per_country_caps_large_countries(catalogue: dict[str, Example]) -> None:
    rows = _run(catalogue, "week4_top3_per_country", fixtures=_crowded_fixture())

    nigeria = [row for row in rows if row["country"] == "Nigeria"]
    assert len(nigeria) == 3
    totals = [row["total_spent"] for row in nigeria]
    assert totals == sorted(totals, reverse=True)
    assert [row["name"] for row in nigeria] == ["Ada", "Bola", "Dayo"]
    assert [row["name"] for row in rows if row["country"] == "Ghana"] == ["Grace"]


def test_top3_per_country_on_seed_data(catalogue: dict[str, Example]) -> None:
    rows = _run(catalogue, "week4_top3_per_country")

    for country in {row["country"] for row in rows}:
        totals = [row["total_spent"] for row in rows if row["country"] == country]
        assert len(totals) <= 3
        assert all(left >= right for left, right in zip(totals, totals[1:]))
