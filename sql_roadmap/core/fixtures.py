"""Reference dataset for the curriculum's `customers` and `orders` tables."""

from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sql_roadmap.core.errors import FixtureError
from sql_roadmap.integrations.sqlite_backend import InMemorySQLiteBackend

LOGGER = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE customers (
    customer_id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    country TEXT NOT NULL,
    age INTEGER NOT NULL
);

CREATE TABLE orders (
    order_id INTEGER PRIMARY KEY,
    customer_id INTEGER,
    amount REAL,
    order_date TEXT NOT NULL
);
"""

INSERT_CUSTOMER_SQL = "INSERT INTO customers (customer_id, name, country, age) VALUES (?, ?, ?, ?)"
INSERT_ORDER_SQL = "INSERT INTO orders (order_id, customer_id, amount, order_date) VALUES (?, ?, ?, ?)"


@dataclass(frozen=True, slots=True)
class Customer:
    customer_id: int
    name: str
    country: str
    age: int

    def as_params(self) -> tuple[int, str, str, int]:
        return (self.customer_id, self.name, self.country, self.age)


@dataclass(frozen=True, slots=True)
class Order:
    order_id: int
    customer_id: int
    amount: Decimal | None
    order_date: date

    def as_params(self) -> tuple[int, int, float | None, str]:
        amount = float(self.amount) if self.amount is not None else None
        return (self.order_id, self.customer_id, amount, self.order_date.isoformat())


@dataclass(frozen=True, slots=True)
class FixtureSet:
    """Ordered seed rows for both teaching tables."""

    customers: tuple[Customer, ...]
    orders: tuple[Order, ...]

    def customer_ids(self) -> set[int]:
        return {customer.customer_id for customer in self.customers}

    def orphan_orders(self) -> list[Order]:
        """Orders whose customer is deliberately absent from the fixture."""

        known = self.customer_ids()
        return [order for order in self.orders if order.customer_id not in known]


SEED_FIXTURES = FixtureSet(
    customers=(
        Customer(1, "John Doe", "Nigeria", 30),
        Customer(2, "Mary Smith", "USA", 25),
        Customer(3, "Adewale Ogun", "Nigeria", 41),
        Customer(4, "Aisha Bello", "Kenya", 35),
    ),
    orders=(
        Order(1, 1, Decimal("250.00"), date(2024, 1, 5)),
        Order(2, 1, Decimal("120.50"), date(2024, 2, 10)),
        Order(3, 2, Decimal("80.00"), date(2024, 1, 20)),
        Order(4, 3, None, date(2024, 3, 1)),
        Order(5, 3, Decimal("400.00"), date(2024, 3, 15)),
        Order(6, 2, Decimal("0.00"), date(2024, 4, 2)),
        # customer 99 does not exist
        Order(7, 99, Decimal("60.00"), date(2024, 4, 10)),
    ),
)


def validate_fixtures(fixtures: FixtureSet) -> None:
    """Raise `FixtureError` when a primary key is repeated."""

    _reject_duplicates("customers", [customer.customer_id for customer in fixtures.customers])
    _reject_duplicates("orders", [order.order_id for order in fixtures.orders])


def load_fixtures(
    backend: InMemorySQLiteBackend, fixtures: FixtureSet = SEED_FIXTURES
) -> FixtureSet:
    """Create the teaching tables on *backend* and insert *fixtures* in order."""

    validate_fixtures(fixtures)
    try:
        backend.execute_script(SCHEMA_SQL)
        customer_count = backend.insert_many(
            INSERT_CUSTOMER_SQL, (customer.as_params() for customer in fixtures.customers)
        )
        order_count = backend.insert_many(
            INSERT_ORDER_SQL, (order.as_params() for order in fixtures.orders)
        )
    except sqlite3.Error as exc:
        raise FixtureError(f"Unable to initialise fixture tables: {exc}") from exc

    LOGGER.info("Loaded %d customers and %d orders", customer_count, order_count)
    orphans = fixtures.orphan_orders()
    if orphans:
        LOGGER.debug(
            "Orders without a matching customer: %s",
            ", ".join(str(order.order_id) for order in orphans),
        )
    return fixtures


def _reject_duplicates(table: str, keys: list[int]) -> None:
    duplicates = sorted(key for key, count in Counter(keys).items() if count > 1)
    if duplicates:
        raise FixtureError(
            f"Duplicate primary key(s) in {table}: {', '.join(str(key) for key in duplicates)}"
        )
