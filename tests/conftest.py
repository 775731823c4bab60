import itertools
from datetime import datetime, timedelta, timezone

import pytest

from inventory_tracker.manager import InventoryManager
from inventory_tracker.schemas import Product
from inventory_tracker.storage import JsonStore

START = datetime(2026, 1, 31, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "data")


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def clock():
    """One minute later on every call, starting at START."""
    ticks = itertools.count()
    return lambda: START + timedelta(minutes=next(ticks))


@pytest.fixture
def product_a():
    return Product(
        id="A",
        name="Product A",
        company="Acme Farms",
        wholesale_price=6,
        retail_price=10,
        current_stock=50,
    )


@pytest.fixture
def product_b():
    return Product(
        id="B",
        name="Product B",
        company="Green Co",
        wholesale_price=2.5,
        retail_price=4,
        current_stock=5,
    )


@pytest.fixture
def manager(store, id_factory, clock, product_a, product_b):
    manager = InventoryManager(store, id_factory=id_factory, clock=clock)
    manager.add_product(product_a)
    manager.add_product(product_b)
    return manager
