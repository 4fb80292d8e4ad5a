import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import asyncio
import pytest
from catalog.domain import Product


def make_product(pid, name, price, volume, stock):
    return Product(
        id=pid,
        name=name,
        attributes={"AGA": {"PRI": str(price), "VOL": str(volume), "LGA": str(stock)}},
    )


class FakeProductSource:
    """
    Асинхронный источник товаров для тестов.
    delays - задержка по id (перемешивает порядок завершения внутри батча),
    failures - сколько первых попыток для id падают с исключением.
    """

    def __init__(self, products, delays=None, failures=None):
        self.products = dict(products)
        self.delays = dict(delays or {})
        self.failures = dict(failures or {})
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_product(self, product_id):
        self.calls.append(product_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(product_id, 0))
            if self.failures.get(product_id, 0) > 0:
                self.failures[product_id] -= 1
                raise TimeoutError(f"timeout for {product_id}")
            return self.products.get(product_id)
        finally:
            self.in_flight -= 1


class FakeTreeSource:
    def __init__(self, tree, large_tree=None):
        self.tree = tree
        self.large_tree = large_tree

    async def get_tree(self, large=False):
        await asyncio.sleep(0)
        return self.large_tree if large and self.large_tree is not None else self.tree


@pytest.fixture
def example_raw_tree():
    """s1 -> (p1, p2), s2 -> (p1): один товар в двух ветках"""
    return [
        {
            "id": "s1",
            "name": "Shelf 1",
            "children": [
                {"id": "p1", "name": "Product 1", "children": []},
                {"id": "p2", "name": "Product 2", "children": []},
            ],
        },
        {
            "id": "s2",
            "name": "Shelf 2",
            "children": [{"id": "p1", "name": "Product 1", "children": []}],
        },
    ]


@pytest.fixture
def example_products():
    return {
        "p1": make_product("p1", "Product 1", 10, 5, 3),
        "p2": make_product("p2", "Product 2", 20, 1, 0),
    }


@pytest.fixture
def nested_raw_tree():
    return {
        "id": "s0",
        "name": "Root",
        "children": [
            {
                "id": "s1",
                "name": "Drinks",
                "children": [
                    {
                        "id": "s11",
                        "name": "Juice",
                        "children": [
                            {"id": "p1", "name": "Apple juice", "children": []},
                            {"id": "p2", "name": "Orange juice", "children": []},
                        ],
                    },
                    {"id": "p3", "name": "Cola", "children": []},
                ],
            },
            {
                "id": "s2",
                "name": "Food",
                "children": [
                    {"id": "p4", "name": "Bread", "children": []},
                    {"id": "s21", "name": "Empty shelf", "children": []},
                ],
            },
        ],
    }


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def source_factory():
    return FakeProductSource


@pytest.fixture
def tree_source_factory():
    return FakeTreeSource
