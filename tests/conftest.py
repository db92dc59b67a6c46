"""Shared fixtures and fakes for the TeaRec tests."""

from typing import List, Optional

import pytest

from tearec.api.metrics import metrics_service
from tearec.recommender.entities import Order, OrderItem

# Product ids used across the tests
A, B, C = 1, 2, 3


def make_order(order_id: int, user_id: int, time: str = "2024-01-01T10:00:00") -> Order:
    return Order(id=order_id, user_id=user_id, time=time)


def make_item(item_id: int, order_id: int, product_id: int, quantity: int = 1) -> OrderItem:
    return OrderItem(id=item_id, order_id=order_id, product_id=product_id, quantity=quantity)


@pytest.fixture
def orders() -> List[Order]:
    """Three users, one order each, on consecutive days."""
    return [
        make_order(10, user_id=1, time="2024-01-01T10:00:00"),
        make_order(20, user_id=2, time="2024-01-02T10:00:00"),
        make_order(30, user_id=3, time="2024-01-03T10:00:00"),
    ]


@pytest.fixture
def order_items() -> List[OrderItem]:
    """Ratings: user 1 {A: 2, B: 1}, user 2 {A: 1, B: 1, C: 3}, user 3 {C: 1}."""
    return [
        make_item(1, 10, A, 2),
        make_item(2, 10, B, 1),
        make_item(3, 20, A, 1),
        make_item(4, 20, B, 1),
        make_item(5, 20, C, 3),
        make_item(6, 30, C, 1),
    ]


class FakeSource:
    """Stands in for the persistence client."""

    def __init__(
        self,
        order_items: List[OrderItem],
        orders: List[Order],
        finished: Optional[list] = None,
        fetch_error: Optional[Exception] = None,
    ):
        self.order_items = order_items
        self.orders = orders
        self.finished = list(finished or [True])
        self.fetch_error = fetch_error
        self.checks = 0

    def is_generation_finished(self) -> bool:
        self.checks += 1
        answer = self.finished.pop(0) if len(self.finished) > 1 else self.finished[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get_order_items(self) -> List[OrderItem]:
        return list(self.order_items)

    def get_orders(self) -> List[Order]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.orders)


class FakePeers:
    """Stands in for the peer client."""

    def __init__(self, responses: Optional[list] = None):
        self.responses = responses or []
        self.calls = 0

    def fetch_max_times(self):
        self.calls += 1
        return list(self.responses)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics_service.reset()
    yield
    metrics_service.reset()
