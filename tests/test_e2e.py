"""End-to-end tests for the TeaRec API.

Runs a full training round through the real HTTP clients, with the
persistence service and a peer replica served by an httpx mock transport.
"""

import logging
import random
from datetime import datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from tearec.api.main import create_app
from tearec.config import Settings
from tearec.recommender.clients import PeerClient, PersistenceClient
from tearec.recommender.entities import to_millis
from tearec.recommender.selector import RecommenderSelector
from tearec.recommender.sync import TrainingSynchronizer

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)

NUM_USERS = 20
NUM_PRODUCTS = 30
NUM_ORDERS = 120
START = datetime(2024, 1, 1, 8, 0, 0)


def generate_history():
    random.seed(42)
    orders = []
    items = []
    for order_id in range(1, NUM_ORDERS + 1):
        orders.append({
            "id": order_id,
            "userId": random.randint(1, NUM_USERS),
            "time": (START + timedelta(hours=order_id)).isoformat(),
        })
        for product_id in random.sample(range(1, NUM_PRODUCTS + 1), random.randint(1, 4)):
            items.append({
                "id": len(items) + 1,
                "productId": product_id,
                "orderId": order_id,
                "quantity": random.randint(1, 3),
            })
    return orders, items


@pytest.fixture(scope="module")
def history():
    return generate_history()


@pytest.fixture
def peer_cutoff():
    """Cutoff reported by the peer: the time of order 100."""
    return to_millis((START + timedelta(hours=100)).isoformat())


@pytest.fixture
def client(history, peer_cutoff) -> TestClient:
    orders, items = history

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.host == "peer":
            return httpx.Response(200, text=str(peer_cutoff))
        if request.url.host == "stale-peer":
            return httpx.Response(412, text="not set")
        if path.endswith("/generatedb/finished"):
            return httpx.Response(200, text="true")
        if path.endswith("/orders"):
            return httpx.Response(200, json=orders)
        if path.endswith("/orderitems"):
            return httpx.Response(200, json=items)
        return httpx.Response(404)

    transport = httpx.MockTransport(handler)
    settings = Settings(
        persistence_url="http://persistence/rest",
        peer_urls=["http://peer", "http://stale-peer"],
    )
    selector = RecommenderSelector(max_recommendations=settings.max_recommendations)
    synchronizer = TrainingSynchronizer(
        recommender=selector,
        source=PersistenceClient(settings.persistence_url, transport=transport),
        peers=PeerClient(settings.peer_urls, transport=transport),
    )
    return TestClient(create_app(settings=settings, selector=selector, synchronizer=synchronizer))


def test_full_training_round_adopts_peer_cutoff(client, history, peer_cutoff):
    orders, items = history

    response = client.get("/train")

    assert response.status_code == 200
    assert int(client.get("/train/timestamp").text) == peer_cutoff

    kept_orders = {order["id"] for order in orders if order["id"] <= 100}
    kept_items = [item for item in items if item["orderId"] in kept_orders]
    assert client.get("/train/status").json()["last_training_size"] == len(kept_orders) + len(kept_items)


def test_recommendations_after_training(client, history):
    orders, items = history
    client.get("/train")

    user_id = orders[0]["userId"]
    cart = [{"productId": items[0]["productId"], "quantity": 1}]
    response = client.post(f"/recommend?uid={user_id}", json=cart)

    assert response.status_code == 200
    recommendations = response.json()
    assert 0 < len(recommendations) <= 10
    assert items[0]["productId"] not in recommendations
    assert len(set(recommendations)) == len(recommendations)


def test_recommendations_are_deterministic(client, history):
    orders, items = history
    client.get("/train")
    cart = [{"productId": items[0]["productId"]}]

    first = client.post(f"/recommend?uid={orders[0]['userId']}", json=cart).json()
    client.get("/train")
    second = client.post(f"/recommend?uid={orders[0]['userId']}", json=cart).json()

    assert first == second
