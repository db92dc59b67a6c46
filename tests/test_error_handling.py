"""Tests for error handling in the TeaRec API.

Checks the status codes carried by the exceptions and the JSON error body
rendered for them.
"""

import json
import logging

from fastapi.testclient import TestClient

from tearec.api.exceptions import (
    FetchFailedError,
    NotTrainedError,
    SourceUnavailableError,
    TeaRecException,
    UseFallbackError,
)
from tearec.api.logging_config import JSONFormatter
from tearec.api.main import create_app
from tearec.config import Settings
from tearec.recommender.selector import RecommenderSelector
from tests.conftest import FakePeers, FakeSource


class ExplodingSelector(RecommenderSelector):
    def recommend_products(self, user_id, current_items):
        raise KeyError("corrupt snapshot")


def test_exceptions_carry_status_codes():
    assert NotTrainedError("SlopeOneRecommender").status_code == 503
    assert UseFallbackError("no history", user_id=3).status_code == 409
    assert SourceUnavailableError("http://p", "refused").status_code == 503
    assert FetchFailedError("orders", TimeoutError("slow")).status_code == 502
    assert isinstance(NotTrainedError("x"), TeaRecException)


def test_fetch_failed_details():
    error = FetchFailedError("orderitems", TimeoutError("slow"))

    assert error.details == {
        "endpoint": "orderitems",
        "error": "slow",
        "error_type": "TimeoutError",
    }


def test_unexpected_error_becomes_recommendation_error():
    """A generic failure is a 500, distinct from the 503 not-trained error."""
    app = create_app(settings=Settings(), selector=ExplodingSelector())
    client = TestClient(app)

    response = client.post("/recommend?uid=1", json=[{"productId": 1}])

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "RecommendationError"
    assert data["details"]["error_type"] == "KeyError"
    assert "message" in data


def test_train_failure_from_unexpected_error_returns_500(order_items, orders):
    from tearec.recommender.sync import TrainingSynchronizer

    class BrokenRecommender:
        def train(self, order_items, orders):
            raise RuntimeError("boom")

    synchronizer = TrainingSynchronizer(
        recommender=BrokenRecommender(),
        source=FakeSource(order_items, orders),
        peers=FakePeers(),
    )
    client = TestClient(create_app(settings=Settings(), synchronizer=synchronizer))

    response = client.get("/train")

    assert response.status_code == 500
    assert client.get("/train/isready").json() is True


def test_json_formatter_includes_extra_fields():
    record = logging.makeLogRecord({
        "name": "tearec.test",
        "levelname": "WARNING",
        "msg": "Dropping order items",
        "order_id": 42,
    })

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Dropping order items"
    assert data["level"] == "WARNING"
    assert data["order_id"] == 42
    assert "args" not in data
