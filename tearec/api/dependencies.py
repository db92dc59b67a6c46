"""FastAPI dependencies giving routes access to the service state."""

from fastapi import Request

from tearec.recommender.selector import RecommenderSelector
from tearec.recommender.sync import TrainingSynchronizer


def get_synchronizer(request: Request) -> TrainingSynchronizer:
    return request.app.state.synchronizer


def get_selector(request: Request) -> RecommenderSelector:
    return request.app.state.selector
