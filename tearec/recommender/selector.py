"""Dispatch between the primary recommender and its fallback."""

import logging
from typing import Iterable, List, Optional

from tearec.api.exceptions import UseFallbackError
from tearec.api.metrics import metrics_service
from tearec.recommender.base import AbstractRecommender
from tearec.recommender.entities import Order, OrderItem
from tearec.recommender.popularity import PopularityRecommender
from tearec.recommender.ranking import DEFAULT_MAX_RECOMMENDATIONS
from tearec.recommender.slope_one import SlopeOneRecommender
from tearec.recommender.utils import build_rating_matrix

# Configure module logger
logger = logging.getLogger(__name__)


class RecommenderSelector:
    """Trains both recommenders and picks one per request.

    The primary algorithm answers when it can; on UseFallbackError the
    request goes to the fallback.
    """

    def __init__(
        self,
        primary: Optional[AbstractRecommender] = None,
        fallback: Optional[AbstractRecommender] = None,
        max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
    ):
        self.primary = primary or SlopeOneRecommender(max_recommendations)
        self.fallback = fallback or PopularityRecommender(max_recommendations)

    @property
    def is_trained(self) -> bool:
        return self.primary.is_trained and self.fallback.is_trained

    def train(self, order_items: List[OrderItem], orders: List[Order]) -> None:
        """Train both recommenders and publish them together.

        Both snapshots are built from one shared rating matrix before either
        is published, so a failure in either preprocessing step leaves both
        recommenders on the previous round.
        """
        rating_matrix = build_rating_matrix(order_items, orders)
        primary_snapshot = self.primary.build_snapshot(rating_matrix)
        fallback_snapshot = self.fallback.build_snapshot(rating_matrix)
        self.primary.publish(primary_snapshot)
        self.fallback.publish(fallback_snapshot)

    def recommend_products(
        self,
        user_id: Optional[int],
        current_items: Iterable[OrderItem],
    ) -> List[int]:
        current_items = list(current_items)
        try:
            return self.primary.recommend_products(user_id, current_items)
        except UseFallbackError as e:
            logger.debug(
                f"Falling back to {self.fallback.name}: {e.message}",
                extra={"user_id": user_id},
            )
            metrics_service.record_fallback()
            return self.fallback.recommend_products(user_id, current_items)
