"""Shared train/recommend contract for recommendation algorithms.

A training round builds a complete snapshot (rating matrix plus whatever the
algorithm precomputes) off to the side and publishes it with a single
reference swap. Recommendation calls capture the snapshot once, so they see
either the previous or the new training state, never a mix.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from tearec.api.exceptions import NotTrainedError
from tearec.recommender.entities import Order, OrderItem
from tearec.recommender.ranking import DEFAULT_MAX_RECOMMENDATIONS, rank_recommendations
from tearec.recommender.utils import RatingMatrix, build_rating_matrix

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainedSnapshot:
    """Immutable result of one training round."""

    rating_matrix: RatingMatrix
    model: Any
    trained_at: float


class AbstractRecommender(ABC):
    """Base class for recommenders trained on the order history."""

    def __init__(self, max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS):
        self.max_recommendations = max_recommendations
        self._snapshot: Optional[TrainedSnapshot] = None

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def is_trained(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> Optional[TrainedSnapshot]:
        return self._snapshot

    def train(self, order_items: List[OrderItem], orders: List[Order]) -> TrainedSnapshot:
        """Train on the given records and publish the result.

        The previously published snapshot keeps serving until this call
        completes. If preprocessing raises, nothing is published.

        Args:
            order_items: Order items of the training window.
            orders: Orders of the training window.

        Returns:
            The newly published snapshot.
        """
        snapshot = self.build_snapshot(build_rating_matrix(order_items, orders))
        self.publish(snapshot)
        return snapshot

    def build_snapshot(self, rating_matrix: RatingMatrix) -> TrainedSnapshot:
        """Run preprocessing on a rating matrix without publishing anything."""
        start_time = time.time()
        model = self.execute_preprocessing(rating_matrix)
        snapshot = TrainedSnapshot(
            rating_matrix=rating_matrix,
            model=model,
            trained_at=time.time(),
        )

        logger.info(
            f"Training {self.name} finished",
            extra={
                "recommender": self.name,
                "num_users": len(rating_matrix.user_ratings),
                "num_products": len(rating_matrix.total_products),
                "training_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return snapshot

    def publish(self, snapshot: TrainedSnapshot) -> None:
        self._snapshot = snapshot

    def execute_preprocessing(self, rating_matrix: RatingMatrix) -> Any:
        """Precompute algorithm state from the rating matrix.

        Runs once per training round. The returned value is stored in the
        snapshot as ``model``.
        """
        return None

    def recommend_products(
        self,
        user_id: Optional[int],
        current_items: Iterable[OrderItem],
    ) -> List[int]:
        """Recommend products for a user and their current cart.

        Args:
            user_id: The user to recommend for. May be None for anonymous users.
            current_items: The order items in the cart.

        Returns:
            Recommended product ids, none of which is already in the cart.
            Empty when the cart is empty.

        Raises:
            NotTrainedError: If no training round has completed.
            UseFallbackError: If the algorithm cannot score this user.
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise NotTrainedError(self.name)

        product_ids = [item.product_id for item in current_items]
        if not product_ids:
            return []
        return self.execute(snapshot, user_id, product_ids)

    def filter_recommendations(
        self,
        scores: dict,
        current_items: List[int],
    ) -> List[int]:
        return rank_recommendations(scores, current_items, self.max_recommendations)

    @abstractmethod
    def execute(
        self,
        snapshot: TrainedSnapshot,
        user_id: Optional[int],
        current_items: List[int],
    ) -> List[int]:
        """Compute recommendations against a trained snapshot.

        Args:
            snapshot: Snapshot captured at the start of the request.
            user_id: The user to recommend for. May be None.
            current_items: Product ids in the cart (never empty).

        Returns:
            Recommended product ids, excluding the cart.
        """
