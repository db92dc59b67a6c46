"""Popularity-based recommender.

Scores each product by the total units sold in the training window. Needs
no user history, so it serves anonymous users and users Slope-One cannot
score.
"""

from typing import Dict, List, Optional

from tearec.recommender.base import AbstractRecommender, TrainedSnapshot
from tearec.recommender.utils import RatingMatrix


class PopularityRecommender(AbstractRecommender):
    """Recommends the best-selling products."""

    def execute_preprocessing(self, rating_matrix: RatingMatrix) -> Dict[int, float]:
        counts: Dict[int, float] = {product_id: 0.0 for product_id in rating_matrix.total_products}
        for ratings in rating_matrix.user_ratings.values():
            for product_id, units in ratings.items():
                counts[product_id] = counts.get(product_id, 0.0) + units
        return counts

    def execute(
        self,
        snapshot: TrainedSnapshot,
        user_id: Optional[int],
        current_items: List[int],
    ) -> List[int]:
        return self.filter_recommendations(snapshot.model, current_items)
