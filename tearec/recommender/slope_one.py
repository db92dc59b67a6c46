"""Item-based collaborative filtering with the Slope-One scheme.

Units bought are the ratings. Preprocessing computes, for every pair of
products bought by the same user, the mean rating difference and the number
of users behind it. Prediction for an unseen product is the frequency
weighted average of ``rating[q] + difference[q][p]`` over the products q the
user bought.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from tearec.api.exceptions import UseFallbackError
from tearec.recommender.base import AbstractRecommender, TrainedSnapshot
from tearec.recommender.utils import RatingMatrix, UserRatingMatrix

# Configure module logger
logger = logging.getLogger(__name__)

# Score for products without co-purchase statistics
NO_DATA_SCORE = -1.0

DifferenceMatrix = Dict[int, Dict[int, float]]
FrequencyMatrix = Dict[int, Dict[int, int]]


@dataclass(frozen=True)
class SlopeOneMatrices:
    """Pairwise statistics of one training round.

    Attributes:
        differences: item -> (other item -> mean rating difference).
        frequencies: item -> (other item -> number of users rating both).
    """

    differences: DifferenceMatrix
    frequencies: FrequencyMatrix


def build_difference_matrices(user_ratings: UserRatingMatrix) -> SlopeOneMatrices:
    """Accumulate and normalize pairwise rating differences.

    Every ordered pair (i, j) of products rated by one user contributes,
    including i == j. Self pairs end with a difference of 0 and a frequency
    equal to the number of users who bought the product.

    Users are visited in ascending id order so equal inputs give identical
    floating point results.
    """
    differences: DifferenceMatrix = {}
    frequencies: FrequencyMatrix = {}

    for user_id in sorted(user_ratings):
        ratings = user_ratings[user_id]
        for item_i, rating_i in ratings.items():
            diff_row = differences.setdefault(item_i, {})
            freq_row = frequencies.setdefault(item_i, {})
            for item_j, rating_j in ratings.items():
                freq_row[item_j] = freq_row.get(item_j, 0) + 1
                diff_row[item_j] = diff_row.get(item_j, 0.0) + (rating_i - rating_j)

    for item_i, diff_row in differences.items():
        freq_row = frequencies[item_i]
        for item_j in diff_row:
            diff_row[item_j] = diff_row[item_j] / freq_row[item_j]

    return SlopeOneMatrices(differences=differences, frequencies=frequencies)


def predict_score(
    ratings: Dict[int, float],
    matrices: SlopeOneMatrices,
    product_id: int,
) -> Optional[float]:
    """Predict one user's score for one product.

    Returns the user's own rating when the product was bought, otherwise the
    Slope-One estimate. Returns None when some bought product never co-occurred
    with ``product_id``.
    """
    if product_id in ratings:
        return ratings[product_id]

    score = 0.0
    weights = 0.0
    for item_id, rating in ratings.items():
        frequency = matrices.frequencies.get(item_id, {}).get(product_id)
        difference = matrices.differences.get(item_id, {}).get(product_id)
        if frequency is None or difference is None:
            return None
        score += (rating + difference) * frequency
        weights += frequency
    return score / weights


class SlopeOneRecommender(AbstractRecommender):
    """Recommender based on item-based collaborative filtering with Slope-One."""

    @property
    def differences(self) -> DifferenceMatrix:
        return self._matrices().differences

    @property
    def frequencies(self) -> FrequencyMatrix:
        return self._matrices().frequencies

    def _matrices(self) -> SlopeOneMatrices:
        snapshot = self.snapshot
        if snapshot is None:
            return SlopeOneMatrices(differences={}, frequencies={})
        return snapshot.model

    def execute_preprocessing(self, rating_matrix: RatingMatrix) -> SlopeOneMatrices:
        matrices = build_difference_matrices(rating_matrix.user_ratings)
        logger.debug(
            "Built Slope-One matrices",
            extra={"num_items": len(matrices.frequencies)},
        )
        return matrices

    def get_user_vector(self, snapshot: TrainedSnapshot, user_id: int) -> Dict[int, float]:
        """Predict the user's score for every product of the training window."""
        ratings = snapshot.rating_matrix.user_ratings[user_id]
        scores: Dict[int, float] = {}
        for product_id in snapshot.rating_matrix.total_products:
            score = predict_score(ratings, snapshot.model, product_id)
            scores[product_id] = NO_DATA_SCORE if score is None else score
        return scores

    def execute(
        self,
        snapshot: TrainedSnapshot,
        user_id: Optional[int],
        current_items: List[int],
    ) -> List[int]:
        if user_id is None:
            raise UseFallbackError(
                f"{self.name} does not support anonymous users. "
                "Use a pseudo user or switch to another approach."
            )
        if user_id not in snapshot.rating_matrix.user_ratings:
            raise UseFallbackError("No purchase history for user.", user_id=user_id)

        scores = self.get_user_vector(snapshot, user_id)
        return self.filter_recommendations(scores, current_items)
