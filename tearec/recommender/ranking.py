"""Turn predicted scores into a bounded recommendation list."""

from typing import Dict, Iterable, List


DEFAULT_MAX_RECOMMENDATIONS = 10


def rank_recommendations(
    scores: Dict[int, float],
    current_items: Iterable[int],
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
) -> List[int]:
    """Rank products by score, skipping what is already in the cart.

    Products are grouped by their exact score and groups are visited from the
    highest score down. Inside a group products come in ascending id order.

    Args:
        scores: Product id to predicted score.
        current_items: Product ids already in the cart.
        max_recommendations: Upper bound on the returned list.

    Returns:
        Up to max_recommendations product ids, best first.

    Example:
        >>> rank_recommendations({1: 5.0, 2: 5.0, 3: 3.0}, [], 2)
        [1, 2]
    """
    ranking: Dict[float, List[int]] = {}
    for product_id, score in scores.items():
        ranking.setdefault(score, []).append(product_id)

    cart = set(current_items)
    recommendations: List[int] = []
    for score in sorted(ranking, reverse=True):
        for product_id in sorted(ranking[score]):
            if len(recommendations) >= max_recommendations:
                return recommendations
            if product_id not in cart:
                recommendations.append(product_id)
    return recommendations
