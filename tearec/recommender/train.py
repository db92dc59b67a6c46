"""Offline training from CSV exports.

Trains the recommenders from order and order-item CSV snapshots instead of
the live persistence service. Useful for evaluation and for reproducing a
training round locally.
"""

import logging
from typing import Optional

from tearec.recommender.ranking import DEFAULT_MAX_RECOMMENDATIONS
from tearec.recommender.selector import RecommenderSelector
from tearec.recommender.sync import filter_for_max_time
from tearec.recommender.utils import load_records_from_csv

# Configure module logger
logger = logging.getLogger(__name__)


def train_from_csv(
    orders_csv: str,
    order_items_csv: str,
    max_time: Optional[int] = None,
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
) -> RecommenderSelector:
    """Train a recommender selector from CSV exports.

    Args:
        orders_csv: Path to CSV with columns: id, user_id, time.
        order_items_csv: Path to CSV with columns: id, product_id, order_id,
            quantity.
        max_time: Optional cutoff in epoch millis; newer orders are ignored.
        max_recommendations: Maximum number of recommendations per request.

    Returns:
        Trained RecommenderSelector.

    Raises:
        FileNotFoundError: If a CSV file does not exist.
        ValueError: If a CSV is malformed or empty.

    Example:
        >>> selector = train_from_csv("data/orders.csv", "data/order_items.csv")
        >>> selector.recommend_products(5, cart_items)
    """
    logger.info("=" * 60)
    logger.info("Starting offline training")
    logger.info("=" * 60)

    order_items, orders = load_records_from_csv(orders_csv, order_items_csv)
    order_items, orders = filter_for_max_time(order_items, orders, max_time)

    selector = RecommenderSelector(max_recommendations=max_recommendations)
    selector.train(order_items, orders)

    logger.info(
        "Offline training completed",
        extra={"num_orders": len(orders), "num_order_items": len(order_items), "max_time": max_time},
    )
    return selector
