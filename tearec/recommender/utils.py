"""Utility functions for the recommendation pipeline.

This module turns raw order and order-item records into the user rating
matrix the algorithms train on, and loads such records from CSV exports for
offline training.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

import pandas as pd

from tearec.recommender.entities import Order, OrderItem, OrderItemSet

# Configure module logger
logger = logging.getLogger(__name__)

ORDER_COLUMNS = {"id", "user_id", "time"}
ORDER_ITEM_COLUMNS = {"id", "product_id", "order_id", "quantity"}

UserRatingMatrix = Dict[int, Dict[int, float]]


@dataclass(frozen=True)
class RatingMatrix:
    """Training view of the purchase history.

    Attributes:
        user_ratings: user id -> (product id -> total units bought in-window).
        total_products: Every product id seen in the training window.
        user_item_sets: user id -> the order item sets of that user.
    """

    user_ratings: UserRatingMatrix
    total_products: FrozenSet[int]
    user_item_sets: Dict[int, List[OrderItemSet]]


def build_order_item_sets(
    order_items: Iterable[OrderItem],
) -> Tuple[Dict[int, OrderItemSet], Set[int]]:
    """Group order items by order id.

    Quantities of the same product inside one order are summed.

    Args:
        order_items: Order items of the training window.

    Returns:
        A tuple containing:
            - Dictionary mapping order id to its OrderItemSet
            - Set of every product id seen
    """
    item_sets: Dict[int, OrderItemSet] = {}
    total_products: Set[int] = set()
    for order_item in order_items:
        item_set = item_sets.get(order_item.order_id)
        if item_set is None:
            item_set = OrderItemSet(order_id=order_item.order_id)
            item_sets[order_item.order_id] = item_set
        item_set.add(order_item.product_id, order_item.quantity)
        total_products.add(order_item.product_id)
    return item_sets, total_products


def _find_order(orders: List[Order], order_id: int) -> Optional[Order]:
    for order in orders:
        if order.id == order_id:
            return order
    return None


def resolve_orders(
    item_sets: Dict[int, OrderItemSet],
    orders: List[Order],
) -> List[Tuple[Order, OrderItemSet]]:
    """Match every order item set to its order.

    Uses an id index first and falls back to a linear scan. Item sets whose
    order cannot be found either way are dropped.
    """
    orders_by_id = {order.id: order for order in orders}
    resolved = []
    for order_id, item_set in item_sets.items():
        order = orders_by_id.get(order_id)
        if order is None:
            logger.warning(
                "Order missing from id index, scanning all orders",
                extra={"order_id": order_id},
            )
            order = _find_order(orders, order_id)
        if order is None:
            logger.warning(
                "Dropping order items without a matching order",
                extra={"order_id": order_id, "num_products": len(item_set.orderset)},
            )
            continue
        resolved.append((order, item_set))
    return resolved


def build_user_item_sets(
    resolved: List[Tuple[Order, OrderItemSet]],
) -> Dict[int, List[OrderItemSet]]:
    """Group order item sets by the user who placed the order."""
    user_item_sets: Dict[int, List[OrderItemSet]] = {}
    for order, item_set in resolved:
        item_set.user_id = order.user_id
        user_item_sets.setdefault(order.user_id, []).append(item_set)
    return user_item_sets


def create_user_rating_matrix(
    user_item_sets: Dict[int, List[OrderItemSet]],
) -> UserRatingMatrix:
    """Sum the bought quantities per user and product.

    The rating of a product is the number of units the user bought across
    all orders, not a 1-5 style rating.
    """
    matrix: UserRatingMatrix = {}
    for user_id, item_sets in user_item_sets.items():
        row: Dict[int, float] = {}
        for item_set in item_sets:
            for product_id, quantity in item_set.orderset.items():
                row[product_id] = row.get(product_id, 0.0) + float(quantity)
        matrix[user_id] = row
    return matrix


def build_rating_matrix(
    order_items: List[OrderItem],
    orders: List[Order],
) -> RatingMatrix:
    """Build the rating matrix and product universe from raw records.

    Args:
        order_items: Order items already filtered to the training window.
        orders: Orders already filtered to the training window.

    Returns:
        RatingMatrix holding the user ratings, product universe and the
        per-user order item sets.

    Example:
        >>> matrix = build_rating_matrix(order_items, orders)
        >>> print(f"Users: {len(matrix.user_ratings)}")
    """
    item_sets, total_products = build_order_item_sets(order_items)
    resolved = resolve_orders(item_sets, orders)
    user_item_sets = build_user_item_sets(resolved)
    user_ratings = create_user_rating_matrix(user_item_sets)

    logger.info(
        "Built rating matrix",
        extra={
            "num_users": len(user_ratings),
            "num_products": len(total_products),
            "num_orders": len(resolved),
        },
    )

    return RatingMatrix(
        user_ratings=user_ratings,
        total_products=frozenset(total_products),
        user_item_sets=user_item_sets,
    )


def _read_csv(csv_path: str, required_columns: Set[str]) -> pd.DataFrame:
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading CSV from {csv_path}")
    df = pd.read_csv(csv_path)

    if not required_columns.issubset(df.columns):
        missing = required_columns - set(df.columns)
        raise ValueError(f"CSV missing required columns: {missing}")

    return df


def load_records_from_csv(
    orders_csv: str,
    order_items_csv: str,
) -> Tuple[List[OrderItem], List[Order]]:
    """Load orders and order items from CSV exports.

    The orders CSV needs the columns ``id, user_id, time`` and the order
    items CSV ``id, product_id, order_id, quantity``.

    Args:
        orders_csv: Path to the orders CSV.
        order_items_csv: Path to the order items CSV.

    Returns:
        A tuple containing:
            - List of OrderItem records
            - List of Order records

    Raises:
        FileNotFoundError: If a CSV file does not exist.
        ValueError: If a CSV is missing required columns or the orders CSV
            is empty.
    """
    orders_df = _read_csv(orders_csv, ORDER_COLUMNS)
    items_df = _read_csv(order_items_csv, ORDER_ITEM_COLUMNS)

    if orders_df.empty:
        raise ValueError("Cannot train from an empty orders CSV")

    orders = [
        Order(id=int(row.id), user_id=int(row.user_id), time=str(row.time))
        for row in orders_df.itertuples(index=False)
    ]
    order_items = [
        OrderItem(
            id=int(row.id),
            product_id=int(row.product_id),
            order_id=int(row.order_id),
            quantity=int(row.quantity),
        )
        for row in items_df.itertuples(index=False)
    ]

    logger.info(f"Loaded {len(orders)} orders and {len(order_items)} order items")

    return order_items, orders
