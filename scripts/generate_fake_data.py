"""Generate fake order data for testing and development.

Creates ``data/orders.csv`` and ``data/order_items.csv`` in the layout
expected by ``scripts/train_model.py``.

Example:
    $ python scripts/generate_fake_data.py
"""

import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple

import pandas as pd

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_ORDERS = 300
DEFAULT_MAX_ITEMS_PER_ORDER = 5
DEFAULT_DAYS_BACK = 90
SECONDS_PER_DAY = 86400


def generate_fake_orders(
    num_users: int = DEFAULT_NUM_USERS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_orders: int = DEFAULT_NUM_ORDERS,
    max_items_per_order: int = DEFAULT_MAX_ITEMS_PER_ORDER,
    end_date: Optional[datetime] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Generate synthetic orders and order items.

    Args:
        num_users: Number of unique users. Must be positive.
        num_products: Number of unique products. Must be positive.
        num_orders: Number of orders to generate. Must be positive.
        max_items_per_order: Upper bound on product lines per order.
        end_date: Latest order time. Defaults to now.

    Returns:
        A tuple containing:
            - orders DataFrame with columns id, user_id, time
            - order items DataFrame with columns id, product_id, order_id,
              quantity

    Raises:
        ValueError: If any numeric parameter is non-positive.
    """
    if min(num_users, num_products, num_orders, max_items_per_order) <= 0:
        raise ValueError(
            "num_users, num_products, num_orders and max_items_per_order must be positive"
        )

    if end_date is None:
        end_date = datetime.now().replace(microsecond=0)
    start_date = end_date - timedelta(days=DEFAULT_DAYS_BACK)

    orders = []
    items = []
    for order_id in range(1, num_orders + 1):
        time = start_date + timedelta(
            days=random.randrange(DEFAULT_DAYS_BACK),
            seconds=random.randrange(SECONDS_PER_DAY),
        )
        orders.append({
            "id": order_id,
            "user_id": random.randint(1, num_users),
            "time": time.isoformat(),
        })
        num_lines = random.randint(1, min(max_items_per_order, num_products))
        for product_id in random.sample(range(1, num_products + 1), num_lines):
            items.append({
                "id": len(items) + 1,
                "product_id": product_id,
                "order_id": order_id,
                "quantity": random.randint(1, 3),
            })

    orders_df = pd.DataFrame(orders).sort_values("time").reset_index(drop=True)
    items_df = pd.DataFrame(items)
    return orders_df, items_df


def main() -> None:
    """Generate fake data with default parameters and save it under data/."""
    print(f"Generating {DEFAULT_NUM_ORDERS} fake orders...")

    try:
        orders_df, items_df = generate_fake_orders()
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = Path(__file__).parent.parent / "data"
    data_dir.mkdir(exist_ok=True)

    orders_df.to_csv(data_dir / "orders.csv", index=False)
    items_df.to_csv(data_dir / "order_items.csv", index=False)

    print("\nData generated successfully!")
    print(f"Saved to: {data_dir}")
    print(f"  Orders: {len(orders_df)}")
    print(f"  Order items: {len(items_df)}")
    print(f"  Unique users: {orders_df['user_id'].nunique()}")
    print(f"  Unique products: {items_df['product_id'].nunique()}")
    print(f"  Date range: {orders_df['time'].min()} to {orders_df['time'].max()}")


if __name__ == "__main__":
    main()
