"""Command-line interface for offline training and recommendation.

Trains the recommenders from CSV exports of the orders and order items
tables and prints recommendations for a user and cart.

Example:
    Train and recommend for user 5 with products 3 and 7 in the cart:
        $ python scripts/train_model.py data/orders.csv data/order_items.csv \\
            --user-id 5 --cart 3,7
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tearec.recommender.entities import OrderItem
from tearec.recommender.ranking import DEFAULT_MAX_RECOMMENDATIONS
from tearec.recommender.train import train_from_csv


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_cart(value: str) -> List[int]:
    """Parse a comma-separated list of product ids."""
    if not value:
        return []
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid cart: {value!r}")


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Namespace object containing parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Train the recommenders from CSV exports and print recommendations.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Train only
  python scripts/train_model.py data/orders.csv data/order_items.csv

  # Train with a cutoff and recommend for an anonymous cart
  python scripts/train_model.py data/orders.csv data/order_items.csv --max-time 1700000000000 --cart 4
        """,
    )
    parser.add_argument("orders_csv", type=str, help="CSV with columns: id, user_id, time")
    parser.add_argument(
        "order_items_csv",
        type=str,
        help="CSV with columns: id, product_id, order_id, quantity",
    )
    parser.add_argument(
        "--max-time",
        type=int,
        default=None,
        help="Training cutoff in epoch millis (default: use every order)",
    )
    parser.add_argument("--user-id", type=int, default=None, help="User to recommend for")
    parser.add_argument(
        "--cart",
        type=parse_cart,
        default=[],
        help="Comma-separated product ids in the cart",
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=DEFAULT_MAX_RECOMMENDATIONS,
        help=f"Number of recommendations (default: {DEFAULT_MAX_RECOMMENDATIONS})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    return parser.parse_args()


def main() -> int:
    """Main entry point for the training script.

    Returns:
        Exit code: 0 on success, 1 on error.
    """
    try:
        args = parse_arguments()
        setup_logging(verbose=args.verbose)
        logger = logging.getLogger(__name__)

        selector = train_from_csv(
            orders_csv=args.orders_csv,
            order_items_csv=args.order_items_csv,
            max_time=args.max_time,
            max_recommendations=args.top_n,
        )

        if args.cart:
            cart = [OrderItem(product_id=product_id) for product_id in args.cart]
            recommendations = selector.recommend_products(args.user_id, cart)
            print(f"\nRecommendations for user {args.user_id} with cart {args.cart}:")
            for rank, product_id in enumerate(recommendations, 1):
                print(f"  {rank}. Product {product_id}")
        else:
            logger.info("No cart given, skipping recommendation")

        return 0

    except FileNotFoundError as e:
        logging.error(f"File error: {e}")
        return 1
    except ValueError as e:
        logging.error(f"Validation error: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Training interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
