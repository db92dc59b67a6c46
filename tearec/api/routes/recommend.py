"""Recommendation endpoints for the TeaRec API.

The client posts the current cart; the response lists product ids to
suggest next, none of which is already in the cart.
"""

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from tearec.api.dependencies import get_selector
from tearec.api.exceptions import RecommendationError, TeaRecException
from tearec.api.metrics import metrics_service
from tearec.recommender.entities import OrderItem
from tearec.recommender.selector import RecommenderSelector

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(tags=["recommendations"])


def _recommend(
    selector: RecommenderSelector,
    user_id: Optional[int],
    current_items: List[OrderItem],
) -> List[int]:
    start_time = time.time()
    try:
        recommendations = selector.recommend_products(user_id, current_items)
    except TeaRecException:
        raise
    except Exception as e:
        logger.error(
            f"Error generating recommendations for user {user_id}: {e}",
            exc_info=True,
        )
        raise RecommendationError(user_id, e) from e

    latency_ms = (time.time() - start_time) * 1000
    metrics_service.record_recommendation(latency_ms)
    logger.info(
        "Recommendations generated",
        extra={
            "user_id": user_id,
            "cart_size": len(current_items),
            "num_recommendations": len(recommendations),
            "latency_ms": round(latency_ms, 2),
        },
    )
    return recommendations


@router.post("/recommend", response_model=List[int])
def recommend(
    current_items: List[OrderItem] = Body(..., description="Order items in the cart"),
    uid: Optional[int] = Query(None, description="User id, omitted for anonymous users"),
    selector: RecommenderSelector = Depends(get_selector),
) -> List[int]:
    """Recommend products for a cart.

    Example:
        POST /recommend?uid=42 with body ``[{"productId": 7, "quantity": 1}]``
    """
    return _recommend(selector, uid, current_items)


@router.post("/recommendsingle", response_model=List[int])
def recommend_single(
    item: OrderItem = Body(..., description="Single order item"),
    uid: Optional[int] = Query(None, description="User id, omitted for anonymous users"),
    selector: RecommenderSelector = Depends(get_selector),
) -> List[int]:
    """Recommend products for a single item, e.g. on a product page."""
    return _recommend(selector, uid, [item])
