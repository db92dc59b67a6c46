"""Order records consumed by the training pipeline.

Field names follow the camelCase JSON served by the persistence service;
Python code uses the snake_case attribute names.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Order(BaseModel):
    """A placed order. Only ``id``, ``user_id`` and ``time`` matter for training."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    user_id: int = Field(..., alias="userId")
    time: str = Field(..., description="ISO-8601 local date-time of the order")
    total_price_in_cents: Optional[int] = Field(default=None, alias="totalPriceInCents")

    def time_millis(self) -> int:
        """Return the order time as epoch milliseconds."""
        return to_millis(self.time)


class OrderItem(BaseModel):
    """One product line of an order (also used for the current cart)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = 0
    product_id: int = Field(..., alias="productId")
    order_id: int = Field(default=0, alias="orderId")
    quantity: int = 1
    unit_price_in_cents: Optional[int] = Field(default=None, alias="unitPriceInCents")


@dataclass
class OrderItemSet:
    """Products and quantities of a single order, grouped for training."""

    order_id: int
    user_id: Optional[int] = None
    orderset: Dict[int, int] = field(default_factory=dict)

    def add(self, product_id: int, quantity: int) -> None:
        self.orderset[product_id] = self.orderset.get(product_id, 0) + quantity


def to_millis(date: str) -> int:
    """Convert an ISO-8601 date-time string to epoch milliseconds.

    Naive strings are read in the local time zone, the way persistence
    writes them.
    """
    return round(datetime.fromisoformat(date).timestamp() * 1000)
