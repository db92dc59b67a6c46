"""TeaRec: recommender service for the tea-shop storefront.

This package trains item-based collaborative filtering models on the order
history and serves product recommendations for shopping carts.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Training pipeline, algorithms and replica synchronization
"""

__version__ = "0.1.0"
