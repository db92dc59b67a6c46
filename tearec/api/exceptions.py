"""Custom exceptions for the TeaRec service.

Defines specific exception types for the training cycle and the
recommendation path. Each carries the HTTP status code used when it
reaches the API layer.
"""

from typing import Any, Dict, Optional


class TeaRecException(Exception):
    """Base exception for TeaRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class SourceUnavailableError(TeaRecException):
    """Raised when the persistence service cannot answer the readiness probe."""

    def __init__(self, url: str, reason: str):
        message = f"Persistence service at '{url}' is not available: {reason}"
        super().__init__(
            message=message,
            status_code=503,
            details={"url": url, "reason": reason},
        )


class FetchFailedError(TeaRecException):
    """Raised when the bulk read of orders or order items fails."""

    def __init__(self, endpoint: str, error: Exception):
        message = f"Failed to retrieve '{endpoint}' from persistence: {str(error)}"
        super().__init__(
            message=message,
            status_code=502,
            details={
                "endpoint": endpoint,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class UseFallbackError(TeaRecException):
    """Raised by an algorithm that cannot score the given user.

    The caller is expected to switch to another recommender.
    """

    def __init__(self, message: str, user_id: Optional[int] = None):
        super().__init__(
            message=message,
            status_code=409,
            details={"user_id": user_id},
        )


class NotTrainedError(TeaRecException):
    """Raised when no training round has completed successfully yet."""

    def __init__(self, recommender: str):
        message = f"{recommender} is not trained yet. Trigger /train first."
        super().__init__(
            message=message,
            status_code=503,
            details={"recommender": recommender, "reason": "not_trained"},
        )


class RecommendationError(TeaRecException):
    """Raised when recommendation generation fails."""

    def __init__(self, user_id: Optional[int], error: Exception):
        message = f"Failed to generate recommendations for user {user_id}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "user_id": user_id,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
