"""Training endpoints for the TeaRec API.

``/train`` runs a training round on the calling worker thread. The other
endpoints expose the cutoff and readiness to peers and load balancers.
"""

import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from tearec.api.dependencies import get_selector, get_synchronizer
from tearec.api.metrics import metrics_service
from tearec.recommender.selector import RecommenderSelector
from tearec.recommender.sync import TRAINING_FAILED, TrainingSynchronizer

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/train",
    tags=["training"],
)


class TrainingStatusResponse(BaseModel):
    """State of the training cycle for operators.

    ``ready`` only means no round is running; ``last_training_succeeded``
    tells whether the last round actually trained on fresh data.
    """

    ready: bool = Field(..., description="No training round is in progress")
    trained: bool = Field(..., description="At least one round has trained the recommender")
    last_training_succeeded: bool
    max_time: Optional[int] = Field(None, description="Adopted cutoff in epoch millis")
    last_training_size: int
    last_training_duration_ms: Optional[float] = None
    last_trained_at: Optional[datetime] = None


@router.get("", response_class=PlainTextResponse)
def train(synchronizer: TrainingSynchronizer = Depends(get_synchronizer)) -> PlainTextResponse:
    """Trigger a (re)training round.

    Fetches every order and order item from persistence, so it is expensive.
    Calling it again retrains from scratch.
    """
    start_time = time.time()
    number = TRAINING_FAILED
    try:
        number = synchronizer.retrieve_data_and_retrain()
    except Exception:
        logger.error("The (re)train process failed.", exc_info=True)
    duration_ms = round((time.time() - start_time) * 1000, 2)
    metrics_service.record_training(duration_ms, number != TRAINING_FAILED)

    if number == TRAINING_FAILED:
        return PlainTextResponse(
            "The (re)train process failed.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return PlainTextResponse(
        f"The (re)train was successfully done. It took {duration_ms}ms and {number} "
        "of Orderitems were retrieved from the database."
    )


@router.get("/timestamp", response_class=PlainTextResponse)
def get_timestamp(synchronizer: TrainingSynchronizer = Depends(get_synchronizer)) -> PlainTextResponse:
    """Return the cutoff used by the last training round."""
    max_time = synchronizer.max_time
    if max_time is None:
        return PlainTextResponse(
            "The collection of the current maxTime was not possible.",
            status_code=status.HTTP_412_PRECONDITION_FAILED,
        )
    return PlainTextResponse(str(max_time))


@router.get("/isready")
def is_ready(synchronizer: TrainingSynchronizer = Depends(get_synchronizer)) -> JSONResponse:
    """Report whether no training round is running.

    Returns 200 with ``true``, or 500 with ``false`` during training.
    """
    if synchronizer.ready:
        return JSONResponse(True)
    return JSONResponse(False, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/status", response_model=TrainingStatusResponse)
def training_status(
    synchronizer: TrainingSynchronizer = Depends(get_synchronizer),
    selector: RecommenderSelector = Depends(get_selector),
) -> TrainingStatusResponse:
    """Describe the outcome of the last training round."""
    current = synchronizer.status
    return TrainingStatusResponse(
        ready=synchronizer.ready,
        trained=selector.is_trained,
        last_training_succeeded=current.last_training_succeeded,
        max_time=synchronizer.max_time,
        last_training_size=current.last_training_size,
        last_training_duration_ms=current.last_training_duration_ms,
        last_trained_at=current.last_trained_at,
    )
