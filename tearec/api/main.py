"""FastAPI application main module.

Builds the recommender service: one recommender selector and one training
synchronizer per process, stored on ``app.state`` and shared by the routes.
"""

import logging
import threading
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tearec import __version__
from tearec.api.exceptions import TeaRecException
from tearec.api.logging_config import RequestLoggingMiddleware
from tearec.api.metrics import metrics_service
from tearec.api.routes import recommend, train
from tearec.config import Settings, get_settings
from tearec.recommender.clients import PeerClient, PersistenceClient
from tearec.recommender.selector import RecommenderSelector
from tearec.recommender.sync import TrainingSynchronizer

logger = logging.getLogger(__name__)


def build_synchronizer(settings: Settings, selector: RecommenderSelector) -> TrainingSynchronizer:
    """Wire the synchronizer to the persistence service and the peers."""
    return TrainingSynchronizer(
        recommender=selector,
        source=PersistenceClient(settings.persistence_url, timeout=settings.request_timeout_seconds),
        peers=PeerClient(settings.peer_urls, timeout=settings.request_timeout_seconds),
        pinned_max_time=settings.pinned_max_time,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.train_on_startup:
        logger.info("Starting initial training round in the background")
        threading.Thread(
            target=app.state.synchronizer.retrieve_data_and_retrain,
            name="initial-training",
            daemon=True,
        ).start()
    yield
    app.state.synchronizer.cancel()


def create_app(
    settings: Optional[Settings] = None,
    selector: Optional[RecommenderSelector] = None,
    synchronizer: Optional[TrainingSynchronizer] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Service settings. Read from the environment if omitted.
        selector: Recommender selector. A Slope-One/popularity pair if omitted.
        synchronizer: Training synchronizer. Built from settings if omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    selector = selector or RecommenderSelector(max_recommendations=settings.max_recommendations)
    synchronizer = synchronizer or build_synchronizer(settings, selector)

    app = FastAPI(
        title="TeaRec API",
        description="Tea-shop product recommendation service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.selector = selector
    app.state.synchronizer = synchronizer

    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(train.router)
    app.include_router(recommend.router)

    @app.exception_handler(TeaRecException)
    async def handle_tearec_exception(request: Request, exc: TeaRecException) -> JSONResponse:
        logger.warning(
            exc.message,
            extra={"path": str(request.url.path), "status_code": exc.status_code},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": type(exc).__name__,
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.get("/ping")
    def ping() -> Dict[str, str]:
        """Health check endpoint.

        Returns:
            Dictionary with status key set to "ok".
        """
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics() -> Dict:
        """Return recommendation and training metrics."""
        return metrics_service.get_metrics()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from tearec.api.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
