"""Training synchronization across recommender replicas.

Before each training round the synchronizer waits for the persistence
service to finish generating data, fetches the full order history, and agrees
with the peer replicas on a cutoff timestamp so that every replica trains on
the same orders. The smallest cutoff reported wins.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

import httpx

from tearec.api.exceptions import FetchFailedError, SourceUnavailableError
from tearec.recommender.entities import Order, OrderItem

# Configure module logger
logger = logging.getLogger(__name__)

# Wait times in seconds between readiness checks of the persistence service
SOURCE_WAIT_TIMES = (1, 2, 5, 10, 30, 60)
# Wait time once SOURCE_WAIT_TIMES is exhausted
SOURCE_MAX_WAIT_TIME = 120

# Returned by retrieve_data_and_retrain when the round failed
TRAINING_FAILED = -1


@dataclass
class TrainingStatus:
    """Outcome of the most recent training round."""

    last_training_succeeded: bool = False
    last_training_size: int = TRAINING_FAILED
    last_training_duration_ms: Optional[float] = None
    last_trained_at: Optional[datetime] = None


def wait_times() -> Iterable[float]:
    """Yield the backoff schedule, then SOURCE_MAX_WAIT_TIME forever."""
    yield from SOURCE_WAIT_TIMES
    while True:
        yield SOURCE_MAX_WAIT_TIME


class TrainingSynchronizer:
    """Drives training rounds and holds the cutoff and readiness state.

    One instance exists per service process. It is created at startup and
    shared by the HTTP routes.

    Args:
        recommender: Object with a ``train(order_items, orders)`` method.
        source: Persistence client (``is_generation_finished``,
            ``get_order_items``, ``get_orders``).
        peers: Peer client with ``fetch_max_times()``.
        pinned_max_time: Cutoff to use in every round instead of consensus.
        wait: Sleep function taking (seconds, cancel_event); returns True if
            cancelled. Defaults to ``cancel_event.wait``.
    """

    def __init__(
        self,
        recommender,
        source,
        peers,
        pinned_max_time: Optional[int] = None,
        wait: Optional[Callable[[float, threading.Event], bool]] = None,
    ):
        self.recommender = recommender
        self.source = source
        self.peers = peers
        self.pinned_max_time = pinned_max_time
        self._wait = wait or (lambda seconds, event: event.wait(seconds))

        self._train_lock = threading.Lock()
        self._cancel_event = threading.Event()

        self.max_time: Optional[int] = pinned_max_time
        self.ready = False
        self.status = TrainingStatus()

    def cancel(self) -> None:
        """Stop waiting for persistence; the running round fails."""
        self._cancel_event.set()

    def wait_for_source(self) -> bool:
        """Block until persistence reports that data generation finished.

        Polls forever on the backoff schedule unless cancelled.

        Returns:
            True once persistence is ready, False if cancelled.
        """
        for wait_time in wait_times():
            if self._cancel_event.is_set():
                return False
            try:
                if self.source.is_generation_finished():
                    return True
                reason = "generation not finished"
            except SourceUnavailableError as e:
                reason = e.message
            logger.info(
                f"Persistence not ready. Waiting for {wait_time}s.",
                extra={"wait_seconds": wait_time, "reason": reason},
            )
            if self._wait(wait_time, self._cancel_event):
                return False
        return False

    def retrieve_data_and_retrain(self) -> int:
        """Run one full training round.

        Overlapping calls are serialized. Readiness is false for the whole
        round and true afterwards, even when fetching failed, so that callers
        are never blocked forever. ``status.last_training_succeeded`` tells the
        two cases apart.

        Returns:
            Number of order items plus orders trained on, or -1 on failure.
        """
        with self._train_lock:
            self.ready = False
            start_time = time.time()
            size = TRAINING_FAILED
            try:
                size = self._run_round()
                return size
            finally:
                self.ready = True
                self.status = TrainingStatus(
                    last_training_succeeded=size != TRAINING_FAILED,
                    last_training_size=size,
                    last_training_duration_ms=round((time.time() - start_time) * 1000, 2),
                    last_trained_at=datetime.now(),
                )

    def _run_round(self) -> int:
        logger.debug("Waiting for persistence before training")

        if not self.wait_for_source():
            logger.warning("Training round cancelled while waiting for persistence")
            return TRAINING_FAILED

        try:
            order_items = self.source.get_order_items()
            logger.debug(f"Retrieved {len(order_items)} order items, retrieving orders now")
            orders = self.source.get_orders()
            logger.debug(f"Retrieved {len(orders)} orders, starting training now")
        except FetchFailedError as e:
            logger.error(f"Database retrieving failed: {e.message}", extra=e.details)
            return TRAINING_FAILED

        order_items, orders = self.filter_lists(order_items, orders)
        self.recommender.train(order_items, orders)
        logger.info(
            "Finished training, ready for recommendation",
            extra={"num_order_items": len(order_items), "num_orders": len(orders), "max_time": self.max_time},
        )
        return len(order_items) + len(orders)

    def filter_lists(
        self,
        order_items: List[OrderItem],
        orders: List[Order],
    ) -> Tuple[List[OrderItem], List[Order]]:
        """Agree on the cutoff and drop everything newer."""
        self.max_time = self.pinned_max_time
        if self.pinned_max_time is None:
            self.synchronize_max_time()

        if self.max_time is None and orders:
            # we are the only known service
            self.max_time = max(order.time_millis() for order in orders)

        return filter_for_max_time(order_items, orders, self.max_time)

    def synchronize_max_time(self) -> None:
        """Lower the cutoff to the smallest value reported by the peers."""
        for response in self.peers.fetch_max_times():
            milli_ts = parse_max_time_response(response)
            if milli_ts is not None:
                self.update_max_time_from_remote(milli_ts)

    def update_max_time_from_remote(self, milli_ts: int) -> None:
        if self.max_time is None:
            self.max_time = milli_ts
            return
        if self.max_time != milli_ts:
            logger.warning(
                f"Services disagree about timestamp: {self.max_time} vs {milli_ts}. Using the minimum."
            )
        self.max_time = min(self.max_time, milli_ts)


def parse_max_time_response(response: Optional[httpx.Response]) -> Optional[int]:
    """Extract a peer's cutoff from its reply, or None if unusable."""
    if response is None:
        logger.warning("One service response was null and is therefore not available for time-check.")
        return None
    if response.status_code != httpx.codes.OK:
        logger.warning(
            "Service was not available for time-check",
            extra={"status_code": response.status_code, "url": _response_url(response)},
        )
        return None
    try:
        return int(response.text.strip())
    except ValueError:
        logger.warning(
            "Service returned an unreadable timestamp",
            extra={"body": response.text[:100], "url": _response_url(response)},
        )
        return None


def _response_url(response: httpx.Response) -> Optional[str]:
    try:
        return str(response.request.url)
    except RuntimeError:
        return None


def filter_for_max_time(
    order_items: List[OrderItem],
    orders: List[Order],
    max_time: Optional[int],
) -> Tuple[List[OrderItem], List[Order]]:
    """Drop orders newer than max_time and the items of dropped orders.

    A max_time of None keeps every order.
    """
    if max_time is not None:
        orders = [order for order in orders if order.time_millis() <= max_time]
    valid_order_ids = {order.id for order in orders}
    order_items = [item for item in order_items if item.order_id in valid_order_ids]
    return order_items, orders
