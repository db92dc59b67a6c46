"""HTTP clients for the persistence service and peer recommenders."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from tearec.api.exceptions import FetchFailedError, SourceUnavailableError
from tearec.recommender.entities import Order, OrderItem

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

_ORDER_ITEMS = TypeAdapter(List[OrderItem])
_ORDERS = TypeAdapter(List[Order])


class PersistenceClient:
    """Reads the order history from the persistence service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _get(self, path: str) -> httpx.Response:
        with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            response = client.get(path)
            response.raise_for_status()
            return response

    def is_generation_finished(self) -> bool:
        """Ask persistence whether database generation has finished.

        Raises:
            SourceUnavailableError: If persistence cannot be reached or answers
                with an error status.
        """
        url = f"{self.base_url}/generatedb/finished"
        try:
            response = self._get("/generatedb/finished")
        except httpx.HTTPError as e:
            raise SourceUnavailableError(url, str(e)) from e
        return response.text.strip().lower() == "true"

    def get_order_items(self) -> List[OrderItem]:
        """Fetch every order item.

        Raises:
            FetchFailedError: If the request or payload decoding fails.
        """
        return self._fetch("orderitems", _ORDER_ITEMS)

    def get_orders(self) -> List[Order]:
        """Fetch every order.

        Raises:
            FetchFailedError: If the request or payload decoding fails.
        """
        return self._fetch("orders", _ORDERS)

    def _fetch(self, endpoint: str, adapter: TypeAdapter) -> list:
        try:
            response = self._get(f"/{endpoint}")
            return adapter.validate_python(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            raise FetchFailedError(endpoint, e) from e


class PeerClient:
    """Multicasts requests to the other recommender replicas."""

    def __init__(
        self,
        peer_urls: List[str],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.peer_urls = [url.rstrip("/") for url in peer_urls]
        self.timeout = timeout
        self.transport = transport

    def _get_timestamp(self, peer_url: str) -> Optional[httpx.Response]:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                return client.get(
                    f"{peer_url}/train/timestamp",
                    headers={"Accept": "text/plain"},
                )
        except httpx.HTTPError as e:
            logger.warning(
                "Peer did not answer the timestamp request",
                extra={"peer_url": peer_url, "error": str(e)},
            )
            return None

    def fetch_max_times(self) -> List[Optional[httpx.Response]]:
        """Ask every peer for its training cutoff.

        Returns:
            One entry per peer: the response, or None if the peer could not be
            reached.
        """
        if not self.peer_urls:
            return []
        with ThreadPoolExecutor(max_workers=len(self.peer_urls)) as pool:
            return list(pool.map(self._get_timestamp, self.peer_urls))
