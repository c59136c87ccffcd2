"""
Review Fetch Collaborator
=========================

Fetches reviews for many stores through a places client, in concurrent
batches, with a per-store timeout and an overall request deadline.

A store whose fetch fails or times out contributes no reviews; the batch
carries on. Only the overall deadline is terminal (FetchTimeoutError).

Usage:
    fetcher = ReviewFetcher(create_places_client(), FetchConfig())
    reviews = await fetcher.fetch_reviews_for_stores(stores)
"""

import asyncio
import logging
import time
from typing import List, Optional, Dict, Any

from src.cache import TTLCache

from .batching import Deadline, process_in_batches
from .config import FetchConfig
from .store_models import Review, Store

logger = logging.getLogger(__name__)


class FetchTimeoutError(Exception):
    """The overall review fetch budget was exceeded."""

    def __init__(self, message: str, stores_requested: int = 0, elapsed_seconds: float = 0.0):
        super().__init__(message)
        self.stores_requested = stores_requested
        self.elapsed_seconds = elapsed_seconds


class ReviewFetcher:
    """Batched, deadline-bounded review fetching with a place-detail cache."""

    def __init__(
        self,
        client,
        config: Optional[FetchConfig] = None,
        place_cache: Optional[TTLCache] = None,
    ):
        """
        Args:
            client: Places client exposing resolve_place_details(store) and
                fetch_store_reviews(store, details)
            config: Batch sizes and timeouts
            place_cache: Cache for resolved place details (keyed by place id)
        """
        self.client = client
        self.config = config or FetchConfig()
        self.place_cache = place_cache or TTLCache("places", ttl_seconds=3600, max_entries=500)

    async def _place_details(self, store: Store) -> Dict[str, Any]:
        key = f"place:{store.place_id}"
        details = self.place_cache.get(key)
        if details is not None:
            return details
        details = await asyncio.to_thread(self.client.resolve_place_details, store)
        self.place_cache.set(key, details)
        return details

    async def _fetch_store(self, store: Store) -> List[Review]:
        details = await self._place_details(store)
        return self.client.fetch_store_reviews(store, details)

    async def fetch_store_reviews(self, store: Store, deadline: Deadline) -> List[Review]:
        """Reviews of one store; [] on failure or timeout."""
        try:
            return await deadline.run(
                self._fetch_store(store),
                timeout=self.config.store_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Timed out fetching reviews for store {store.name} ({store.id})"
            )
        except Exception as e:
            logger.warning(
                f"Could not fetch reviews for store {store.name} ({store.id}): {e}"
            )
        return []

    async def fetch_reviews_for_stores(
        self,
        stores: List[Store],
        deadline: Optional[Deadline] = None,
    ) -> List[Review]:
        """
        Fetch reviews for every store, `batch_size` stores at a time.

        Raises:
            FetchTimeoutError: If the overall deadline expires
        """
        if not stores:
            return []

        deadline = deadline or Deadline(self.config.request_timeout)
        started = time.monotonic()
        logger.info(f"Fetching reviews for {len(stores)} stores...")

        try:
            per_store = await process_in_batches(
                stores,
                lambda store: self.fetch_store_reviews(store, deadline),
                batch_size=self.config.batch_size,
                delay_ms=self.config.batch_delay_ms,
                deadline=deadline,
            )
        except asyncio.TimeoutError:
            per_store = None

        elapsed = time.monotonic() - started
        if per_store is None or deadline.expired:
            raise FetchTimeoutError(
                f"Review fetch exceeded {deadline.seconds:.0f}s for {len(stores)} stores",
                stores_requested=len(stores),
                elapsed_seconds=elapsed,
            )

        reviews = [review for batch in per_store for review in batch]
        logger.info(
            f"Fetch complete: {len(reviews)} reviews from {len(stores)} stores "
            f"in {elapsed:.1f}s"
        )
        return reviews
