"""
Store Review Insights Data Module
=================================

Store directory, entity models and the review-fetch collaborator.

This module provides:
    - Store, Review, Scope: entity and filter models
    - StoreDirectory: static store directory loaded at startup
    - GooglePlacesClient / SamplePlacesClient: places provider adapters
    - ReviewFetcher: batched, deadline-bounded review fetching

Quick Start:
    from src.data import StoreDirectory, ReviewFetcher, create_places_client

    directory = StoreDirectory.from_json("data/stores.json")
    fetcher = ReviewFetcher(create_places_client())
    reviews = await fetcher.fetch_reviews_for_stores(directory.stores)

Configuration:
    Set environment variables or create a .env file.
    See .env.example for all available options.
"""

from .config import get_settings, load_settings, Settings
from .store_models import Store, Review, Scope
from .store_directory import StoreDirectory, format_store_name, sort_by_code
from .batching import Deadline, process_in_batches
from .places_client import (
    GooglePlacesClient,
    SamplePlacesClient,
    PlacesError,
    create_places_client,
)
from .review_fetcher import ReviewFetcher, FetchTimeoutError

__all__ = [
    # Configuration
    "get_settings",
    "load_settings",
    "Settings",
    # Models
    "Store",
    "Review",
    "Scope",
    # Directory
    "StoreDirectory",
    "format_store_name",
    "sort_by_code",
    # Fetching
    "Deadline",
    "process_in_batches",
    "GooglePlacesClient",
    "SamplePlacesClient",
    "PlacesError",
    "create_places_client",
    "ReviewFetcher",
    "FetchTimeoutError",
]
