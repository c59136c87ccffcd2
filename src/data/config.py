"""
Store Review Insights Configuration Module
==========================================

Centralized configuration management using environment variables.
Supports both .env files and system environment variables.

Environment Variables:
    GOOGLE_MAPS_API_KEY: Places API key (optional, offline sample data when unset)
    PLACES_LANGUAGE: Review language requested from the provider (default: pt-BR)
    PLACES_REQUEST_TIMEOUT: HTTP socket timeout in seconds (default: 10)

    FETCH_BATCH_SIZE: Stores fetched concurrently per batch (default: 5)
    FETCH_BATCH_DELAY_MS: Pause between batches in ms (default: 200)
    FETCH_STORE_TIMEOUT: Budget per store fetch in seconds (default: 10)
    FETCH_REQUEST_TIMEOUT: Budget for a full request in seconds (default: 60)
    FETCH_UNFILTERED_STORE_CAP: Max stores without filters (default: 30)
    FETCH_FILTERED_STORE_CAP: Max stores with any filter (default: 100)
    FETCH_REFRESH_STORE_CAP: Max stores on forced refresh (default: 100)

    CACHE_TTL_SECONDS: Cache entry lifetime (default: 3600)
    CACHE_MAX_ENTRIES: Entries kept per cache domain (default: 10)
    PLACE_CACHE_MAX_ENTRIES: Place details kept in memory (default: 500)

    LLM_PROVIDER: openai | anthropic (default: picked from available keys)
    LLM_MODEL: Model name (default: provider default)
    LLM_TEMPERATURE: Sampling temperature (default: 0.3)

    ANOMALY_THRESHOLD: Store average below which anomalies are flagged (default: 3.5)
    RANKING_LIMIT: Entries in best/worst rankings (default: 10)

    STORE_DIRECTORY_PATH: JSON store directory (default: data/stores.json)
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file if present
env_path = PROJECT_ROOT / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """
    Get environment variable with optional default and required validation.

    Args:
        key: Environment variable name
        default: Default value if not set
        required: If True, raises ValueError when not set

    Returns:
        Environment variable value or default

    Raises:
        ValueError: If required=True and variable is not set
    """
    value = os.getenv(key, default)
    if required and value is None:
        raise ValueError(f"Required environment variable '{key}' is not set")
    return value


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be a float, got: {value}")


def get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class PlacesConfig:
    """Places/reviews provider configuration."""

    api_key: Optional[str] = field(default_factory=lambda: get_env("GOOGLE_MAPS_API_KEY"))
    language: str = field(default_factory=lambda: get_env("PLACES_LANGUAGE", "pt-BR"))
    request_timeout: int = field(default_factory=lambda: get_env_int("PLACES_REQUEST_TIMEOUT", 10))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def __post_init__(self):
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")


@dataclass
class FetchConfig:
    """Review fetch batching and latency bounds."""

    batch_size: int = field(default_factory=lambda: get_env_int("FETCH_BATCH_SIZE", 5))
    batch_delay_ms: int = field(default_factory=lambda: get_env_int("FETCH_BATCH_DELAY_MS", 200))

    # Timeouts in seconds
    store_timeout: float = field(default_factory=lambda: get_env_float("FETCH_STORE_TIMEOUT", 10.0))
    request_timeout: float = field(default_factory=lambda: get_env_float("FETCH_REQUEST_TIMEOUT", 60.0))

    # Store caps (bound worst-case latency)
    unfiltered_store_cap: int = field(default_factory=lambda: get_env_int("FETCH_UNFILTERED_STORE_CAP", 30))
    filtered_store_cap: int = field(default_factory=lambda: get_env_int("FETCH_FILTERED_STORE_CAP", 100))
    refresh_store_cap: int = field(default_factory=lambda: get_env_int("FETCH_REFRESH_STORE_CAP", 100))

    def __post_init__(self):
        """Validate configuration."""
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if self.batch_delay_ms < 0:
            raise ValueError("batch_delay_ms cannot be negative")
        if self.store_timeout <= 0 or self.request_timeout <= 0:
            raise ValueError("fetch timeouts must be positive")
        if min(self.unfiltered_store_cap, self.filtered_store_cap, self.refresh_store_cap) <= 0:
            raise ValueError("store caps must be positive")


@dataclass
class CacheConfig:
    """In-memory cache bounds."""

    ttl_seconds: int = field(default_factory=lambda: get_env_int("CACHE_TTL_SECONDS", 3600))
    max_entries: int = field(default_factory=lambda: get_env_int("CACHE_MAX_ENTRIES", 10))
    place_max_entries: int = field(default_factory=lambda: get_env_int("PLACE_CACHE_MAX_ENTRIES", 500))

    def __post_init__(self):
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if self.max_entries <= 0 or self.place_max_entries <= 0:
            raise ValueError("cache bounds must be positive")


@dataclass
class LLMConfig:
    """Summarization collaborator configuration."""

    provider: Optional[str] = field(default_factory=lambda: get_env("LLM_PROVIDER"))
    model: Optional[str] = field(default_factory=lambda: get_env("LLM_MODEL"))
    temperature: float = field(default_factory=lambda: get_env_float("LLM_TEMPERATURE", 0.3))

    def __post_init__(self):
        if self.provider and self.provider not in ("openai", "anthropic"):
            raise ValueError(f"Unknown LLM_PROVIDER: {self.provider}")


@dataclass
class AnalysisConfig:
    """Thresholds used by the dashboard analytics."""

    anomaly_threshold: float = field(default_factory=lambda: get_env_float("ANOMALY_THRESHOLD", 3.5))
    ranking_limit: int = field(default_factory=lambda: get_env_int("RANKING_LIMIT", 10))

    def __post_init__(self):
        if not 0 <= self.anomaly_threshold <= 5:
            raise ValueError("anomaly_threshold must be between 0 and 5")
        if self.ranking_limit <= 0:
            raise ValueError("ranking_limit must be positive")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: get_env("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: get_env("LOG_FILE"))

    # Structured logging
    json_logs: bool = field(default_factory=lambda: get_env_bool("LOG_JSON", False))


@dataclass
class Settings:
    """Main application settings container."""

    places: PlacesConfig = field(default_factory=PlacesConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    store_directory_path: str = field(
        default_factory=lambda: get_env(
            "STORE_DIRECTORY_PATH", str(PROJECT_ROOT / "data" / "stores.json")
        )
    )

    # Application metadata
    app_name: str = "store-review-insights"
    app_version: str = "0.1.0"
    environment: str = field(default_factory=lambda: get_env("ENVIRONMENT", "development"))

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() in ("production", "prod")


def load_settings() -> Settings:
    """
    Load and validate all application settings.

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    return Settings()


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
