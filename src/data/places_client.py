"""
Google Places Review Client
===========================

Fetches place details (rating summary + most relevant reviews) for a
store's provider place id.

Configuration:
    GOOGLE_MAPS_API_KEY: Places API key (from .env)
    PLACES_LANGUAGE: Language of returned review text (default pt-BR)

Strategy:
    1. Place Details for the configured place id.
    2. If the id resolves to a shopping mall rather than the store itself,
       search candidates for the store name and re-resolve to the best
       name match that is not a mall.
    3. Normalize provider reviews into Review records.

When no API key is configured, SamplePlacesClient returns a fixed,
deterministic set of reviews so the dashboard stays usable offline.
"""

import logging
from datetime import datetime, timezone, timedelta
from difflib import SequenceMatcher
from typing import List, Optional, Dict, Any

import requests

from .config import PlacesConfig
from .store_models import Review, Store, VALID_RATINGS

logger = logging.getLogger(__name__)


MALL_TYPES = {"shopping_mall"}
MIN_NAME_SIMILARITY = 0.5


class PlacesError(Exception):
    """Places provider HTTP or status error."""
    pass


class GooglePlacesClient:
    """
    Google Places API (legacy JSON endpoints) client.

    Calls are synchronous; the review fetcher runs them in worker threads.
    """

    BASE_URL = "https://maps.googleapis.com/maps/api/place"
    DETAIL_FIELDS = (
        "place_id,name,formatted_address,rating,"
        "user_ratings_total,reviews,types"
    )

    def __init__(self, config: Optional[PlacesConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or PlacesConfig()
        if not self.config.is_configured:
            raise PlacesError(
                "Google Maps API key not configured. Set GOOGLE_MAPS_API_KEY in .env"
            )
        self.session = session or requests.Session()
        self._requests_made = 0
        self._reviews_fetched = 0

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a Places endpoint and check the provider status field."""
        url = f"{self.BASE_URL}/{endpoint}/json"
        try:
            response = self.session.get(
                url,
                params={**params, "key": self.config.api_key},
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise PlacesError(f"Places request failed: {e}")
        self._requests_made += 1

        if response.status_code != 200:
            raise PlacesError(
                f"Places HTTP error: {response.status_code} - {response.text[:200]}"
            )

        payload = response.json()
        status = payload.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            message = payload.get("error_message", "")
            raise PlacesError(f"Places status {status}: {message}".strip())
        return payload

    def get_place_details(self, place_id: str) -> Dict[str, Any]:
        """Fetch details (including up to 5 reviews) for one place id."""
        payload = self._get("details", {
            "place_id": place_id,
            "fields": self.DETAIL_FIELDS,
            "language": self.config.language,
        })
        result = payload.get("result") or {}
        result.setdefault("place_id", place_id)
        return result

    def find_place_candidates(self, text: str) -> List[Dict[str, Any]]:
        """Search places matching free text. Returns candidate summaries."""
        payload = self._get("findplacefromtext", {
            "input": text,
            "inputtype": "textquery",
            "fields": "place_id,name,formatted_address,types",
            "language": self.config.language,
        })
        return payload.get("candidates", [])

    def resolve_place_details(self, store: Store) -> Dict[str, Any]:
        """
        Details for the store's place, re-resolved when the configured id
        points to the mall containing the store.
        """
        details = self.get_place_details(store.place_id)
        if not MALL_TYPES.intersection(details.get("types") or []):
            return details

        query = " ".join(p for p in (store.name, store.city or details.get("name")) if p)
        candidate = best_candidate(store.name, self.find_place_candidates(query))
        if candidate is None:
            logger.warning(
                f"Place {store.place_id} for store {store.id} is a mall "
                f"and no matching store candidate was found"
            )
            return details

        logger.info(
            f"Store {store.id}: re-resolved mall place {store.place_id} "
            f"to {candidate['place_id']} ({candidate.get('name')})"
        )
        return self.get_place_details(candidate["place_id"])

    def fetch_store_reviews(self, store: Store, details: Optional[Dict[str, Any]] = None) -> List[Review]:
        """Fetch and normalize the provider reviews of one store."""
        if details is None:
            details = self.resolve_place_details(store)
        reviews = parse_reviews(details, store.id)
        self._reviews_fetched += len(reviews)
        return reviews

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        return {
            "mode": "google",
            "requests_made": self._requests_made,
            "reviews_fetched": self._reviews_fetched,
        }


class SamplePlacesClient:
    """
    Offline stand-in for the Places API.

    Reviews are derived from the place id only, so repeated calls return
    identical data.
    """

    SAMPLE_REVIEWS = (
        (5, "Excelente atendimento e variedade de produtos esportivos."),
        (4, "Loja bem organizada, mas faltou alguns tamanhos no estoque."),
        (5, "Atendimento excepcional e produtos de qualidade."),
        (2, "Atendimento ruim, vendedores conversando e ninguém ajudou."),
        (3, "Preço alto comparado com o site, muito caro."),
        (1, "Comprei online e nunca entregou, abri protocolo e nada."),
        (4, "Ambiente limpo e organizado, troca fácil."),
        (5, None),
    )

    def __init__(self, reference_time: Optional[datetime] = None):
        self.reference_time = reference_time or datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
        self._reviews_fetched = 0
        logger.warning(
            "GOOGLE_MAPS_API_KEY not configured. Using offline sample reviews."
        )

    def get_place_details(self, place_id: str) -> Dict[str, Any]:
        seed = sum(ord(c) for c in place_id)
        count = 3 + seed % 5
        offset = seed % len(self.SAMPLE_REVIEWS)
        reviews = []
        for i in range(count):
            rating, text = self.SAMPLE_REVIEWS[(offset + i) % len(self.SAMPLE_REVIEWS)]
            posted = self.reference_time - timedelta(days=1 + i * 3 + seed % 7)
            reviews.append({
                "author_name": f"Cliente {i + 1}",
                "rating": rating,
                "text": text or "",
                "time": int(posted.timestamp()),
            })
        return {
            "place_id": place_id,
            "name": "Sample Store",
            "formatted_address": "Endereço de exemplo",
            "rating": round(sum(r["rating"] for r in reviews) / len(reviews), 1),
            "user_ratings_total": count,
            "reviews": reviews,
            "types": ["store"],
        }

    def resolve_place_details(self, store: Store) -> Dict[str, Any]:
        return self.get_place_details(store.place_id)

    def fetch_store_reviews(self, store: Store, details: Optional[Dict[str, Any]] = None) -> List[Review]:
        if details is None:
            details = self.resolve_place_details(store)
        reviews = parse_reviews(details, store.id)
        self._reviews_fetched += len(reviews)
        return reviews

    def get_stats(self) -> Dict[str, Any]:
        return {"mode": "sample", "reviews_fetched": self._reviews_fetched}


def create_places_client(config: Optional[PlacesConfig] = None):
    """Google client when an API key is configured, the sample client otherwise."""
    config = config or PlacesConfig()
    if config.is_configured:
        logger.info("Using Google Places API (live data)")
        return GooglePlacesClient(config)
    return SamplePlacesClient()


def best_candidate(store_name: str, candidates: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Closest non-mall candidate by name similarity, if similar enough."""
    best, best_score = None, MIN_NAME_SIMILARITY
    target = store_name.lower()
    for candidate in candidates:
        if MALL_TYPES.intersection(candidate.get("types") or []):
            continue
        if not candidate.get("place_id"):
            continue
        score = SequenceMatcher(None, target, (candidate.get("name") or "").lower()).ratio()
        if score >= best_score:
            best, best_score = candidate, score
    return best


def parse_reviews(details: Dict[str, Any], store_id: str) -> List[Review]:
    """
    Normalize provider reviews into Review records.

    Reviews with a rating outside 1..5 are dropped; empty text becomes None.
    """
    place_id = details.get("place_id", "")
    reviews = []

    for index, raw in enumerate(details.get("reviews") or []):
        rating = raw.get("rating")
        if rating not in VALID_RATINGS:
            logger.debug(f"Dropping review with rating {rating!r} for place {place_id}")
            continue

        posted_at = raw.get("time")
        if posted_at is None:
            logger.debug(f"Dropping undated review for place {place_id}")
            continue
        posted = datetime.fromtimestamp(int(posted_at), tz=timezone.utc)

        text = (raw.get("text") or "").strip()
        reviews.append(Review(
            id=f"{place_id}-{posted_at}-{index}",
            store_id=store_id,
            place_id=place_id,
            date=posted,
            rating=int(rating),
            comment=text or None,
            author=raw.get("author_name") or "Anônimo",
            author_url=raw.get("author_url"),
            source_timestamp=posted,
        ))

    return reviews
