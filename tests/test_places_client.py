"""
Tests for the Places review client.

HTTP is mocked through a MagicMock session; no network calls are made.

Usage:
    pytest tests/test_places_client.py -v
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from src.data.config import PlacesConfig
from src.data.places_client import (
    GooglePlacesClient,
    PlacesError,
    SamplePlacesClient,
    best_candidate,
    create_places_client,
    parse_reviews,
)
from src.data.store_models import Store


# ============================================================================
# TEST DATA
# ============================================================================

def make_store(**overrides) -> Store:
    values = dict(
        id="7",
        name="Centauro Iguatemi",
        place_id="mall-1",
        state="SP",
        region="Sudeste",
        city="São Paulo",
    )
    values.update(overrides)
    return Store(**values)


def make_response(payload, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


def details_payload(place_id: str, types, reviews=None) -> dict:
    return {
        "status": "OK",
        "result": {
            "place_id": place_id,
            "name": "Shopping Iguatemi" if "shopping_mall" in types else "Centauro Iguatemi",
            "types": types,
            "reviews": reviews or [],
        },
    }


RAW_REVIEWS = [
    {"author_name": "Ana", "rating": 5, "text": "  Ótimo atendimento  ", "time": 1714521600},
    {"rating": 3, "text": "", "time": 1714608000},
    {"author_name": "Bia", "rating": 0, "text": "nota inválida", "time": 1714608000},
    {"author_name": "Caio", "rating": 2, "text": "sem data"},
    {"author_name": "Duda", "rating": 6, "text": "fora da escala", "time": 1714608000},
]


# ============================================================================
# PARSING
# ============================================================================

class TestParseReviews:

    def setup_method(self):
        self.reviews = parse_reviews({"place_id": "abc", "reviews": RAW_REVIEWS}, "7")

    def test_invalid_ratings_and_undated_dropped(self):
        assert [r.rating for r in self.reviews] == [5, 3]

    def test_fields_normalized(self):
        first = self.reviews[0]
        assert first.id == "abc-1714521600-0"
        assert first.store_id == "7"
        assert first.place_id == "abc"
        assert first.comment == "Ótimo atendimento"
        assert first.author == "Ana"
        assert first.date == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_empty_text_and_missing_author(self):
        second = self.reviews[1]
        assert second.comment is None
        assert second.author == "Anônimo"
        assert second.id == "abc-1714608000-1"

    def test_no_reviews(self):
        assert parse_reviews({"place_id": "abc"}, "7") == []


class TestBestCandidate:

    def test_skips_malls_and_missing_ids(self):
        candidates = [
            {"place_id": "m", "name": "Centauro Iguatemi", "types": ["shopping_mall"]},
            {"name": "Centauro Iguatemi", "types": ["store"]},
            {"place_id": "s", "name": "Centauro - Iguatemi SP", "types": ["store"]},
        ]
        assert best_candidate("Centauro Iguatemi", candidates)["place_id"] == "s"

    def test_closest_name_wins(self):
        candidates = [
            {"place_id": "a", "name": "Centauro Morumbi"},
            {"place_id": "b", "name": "Centauro Iguatemi"},
        ]
        assert best_candidate("Centauro Iguatemi", candidates)["place_id"] == "b"

    def test_dissimilar_names_rejected(self):
        candidates = [{"place_id": "x", "name": "Padaria do Zé"}]
        assert best_candidate("Centauro Iguatemi", candidates) is None


# ============================================================================
# GOOGLE CLIENT
# ============================================================================

class TestGooglePlacesClient:

    def setup_method(self):
        self.session = MagicMock()
        self.client = GooglePlacesClient(PlacesConfig(api_key="test-key"), session=self.session)

    def test_requires_api_key(self):
        with pytest.raises(PlacesError):
            GooglePlacesClient(PlacesConfig(api_key=""))

    def test_plain_store_fetched_once(self):
        review = {"author_name": "Ana", "rating": 4, "text": "Bom", "time": 1714521600}
        self.session.get.return_value = make_response(
            details_payload("store-1", ["store"], [review])
        )

        reviews = self.client.fetch_store_reviews(make_store(place_id="store-1"))

        assert len(reviews) == 1
        assert reviews[0].place_id == "store-1"
        assert self.session.get.call_count == 1
        params = self.session.get.call_args.kwargs["params"]
        assert params["key"] == "test-key"
        assert params["language"] == "pt-BR"
        assert self.client.get_stats() == {"mode": "google", "requests_made": 1, "reviews_fetched": 1}

    def test_mall_place_re_resolved(self):
        review = {"author_name": "Ana", "rating": 5, "text": "Top", "time": 1714521600}
        self.session.get.side_effect = [
            make_response(details_payload("mall-1", ["shopping_mall", "point_of_interest"])),
            make_response({
                "status": "OK",
                "candidates": [
                    {"place_id": "mall-1", "name": "Shopping Iguatemi", "types": ["shopping_mall"]},
                    {"place_id": "store-9", "name": "Centauro Iguatemi", "types": ["store"]},
                ],
            }),
            make_response(details_payload("store-9", ["store"], [review])),
        ]

        details = self.client.resolve_place_details(make_store())

        assert details["place_id"] == "store-9"
        urls = [call.args[0] for call in self.session.get.call_args_list]
        assert urls[1].endswith("/findplacefromtext/json")
        assert self.session.get.call_args_list[1].kwargs["params"]["input"] == "Centauro Iguatemi São Paulo"

    def test_mall_without_candidate_keeps_details(self):
        self.session.get.side_effect = [
            make_response(details_payload("mall-1", ["shopping_mall"])),
            make_response({"status": "ZERO_RESULTS", "candidates": []}),
        ]
        details = self.client.resolve_place_details(make_store())
        assert details["place_id"] == "mall-1"

    def test_error_status_raises(self):
        self.session.get.return_value = make_response(
            {"status": "REQUEST_DENIED", "error_message": "bad key"}
        )
        with pytest.raises(PlacesError, match="REQUEST_DENIED"):
            self.client.get_place_details("p1")

    def test_http_error_raises(self):
        self.session.get.return_value = make_response({}, status_code=500)
        with pytest.raises(PlacesError, match="500"):
            self.client.get_place_details("p1")

    def test_transport_error_raises(self):
        self.session.get.side_effect = requests.ConnectionError("down")
        with pytest.raises(PlacesError):
            self.client.get_place_details("p1")


# ============================================================================
# SAMPLE CLIENT
# ============================================================================

class TestSamplePlacesClient:

    def test_deterministic(self):
        store = make_store(place_id="sample-1")
        first = SamplePlacesClient().fetch_store_reviews(store)
        second = SamplePlacesClient().fetch_store_reviews(store)
        assert [r.to_dict() for r in first] == [r.to_dict() for r in second]
        assert 3 <= len(first) <= 7

    def test_reviews_valid(self):
        client = SamplePlacesClient()
        reviews = client.fetch_store_reviews(make_store(place_id="sample-2"))
        assert all(1 <= r.rating <= 5 for r in reviews)
        assert all(r.store_id == "7" for r in reviews)
        assert client.get_stats()["mode"] == "sample"

    def test_factory_without_key(self):
        assert isinstance(create_places_client(PlacesConfig(api_key=None)), SamplePlacesClient)

    def test_factory_with_key(self):
        assert isinstance(create_places_client(PlacesConfig(api_key="k")), GooglePlacesClient)
