"""
Store Review Insights Data Models
=================================

Dataclasses representing the entities every analysis consumes.

Models:
    - Store: A physical retail location from the static directory
    - Review: A single customer rating event fetched from the places provider
    - Scope: Filter descriptor selecting a subset of stores (also a cache key)
"""

import json
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Dict, Any


VALID_RATINGS = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class Store:
    """
    A physical retail location.

    Loaded once from the store directory and never mutated during a run.
    A store belongs to exactly one state and region and at most one team.
    """
    id: str
    name: str
    place_id: str
    state: str
    region: str
    code: Optional[str] = None
    team: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Name formatted as "<code> - <name>" when the store has a code."""
        if self.code:
            return f"{self.code} - {self.name}"
        return self.name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Store":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            place_id=data.get("place_id", ""),
            state=data["state"],
            region=data["region"],
            code=data.get("code") or None,
            team=data.get("team") or None,
            address=data.get("address") or None,
            city=data.get("city") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Review:
    """
    A single customer rating event.

    rating is always an integer in 1..5; reviews referencing an unknown
    store are dropped by consumers rather than treated as errors.
    """
    id: str
    store_id: str
    place_id: str
    date: datetime
    rating: int
    comment: Optional[str] = None
    author: Optional[str] = None
    author_url: Optional[str] = None
    source_timestamp: Optional[datetime] = None  # original provider time

    def __post_init__(self):
        if self.rating not in VALID_RATINGS:
            raise ValueError(f"rating must be an integer in 1..5, got: {self.rating!r}")

    @property
    def has_comment(self) -> bool:
        return bool(self.comment and self.comment.strip())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        source_ts = data.get("source_timestamp")
        return cls(
            id=str(data["id"]),
            store_id=str(data["store_id"]),
            place_id=data.get("place_id", ""),
            date=_parse_datetime(data["date"]),
            rating=int(data["rating"]),
            comment=data.get("comment") or None,
            author=data.get("author"),
            author_url=data.get("author_url"),
            source_timestamp=_parse_datetime(source_ts) if source_ts else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["source_timestamp"] = (
            self.source_timestamp.isoformat() if self.source_timestamp else None
        )
        return data


@dataclass(frozen=True)
class Scope:
    """
    Filter descriptor selecting a subset of stores.

    store_id takes absolute precedence; team, state and region are
    AND-composable predicates where absent fields impose no constraint.
    A Scope has no identity beyond its field values.
    """
    store_id: Optional[str] = None
    team: Optional[str] = None
    state: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def of(
        cls,
        store_id: Optional[str] = None,
        team: Optional[str] = None,
        state: Optional[str] = None,
        region: Optional[str] = None,
    ) -> "Scope":
        """Build a scope, normalising blank strings to None."""
        return cls(
            store_id=(store_id or "").strip() or None,
            team=(team or "").strip() or None,
            state=(state or "").strip() or None,
            region=(region or "").strip() or None,
        )

    @property
    def has_filter(self) -> bool:
        return any((self.store_id, self.team, self.state, self.region))

    def resolved(self) -> "Scope":
        """The effective scope: store_id discards every other field."""
        if self.store_id:
            return Scope(store_id=self.store_id)
        return self

    def narrowed(self) -> "Scope":
        """
        Most specific scope used for summaries.

        store > team (+ state, else + region) > state > region.
        """
        if self.store_id:
            return Scope(store_id=self.store_id)
        if self.team:
            if self.state:
                return Scope(team=self.team, state=self.state)
            return Scope(team=self.team, region=self.region)
        if self.state:
            return Scope(state=self.state)
        if self.region:
            return Scope(region=self.region)
        return Scope()

    @property
    def descriptor(self) -> str:
        """Human-readable scope label, e.g. 'store:12', 'team:X', 'network'."""
        if self.store_id:
            return f"store:{self.store_id}"
        if self.team:
            return f"team:{self.team}"
        if self.state:
            return f"state:{self.state}"
        if self.region:
            return f"region:{self.region}"
        return "network"

    def canonical_key(self) -> str:
        """Canonical serialization used as a cache key."""
        fields = {k: v for k, v in asdict(self).items() if v}
        return json.dumps(fields, sort_keys=True, ensure_ascii=False)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
