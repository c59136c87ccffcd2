"""
Static Store Directory
======================

Loads the store directory once at process start. The directory is a JSON
file holding either a list of store objects or {"stores": [...]}.

Usage:
    directory = StoreDirectory.from_json("data/stores.json")
    store = directory.get("12")
    teams = directory.teams()
"""

import json
import logging
import re
from pathlib import Path
from typing import List, Dict, Optional, Iterable

from .store_models import Store

logger = logging.getLogger(__name__)

_CODE_NUMBER = re.compile(r"(\d+)")


class StoreDirectory:
    """Immutable, id-indexed collection of stores."""

    def __init__(self, stores: Iterable[Store]):
        self._stores: List[Store] = []
        self._by_id: Dict[str, Store] = {}
        for store in stores:
            if store.id in self._by_id:
                raise ValueError(f"Duplicate store id in directory: {store.id}")
            self._by_id[store.id] = store
            self._stores.append(store)

    @classmethod
    def from_json(cls, path: str) -> "StoreDirectory":
        """Load the directory from a JSON file."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        records = raw.get("stores", []) if isinstance(raw, dict) else raw
        directory = cls(Store.from_dict(r) for r in records)
        logger.info(f"Store directory loaded: {len(directory)} stores from {path}")
        return directory

    @property
    def stores(self) -> List[Store]:
        return list(self._stores)

    def get(self, store_id: str) -> Optional[Store]:
        return self._by_id.get(store_id)

    def regions(self) -> List[str]:
        return _distinct(s.region for s in self._stores)

    def states(self) -> List[str]:
        return _distinct(s.state for s in self._stores)

    def teams(self) -> List[str]:
        return _distinct(s.team for s in self._stores if s.team)

    def __len__(self) -> int:
        return len(self._stores)

    def __iter__(self):
        return iter(self._stores)


def format_store_name(store: Store) -> str:
    """Format a store as "<code> - <name>" (just the name without a code)."""
    return store.display_name


def code_number(store: Store) -> float:
    """
    Numeric part of a store code ("CE20" -> 20, "CE1101" -> 1101).

    Stores without a usable code sort last (infinity).
    """
    if not store.code:
        return float("inf")
    match = _CODE_NUMBER.search(store.code)
    if match:
        return int(match.group(1))
    return float("inf")


def sort_by_code(stores: Iterable[Store]) -> List[Store]:
    """Sort stores by the numeric part of their code, code-less stores last."""
    return sorted(stores, key=code_number)


def _distinct(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)
