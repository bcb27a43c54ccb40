"""Per-quote star ratings, keyed by record id. No expiry."""

from __future__ import annotations
from typing import Dict, Optional

from .storage import RATINGS_KEY, KeyValueStore, read_json, write_json


MIN_RATING = 1
MAX_RATING = 5


class RatingsStore:

    def __init__(self, store: KeyValueStore, key: str = RATINGS_KEY):
        self._store = store
        self._key = key

    def get_rating(self, quote_id: str) -> Optional[int]:
        return self.all_ratings().get(quote_id)

    def save_rating(self, quote_id: str, rating: int) -> None:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValueError(f"rating must be an integer, got {rating!r}")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"rating must be between {MIN_RATING} and {MAX_RATING}")

        ratings = self.all_ratings()
        ratings[quote_id] = rating
        write_json(self._store, self._key, ratings)

    def all_ratings(self) -> Dict[str, int]:
        data = read_json(self._store, self._key)
        if not isinstance(data, dict):
            return {}
        # Skip values that are not plain integers
        return {
            str(k): v for k, v in data.items()
            if isinstance(v, int) and not isinstance(v, bool)
        }

    def remove_rating(self, quote_id: str) -> None:
        ratings = self.all_ratings()
        if ratings.pop(quote_id, None) is not None:
            write_json(self._store, self._key, ratings)
