import pytest

from quoteracer.errors import StorageError
from quoteracer.ratings import RatingsStore
from quoteracer.storage import RATINGS_KEY, MemoryKeyValueStore


class WriteFailingStore(MemoryKeyValueStore):

    def set(self, key, value):
        raise StorageError("Storage quota exceeded")


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def ratings(store):
    return RatingsStore(store)


class TestGetRating:
    """Reading a single rating."""

    def test_none_when_no_ratings(self, ratings):
        """No stored ratings yields None."""
        assert ratings.get_rating("quote-1") is None

    def test_none_for_unknown_id(self, ratings):
        """Unrated quotes yield None."""
        ratings.save_rating("quote-1", 5)
        assert ratings.get_rating("quote-2") is None

    def test_none_for_invalid_json(self, store, ratings):
        """Corrupt ratings read as absent."""
        store.set(RATINGS_KEY, "invalid-json")
        assert ratings.get_rating("quote-1") is None


class TestSaveRating:
    """Writing ratings."""

    def test_overwrite(self, ratings):
        """Saving again replaces the previous rating."""
        ratings.save_rating("quote-1", 3)
        ratings.save_rating("quote-1", 5)
        assert ratings.get_rating("quote-1") == 5

    def test_independent_ratings(self, ratings):
        """Ratings for different quotes do not interfere."""
        ratings.save_rating("quote-1", 4)
        ratings.save_rating("quote-2", 5)
        ratings.save_rating("quote-3", 3)
        assert ratings.all_ratings() == {"quote-1": 4, "quote-2": 5, "quote-3": 3}

    @pytest.mark.parametrize("value", [0, 6, 2.5, True, "5"])
    def test_out_of_range_or_non_integer(self, ratings, value):
        """Only integers 1 to 5 are accepted."""
        with pytest.raises(ValueError):
            ratings.save_rating("quote-1", value)

    def test_storage_errors_are_swallowed(self):
        """A failing store does not raise on save."""
        RatingsStore(WriteFailingStore()).save_rating("quote-1", 5)


class TestRemoveRating:
    """Removing ratings."""

    def test_remove_one_keeps_others(self, ratings):
        """Removing one rating keeps the rest."""
        ratings.save_rating("quote-1", 4)
        ratings.save_rating("quote-2", 5)
        ratings.remove_rating("quote-1")
        assert ratings.all_ratings() == {"quote-2": 5}

    def test_remove_missing_is_a_no_op(self, ratings):
        """Removing an unrated id changes nothing."""
        ratings.remove_rating("non-existent")
        assert ratings.all_ratings() == {}

    def test_non_integer_stored_values_are_ignored(self, store, ratings):
        """Foreign values in the namespace are filtered out."""
        store.set(RATINGS_KEY, '{"a": 4, "b": "five", "c": null}')
        assert ratings.all_ratings() == {"a": 4}
