import pytest

from couchpager.core.history import CursorHistory
from couchpager.utils.exceptions import EmptyHistory


class TestCursorHistory:
    def test_starts_empty(self):
        history = CursorHistory()
        assert history.depth == 0
        assert not history
        assert list(history) == []

    def test_push_and_pop_are_lifo(self):
        history = CursorHistory()
        history.push({"limit": 2})
        history.push({"limit": 2, "startkey": "b", "skip": 1})
        assert history.depth == 2
        assert history.pop() == {"limit": 2, "startkey": "b", "skip": 1}
        assert history.pop() == {"limit": 2}
        assert history.depth == 0

    def test_entries_are_frozen_copies(self):
        history = CursorHistory()
        options = {"limit": 2, "startkey": ["a", 1]}
        history.push(options)
        options["limit"] = 99
        options["startkey"].append(2)

        entry = history.peek()
        assert entry == {"limit": 2, "startkey": ["a", 1]}
        with pytest.raises(TypeError):
            entry["limit"] = 3

    def test_peek_back(self):
        history = CursorHistory()
        history.push({"page": 1})
        history.push({"page": 2})
        assert history.peek() == {"page": 2}
        assert history.peek(1) == {"page": 1}
        with pytest.raises(EmptyHistory):
            history.peek(2)

    def test_pop_empty_raises(self):
        with pytest.raises(EmptyHistory):
            CursorHistory().pop()

    def test_peek_empty_raises(self):
        with pytest.raises(EmptyHistory):
            CursorHistory().peek()

    def test_iterates_oldest_first(self):
        history = CursorHistory()
        for page in range(3):
            history.push({"page": page})
        assert [entry["page"] for entry in history] == [0, 1, 2]

    def test_clear(self):
        history = CursorHistory()
        history.push({"page": 1})
        history.clear()
        assert len(history) == 0
