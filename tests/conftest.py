import operator
from typing import Any

import pytest
from bson import ObjectId

from couchpager import disable_tracing


class FakeView:
    """In-memory view query: rows ordered by (key, id), inclusive key bounds."""

    def __init__(self, keys: list[Any]) -> None:
        self.rows = [{"key": key, "id": f"doc{i:03d}", "value": None} for i, key in enumerate(keys)]
        self.rows.sort(key=lambda row: (row["key"], row["id"]))
        self.calls: list[dict[str, Any]] = []
        self.fail_on_call: int | None = None

    async def __call__(self, options: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(dict(options))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise ConnectionError("backend unavailable")
        rows = self.rows
        if "startkey" in options:
            rows = [row for row in rows if row["key"] >= options["startkey"]]
        if "endkey" in options:
            rows = [row for row in rows if row["key"] <= options["endkey"]]
        skip = options.get("skip", 0)
        rows = rows[skip:]
        if "limit" in options:
            rows = rows[: options["limit"]]
        return {"total_rows": len(self.rows), "offset": skip, "rows": [dict(row) for row in rows]}

    @property
    def ids(self) -> list[str]:
        return [row["id"] for row in self.rows]


class FakeMango:
    """In-memory Mango find: the bookmark is an opaque offset token.

    With ``empty_final_bookmark`` the page that reaches the end of the data
    carries an empty bookmark; otherwise a bookmark is always returned.
    """

    def __init__(self, count: int, *, empty_final_bookmark: bool = False) -> None:
        self.docs = [{"_id": f"doc{i:03d}", "n": i} for i in range(count)]
        self.empty_final_bookmark = empty_final_bookmark
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, options: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(dict(options))
        start = int(options["bookmark"].removeprefix("bm-")) if options.get("bookmark") else 0
        docs = self.docs[start : start + options.get("limit", 25)]
        end = start + len(docs)
        bookmark = f"bm-{end}"
        if self.empty_final_bookmark and docs and end >= len(self.docs):
            bookmark = ""
        return {"docs": [dict(doc) for doc in docs], "bookmark": bookmark}

    @property
    def ids(self) -> list[str]:
        return [doc["_id"] for doc in self.docs]


_OPERATORS = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}

# Just the BSON brackets the tests use, in BSON sort order
_BRACKETS = ["null", "number", "string", "object", "objectId", "bool"]
_ALIASES = {"int": "number", "long": "number", "double": "number", "decimal": "number"}


def _bson_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, ObjectId):
        return "objectId"
    raise TypeError(f"no BSON bracket for {value!r}")


def _sort_key(value: Any) -> tuple[int, Any]:
    kind = _bson_type(value)
    return _BRACKETS.index(kind), (0 if value is None else value)


def _compare(op: str, value: Any, operand: Any) -> bool:
    if op == "$ne":
        return value != operand
    if op == "$type":
        return _bson_type(value) in {_ALIASES.get(alias, alias) for alias in operand}
    # Comparison operators only match values of the same type bracket
    if _bson_type(value) != _bson_type(operand):
        return False
    return _OPERATORS[op](value, operand)


def _matches(doc: dict[str, Any], spec: dict[str, Any]) -> bool:
    for field, cond in spec.items():
        if field == "$and":
            if not all(_matches(doc, clause) for clause in cond):
                return False
            continue
        if field == "$or":
            if not any(_matches(doc, clause) for clause in cond):
                return False
            continue
        value = doc.get(field)
        if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
            if not all(_compare(op, value, operand) for op, operand in cond.items()):
                return False
        elif value != cond:
            return False
    return True


class FakeMongoCursor:
    def __init__(self, docs: list[dict[str, Any]], projection: dict[str, int] | None) -> None:
        self._docs = docs
        self._projection = projection
        self._skip = 0
        self._limit = 0

    def sort(self, key_or_list: Any, direction: int | None = None) -> "FakeMongoCursor":
        if isinstance(key_or_list, str):
            spec = [(key_or_list, direction or 1)]
        else:
            spec = list(key_or_list)
        for field, order in reversed(spec):
            self._docs.sort(key=lambda doc: _sort_key(doc.get(field)), reverse=order < 0)
        return self

    def skip(self, n: int) -> "FakeMongoCursor":
        self._skip = n
        return self

    def limit(self, n: int) -> "FakeMongoCursor":
        self._limit = n
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        docs = self._docs[self._skip :]
        if self._limit:
            docs = docs[: self._limit]
        for doc in docs:
            if self._projection:
                yield {k: v for k, v in doc.items() if k in self._projection}
            else:
                yield dict(doc)


class FakeCollection:
    """Just enough of pymongo's AsyncCollection for the fetchers."""

    def __init__(self, docs: list[dict[str, Any]], name: str = "items") -> None:
        self.name = name
        self.docs = [dict(doc) for doc in docs]
        self.queries: list[dict[str, Any]] = []

    def find(self, filter: dict[str, Any] | None = None, projection: dict[str, int] | None = None) -> FakeMongoCursor:
        spec = filter or {}
        self.queries.append(spec)
        return FakeMongoCursor([doc for doc in self.docs if _matches(doc, spec)], projection)


@pytest.fixture(autouse=True)
def reset_tracing():
    """Reset observability state between tests."""
    yield
    disable_tracing()


@pytest.fixture
def make_view():
    return FakeView


@pytest.fixture
def make_mango():
    return FakeMango


@pytest.fixture
def make_collection():
    return FakeCollection
