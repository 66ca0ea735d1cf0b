"""Fetch functions backed by a pymongo AsyncCollection.

``view_fetcher`` speaks the key-range protocol (``rows`` pages addressed by
``startkey``/``endkey``/``skip``) and ``find_fetcher`` speaks the bookmark
protocol (``docs`` pages continued by an opaque ``bookmark``), so either
cursor kind can page through a MongoDB collection.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime
from typing import Any, Mapping

from bson import Binary, Decimal128, Int64, MaxKey, MinKey, ObjectId, Regex, Timestamp, json_util
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.collection import AsyncCollection

from couchpager.utils.exceptions import InvalidBookmark, InvalidOptions
from couchpager.utils.types import DEFAULT_LIMIT, FetchFunction, PageResult, QueryOptions

logger = logging.getLogger(__name__)


def encode_bookmark(last_id: Any) -> str:
    """Encode the last seen ``_id`` as an opaque, URL-safe bookmark."""
    payload = json_util.dumps({"_id": last_id})
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_bookmark(bookmark: str) -> Any:
    """Decode a bookmark produced by :func:`encode_bookmark`.

    Raises:
        InvalidBookmark: If the token is not a valid bookmark
    """
    try:
        payload = base64.urlsafe_b64decode(bookmark.encode("ascii")).decode("utf-8")
        return json_util.loads(payload)["_id"]
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise InvalidBookmark(f"Invalid bookmark: {bookmark!r}") from e


def _and(*clauses: dict[str, Any]) -> dict[str, Any]:
    """Combine filter clauses, dropping empty ones."""
    present = [c for c in clauses if c]
    if not present:
        return {}
    if len(present) == 1:
        return dict(present[0])
    return {"$and": present}


# BSON comparison order of type brackets, as $type aliases. Comparison
# operators only match within a bracket while sort spans them all.
_TYPE_BRACKETS: list[tuple[str, ...]] = [
    ("minKey",),
    ("null",),
    ("int", "long", "double", "decimal"),
    ("string", "symbol"),
    ("object",),
    ("array",),
    ("binData",),
    ("objectId",),
    ("bool",),
    ("date",),
    ("timestamp",),
    ("regex",),
    ("maxKey",),
]


def _bracket(value: Any) -> int:
    """Index of ``value``'s BSON type bracket in ``_TYPE_BRACKETS``."""
    if value is None:
        return 1
    if isinstance(value, bool):
        return 8
    if isinstance(value, (int, float, Int64, Decimal128)):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, Mapping):
        return 4
    if isinstance(value, (list, tuple)):
        return 5
    if isinstance(value, (bytes, Binary)):
        return 6
    if isinstance(value, ObjectId):
        return 7
    if isinstance(value, datetime):
        return 9
    if isinstance(value, Timestamp):
        return 10
    if isinstance(value, (Regex, re.Pattern)):
        return 11
    if isinstance(value, MinKey):
        return 0
    if isinstance(value, MaxKey):
        return 12
    raise InvalidOptions(f"Unsupported key type for a view bound: {type(value).__name__}")


def _bound(key: str, op: str, value: Any) -> dict[str, Any]:
    """Inclusive bound on ``key`` that also admits keys of other BSON types
    sorting past ``value`` in the direction of ``op``."""
    bracket = _bracket(value)
    if op == "$gte":
        others = _TYPE_BRACKETS[bracket + 1 :]
    else:
        others = _TYPE_BRACKETS[:bracket]
    aliases = [alias for group in others for alias in group]
    if not aliases:
        return {key: {op: value}}
    return {"$or": [{key: {op: value}}, {key: {"$type": aliases}}]}


def view_fetcher(
    collection: AsyncCollection,
    key: str,
    filter: dict[str, Any] | None = None,
    *,
    include_docs: bool = True,
) -> FetchFunction:
    """Build a key-range fetch function emitting one row per document.

    Rows are ``{"key": doc[key], "id": str(doc["_id"])}`` (plus ``"doc"``
    when ``include_docs``), ordered by ``(key, _id)``. ``startkey`` and
    ``endkey`` are inclusive; ``descending`` reverses the order and the
    meaning of the two bounds, as in CouchDB views.

    Keys may mix BSON types. A bound admits every key that sorts past it,
    including keys of other types (numbers sort before strings, and so on).
    Documents missing the key field sort with ``null`` keys but are only
    reached by a sweep that starts below them.

    Args:
        collection: Collection to read
        key: Field emitted as the row key
        filter: Base MongoDB filter applied to every page
        include_docs: Whether each row carries the full document
    """
    base_filter = dict(filter or {})

    async def fetch(options: QueryOptions) -> PageResult:
        descending = bool(options.get("descending"))
        direction = DESCENDING if descending else ASCENDING
        start_op, end_op = ("$lte", "$gte") if descending else ("$gte", "$lte")

        clauses = [base_filter]
        if options.get("startkey") is not None:
            clauses.append(_bound(key, start_op, options["startkey"]))
        if options.get("endkey") is not None:
            clauses.append(_bound(key, end_op, options["endkey"]))
        query = _and(*clauses)

        cursor = collection.find(query).sort([(key, direction), ("_id", direction)])
        skip = options.get("skip", 0)
        if skip:
            cursor = cursor.skip(skip)
        cursor = cursor.limit(options.get("limit", DEFAULT_LIMIT))

        rows = []
        async for raw in cursor:
            row: dict[str, Any] = {"key": raw.get(key), "id": str(raw["_id"])}
            if include_docs:
                row["doc"] = raw
            rows.append(row)
        logger.debug("view page on %s: %d rows for %r", collection.name, len(rows), query)
        return {"rows": rows, "offset": skip}

    return fetch


def _id_direction(sort: Any) -> int:
    """Resolve a Mango ``sort`` option to a direction on ``_id``.

    Only ``_id`` can be sorted on, since it is what the bookmark records.

    Raises:
        InvalidOptions: If ``sort`` names any other field or direction
    """
    if not sort:
        return ASCENDING
    fields = [sort] if isinstance(sort, (str, Mapping)) else list(sort)
    if len(fields) != 1:
        raise InvalidOptions(f"find_fetcher can only sort by _id, got sort={sort!r}")
    field = fields[0]
    if isinstance(field, str):
        name, order = field, "asc"
    elif isinstance(field, Mapping) and len(field) == 1:
        name, order = next(iter(field.items()))
    else:
        raise InvalidOptions(f"Invalid sort field: {field!r}")
    if name != "_id":
        raise InvalidOptions(f"find_fetcher can only sort by _id, got sort={sort!r}")
    if order not in ("asc", "desc"):
        raise InvalidOptions(f"Invalid sort direction for _id: {order!r}")
    return ASCENDING if order == "asc" else DESCENDING


def find_fetcher(collection: AsyncCollection, filter: dict[str, Any] | None = None) -> FetchFunction:
    """Build a bookmark fetch function over documents ordered by ``_id``.

    Honors Mango-style ``selector`` (merged with ``filter``), ``fields``
    (projection) and ``sort`` options; ``sort`` may only name ``_id``, as
    ``["_id"]`` or ``[{"_id": "desc"}]``. A page shorter than ``limit``
    carries an empty bookmark, since nothing can follow it.

    Args:
        collection: Collection to read
        filter: Base MongoDB filter applied to every page
    """
    base_filter = dict(filter or {})

    async def fetch(options: QueryOptions) -> PageResult:
        limit = options.get("limit", DEFAULT_LIMIT)
        direction = _id_direction(options.get("sort"))
        after: dict[str, Any] = {}
        if options.get("bookmark"):
            op = "$gt" if direction == ASCENDING else "$lt"
            after = {"_id": {op: decode_bookmark(options["bookmark"])}}
        query = _and(base_filter, options.get("selector") or {}, after)

        projection = None
        if options.get("fields"):
            projection = {name: 1 for name in options["fields"]}
            projection["_id"] = 1

        cursor = collection.find(query, projection).sort("_id", direction).limit(limit)
        docs = [raw async for raw in cursor]
        bookmark = encode_bookmark(docs[-1]["_id"]) if len(docs) == limit else ""
        logger.debug("find page on %s: %d docs for %r", collection.name, len(docs), query)
        return {"docs": docs, "bookmark": bookmark}

    return fetch
