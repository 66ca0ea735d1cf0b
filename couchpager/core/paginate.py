"""Explicit decoration of async query functions into cursors.

A paginated query is an ordinary callable: ``query(*args, **options)``
returns a cursor bound to the underlying query, or, with
``paginate=False``, the underlying query's own awaitable unchanged.
Nothing on the host client is modified.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional

from couchpager.core.cursor import BaseCursor
from couchpager.core.mango import MangoCursor
from couchpager.core.view import ViewCursor
from couchpager.utils.settings import split_options
from couchpager.utils.types import PageResult, QueryOptions, merge_options

logger = logging.getLogger(__name__)

QueryFunction = Callable[..., Any]


def paginated(cursor_class: type[BaseCursor], **defaults: Any) -> Callable[[QueryFunction], Callable[..., Any]]:
    """Decorator that turns an async query function into a cursor factory.

    Cursor-managed options (``limit``, ``startkey``, ``endkey``, ``skip``,
    ``bookmark``, ``exhaustion``) given at call time configure the cursor
    and are not forwarded verbatim; every other option is passed to each
    page query alongside the cursor's page options.

    Args:
        cursor_class: Cursor kind to construct
        **defaults: Cursor options applied to every call (call options win)

    Example:
        @paginated(ViewCursor, limit=50)
        async def query(view, **options): ...

        cursor = query("app/by_type", endkey="z")
        raw = await query("app/by_type", paginate=False)
    """

    def decorator(fn: QueryFunction) -> Callable[..., Any]:
        @functools.wraps(fn)
        def wrapper(*args: Any, paginate: bool = True, **options: Any) -> Any:
            if not paginate:
                return fn(*args, **options)

            cursor_opts, query_opts = split_options(options)

            async def fetch(page_options: QueryOptions) -> PageResult:
                return await fn(*args, **merge_options(query_opts, page_options))

            cursor = cursor_class(fetch, merge_options(defaults, cursor_opts))
            logger.debug("Created %r for %s", cursor, getattr(fn, "__qualname__", fn))
            return cursor

        return wrapper

    return decorator


def paginate_all_docs(fn: Optional[QueryFunction], **defaults: Any) -> Optional[Callable[..., Any]]:
    """Paginate an ``all_docs(**options)`` function with a ViewCursor."""
    if fn is None:
        return None
    return paginated(ViewCursor, **defaults)(fn)


def paginate_query(fn: Optional[QueryFunction], **defaults: Any) -> Optional[Callable[..., Any]]:
    """Paginate a ``query(view, **options)`` function with a ViewCursor."""
    if fn is None:
        return None
    return paginated(ViewCursor, **defaults)(fn)


def paginate_find(fn: Optional[QueryFunction], **defaults: Any) -> Optional[Callable[..., Any]]:
    """Paginate a ``find(**options)`` function with a MangoCursor.

    Returns None when ``fn`` is None, so hosts without Mango support stay without it.
    """
    if fn is None:
        return None
    return paginated(MangoCursor, **defaults)(fn)


class PaginatedDatabase:
    """Read-only view of a database client whose queries return cursors.

    ``all_docs``, ``query`` and ``find`` are paginated when the host has
    them (and are None otherwise); every other attribute is looked up on
    the host. The host object itself is left untouched.
    """

    def __init__(self, host: Any, **defaults: Any) -> None:
        self._host = host
        self.all_docs = paginate_all_docs(getattr(host, "all_docs", None), **defaults)
        self.query = paginate_query(getattr(host, "query", None), **defaults)
        self.find = paginate_find(getattr(host, "find", None), **defaults)

    @property
    def host(self) -> Any:
        return self._host

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not set in __init__
        if name == "_host":
            raise AttributeError(name)
        return getattr(self._host, name)

    def __repr__(self) -> str:
        return f"PaginatedDatabase({self._host!r})"


def paginate(host: Any, **defaults: Any) -> PaginatedDatabase:
    """Wrap a database client so its queries return cursors."""
    return PaginatedDatabase(host, **defaults)
