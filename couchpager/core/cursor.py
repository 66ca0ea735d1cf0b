from __future__ import annotations

import copy
import functools
import logging
from typing import Any, AsyncIterator, Callable, ClassVar, Mapping

from couchpager.core.history import CursorHistory
from couchpager.lifecycle.observability import track_fetch
from couchpager.utils.exceptions import CursorBusy, EmptyHistory
from couchpager.utils.settings import CursorSettings, SettingsResolver
from couchpager.utils.types import FetchFunction, PageResult, QueryOptions, merge_options

logger = logging.getLogger(__name__)


def _exclusive(method: Callable) -> Callable:
    """Reject a navigation call that starts while another is still awaiting."""

    @functools.wraps(method)
    async def wrapper(self: BaseCursor, *args: Any, **kwargs: Any) -> Any:
        if self._busy:
            raise CursorBusy(
                f"{type(self).__name__}.{method.__name__}() called while another "
                "navigation call on the same cursor is in progress"
            )
        self._busy = True
        try:
            return await method(self, *args, **kwargs)
        finally:
            self._busy = False

    return wrapper


class BaseCursor:
    """Bidirectional cursor over an async page fetch function.

    The base class owns the history bookkeeping that makes backward and
    same-page navigation replay exact queries. Subclasses supply their
    query fields (``_cursor_opts``), page validation (``_parse``), how a
    fetched page moves the cursor forward (``_advance``) and how a history
    entry restores it (``_restore``). Stepping back restores the dropped
    entry, so ``get_next_page()`` replays it; once back on the first page the
    first page's own entry is restored and the sweep starts over.

    Navigation calls must be awaited one at a time on a given instance.
    """

    kind: ClassVar[str] = "base"

    def __init__(self, fetch: FetchFunction, options: Mapping[str, Any] | None = None, **overrides: Any) -> None:
        given = {k: v for k, v in (options or {}).items() if v is not None}
        defaults = SettingsResolver.get_defaults(type(self))
        self._settings = CursorSettings.from_options(merge_options(defaults, given), **overrides)
        self._fetch_fn = fetch
        self._limit = self._settings.limit
        self._history = CursorHistory()
        # Optimistic until a page proves otherwise
        self._has_next_page = True
        self._busy = False

    # --- State ---

    @property
    def settings(self) -> CursorSettings:
        return self._settings

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def history(self) -> CursorHistory:
        return self._history

    @property
    def has_next_page(self) -> bool:
        return self._has_next_page

    @property
    def has_prev_page(self) -> bool:
        return self._history.depth > 1

    def get_opts(self, **forced: Any) -> QueryOptions:
        """Build the options for the next forward fetch.

        Values passed in ``forced`` take precedence over the cursor's own
        fields. History is not consulted.
        """
        opts = merge_options({"limit": self._limit}, forced)
        for key, value in self._cursor_opts().items():
            opts.setdefault(key, value)
        return opts

    # --- Navigation ---

    @_exclusive
    async def get_next_page(self) -> PageResult:
        """Fetch the page after the current one and make it current."""
        return await self._next_page()

    @_exclusive
    async def get_prev_page(self) -> PageResult:
        """Fetch the page before the current one and make it current.

        Raises:
            EmptyHistory: If there is no page before the current one
        """
        if not self.has_prev_page:
            raise EmptyHistory(
                f"{type(self).__name__} has no previous page; check has_prev_page first"
            )
        target = self._history.peek(1)
        page, _ = await self._fetch("prev", target)
        dropped = self._history.pop()
        if self._history.depth == 1:
            # Back on the first page: the next forward fetch starts over
            self._restore(self._history.peek())
        else:
            self._restore(dropped)
        self._has_next_page = True
        logger.debug("%s cursor moved back to page %d", self.kind, self._history.depth)
        return page

    @_exclusive
    async def get_same_page(self) -> PageResult:
        """Refetch the current page with its exact options.

        Before any page has been fetched this fetches and records the first page.
        """
        if not self._history:
            return await self._next_page()
        page, _ = await self._fetch("same", self._history.peek())
        return page

    async def pages(self) -> AsyncIterator[PageResult]:
        """Yield pages forward until the cursor is exhausted.

        The terminal (short or empty) page is yielded too. The generator is
        single-use; call ``pages()`` again to continue from the cursor's
        current state.
        """
        while self._has_next_page:
            yield await self.get_next_page()

    async def reverse(self) -> AsyncIterator[PageResult]:
        """Yield pages backward until the cursor is back on its first page.

        Yields nothing when there is no previous page, including before any
        forward navigation.
        """
        while self.has_prev_page:
            yield await self.get_prev_page()

    # --- Internal ---

    async def _next_page(self) -> PageResult:
        options = self.get_opts()
        page, parsed = await self._fetch("next", options)
        self._history.push(options)
        self._advance(parsed, options)
        logger.debug(
            "%s cursor advanced to page %d (has_next_page=%s)",
            self.kind,
            self._history.depth,
            self._has_next_page,
        )
        return page

    async def _fetch(self, operation: str, options: Mapping[str, Any]) -> tuple[PageResult, Any]:
        """Invoke the fetch function and validate the page it returns."""
        logger.debug("%s cursor fetching %s page with %r", self.kind, operation, dict(options))
        async with track_fetch(operation, self.kind, self._history.depth, options) as ctx:
            page = await self._fetch_fn(copy.deepcopy(dict(options)))
            parsed = self._parse(page)
            ctx["result_count"] = len(parsed)
        return page, parsed

    def _cursor_opts(self) -> QueryOptions:
        raise NotImplementedError

    def _parse(self, page: Any) -> Any:
        raise NotImplementedError

    def _advance(self, parsed: Any, options: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def _restore(self, entry: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(limit={self._limit}, depth={self._history.depth}, "
            f"has_next_page={self._has_next_page}, has_prev_page={self.has_prev_page})"
        )
