from __future__ import annotations

import logging
from typing import Any, Mapping

from couchpager.core.cursor import BaseCursor
from couchpager.utils.pagination import RowPage, parse_row_page
from couchpager.utils.types import QueryOptions

logger = logging.getLogger(__name__)


class ViewCursor(BaseCursor):
    """Key-range cursor for view queries and _all_docs.

    Pages are addressed with an inclusive ``startkey`` plus a ``skip`` over
    the rows at that key which were already returned, so runs of rows that
    share a key are never split into duplicated or dropped rows. ``endkey``
    is fixed for the cursor's lifetime.
    """

    kind = "view"

    def __init__(self, fetch, options=None, **overrides: Any) -> None:
        super().__init__(fetch, options, **overrides)
        self.startkey: Any = self._settings.startkey
        self.skip: int = self._settings.skip
        self._endkey: Any = self._settings.endkey

    @property
    def endkey(self) -> Any:
        return self._endkey

    def _cursor_opts(self) -> QueryOptions:
        opts: QueryOptions = {}
        if self.startkey is not None:
            opts["startkey"] = self.startkey
        if self._endkey is not None:
            opts["endkey"] = self._endkey
        if self.skip:
            opts["skip"] = self.skip
        return opts

    def _parse(self, page: Any) -> RowPage:
        return parse_row_page(page)

    def _advance(self, parsed: RowPage, options: Mapping[str, Any]) -> None:
        if not parsed.rows:
            # An empty page is not a page to come back to
            self._history.pop()
            self._has_next_page = False
            return

        boundary = parsed.last_key
        self._has_next_page = len(parsed) == self._limit

        if parsed.first_key == boundary and options.get("startkey") == boundary:
            # Whole page sits inside a run of one key that started before it:
            # seeking by key cannot move, so keep offsetting into the run.
            self.skip = options.get("skip", 0) + len(parsed)
            logger.debug("view cursor inside duplicate-key run, skip now %d", self.skip)
        else:
            self.skip = parsed.count_key(boundary)
        self.startkey = boundary

    def _restore(self, entry: Mapping[str, Any]) -> None:
        self.startkey = entry.get("startkey")
        self.skip = entry.get("skip", 0)
