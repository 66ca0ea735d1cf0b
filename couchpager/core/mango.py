from __future__ import annotations

import logging
from typing import Any, Mapping

from couchpager.core.cursor import BaseCursor
from couchpager.utils.pagination import DocPage, parse_doc_page
from couchpager.utils.settings import ExhaustionPolicy
from couchpager.utils.types import QueryOptions

logger = logging.getLogger(__name__)


class MangoCursor(BaseCursor):
    """Bookmark cursor for Mango (_find) queries.

    Each page returns an opaque bookmark that is sent with the next request.
    Whether a falsy returned bookmark ends the sweep is decided by the
    ``exhaustion`` policy.
    """

    kind = "mango"

    def __init__(self, fetch, options=None, **overrides: Any) -> None:
        super().__init__(fetch, options, **overrides)
        self.bookmark: Any = self._settings.bookmark
        self.exhaustion: ExhaustionPolicy = self._settings.exhaustion

    def _cursor_opts(self) -> QueryOptions:
        if self.bookmark:
            return {"bookmark": self.bookmark}
        return {}

    def _parse(self, page: Any) -> DocPage:
        return parse_doc_page(page)

    def _advance(self, parsed: DocPage, options: Mapping[str, Any]) -> None:
        if not parsed.docs:
            self._history.pop()
            self._has_next_page = False
            return

        self.bookmark = parsed.bookmark
        if parsed.bookmark:
            return
        if self.exhaustion is ExhaustionPolicy.DOCS_OR_BOOKMARK:
            self._has_next_page = False
        else:
            logger.warning(
                "mango cursor received a non-empty page with an empty bookmark; "
                "the next page will restart the query from the beginning"
            )

    def _restore(self, entry: Mapping[str, Any]) -> None:
        self.bookmark = entry.get("bookmark")
