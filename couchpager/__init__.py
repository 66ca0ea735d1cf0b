from couchpager.core import (
    CursorHistory,
    BaseCursor,
    ViewCursor,
    MangoCursor,
    paginated,
    paginate,
    paginate_all_docs,
    paginate_query,
    paginate_find,
    PaginatedDatabase,
)
from couchpager.lifecycle import (
    enable_tracing,
    disable_tracing,
    FetchEvent,
    add_listener,
    record_fetches,
)
from couchpager.integrations import view_fetcher, find_fetcher
from couchpager.utils import (
    CouchPagerError,
    UsageError,
    EmptyHistory,
    CursorBusy,
    InvalidOptions,
    MalformedPage,
    InvalidBookmark,
    CursorSettings,
    ExhaustionPolicy,
    DEFAULT_LIMIT,
)

__all__ = [
    # Core
    "CursorHistory",
    "BaseCursor",
    "ViewCursor",
    "MangoCursor",
    "paginated",
    "paginate",
    "paginate_all_docs",
    "paginate_query",
    "paginate_find",
    "PaginatedDatabase",
    # Lifecycle
    "enable_tracing",
    "disable_tracing",
    "FetchEvent",
    "add_listener",
    "record_fetches",
    # Integrations
    "view_fetcher",
    "find_fetcher",
    # Utils
    "CouchPagerError",
    "UsageError",
    "EmptyHistory",
    "CursorBusy",
    "InvalidOptions",
    "MalformedPage",
    "InvalidBookmark",
    "CursorSettings",
    "ExhaustionPolicy",
    "DEFAULT_LIMIT",
]
