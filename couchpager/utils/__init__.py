from couchpager.utils.exceptions import (
    CouchPagerError,
    UsageError,
    EmptyHistory,
    CursorBusy,
    InvalidOptions,
    MalformedPage,
    InvalidBookmark,
)
from couchpager.utils.pagination import Row, RowPage, DocPage, parse_row_page, parse_doc_page
from couchpager.utils.settings import CursorSettings, ExhaustionPolicy, SettingsResolver, split_options
from couchpager.utils.types import (
    QueryOptions,
    PageResult,
    FetchFunction,
    merge_options,
    DEFAULT_LIMIT,
    CURSOR_OPTION_KEYS,
)

__all__ = [
    "CouchPagerError",
    "UsageError",
    "EmptyHistory",
    "CursorBusy",
    "InvalidOptions",
    "MalformedPage",
    "InvalidBookmark",
    "Row",
    "RowPage",
    "DocPage",
    "parse_row_page",
    "parse_doc_page",
    "CursorSettings",
    "ExhaustionPolicy",
    "SettingsResolver",
    "split_options",
    "QueryOptions",
    "PageResult",
    "FetchFunction",
    "merge_options",
    "DEFAULT_LIMIT",
    "CURSOR_OPTION_KEYS",
]
