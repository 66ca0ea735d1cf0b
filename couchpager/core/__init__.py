from couchpager.core.history import CursorHistory
from couchpager.core.cursor import BaseCursor
from couchpager.core.view import ViewCursor
from couchpager.core.mango import MangoCursor
from couchpager.core.paginate import (
    paginated,
    paginate,
    paginate_all_docs,
    paginate_query,
    paginate_find,
    PaginatedDatabase,
)

__all__ = [
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
]
