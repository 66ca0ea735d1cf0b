class CouchPagerError(Exception):
    """Base exception for all couchpager errors."""


class UsageError(CouchPagerError):
    """Raised when a cursor is driven in a way its contract forbids."""


class EmptyHistory(UsageError):
    """Raised when navigating backward with no previous page to return to."""


class CursorBusy(UsageError):
    """Raised when a navigation call starts while another one is still awaiting."""


class InvalidOptions(CouchPagerError, ValueError):
    """Raised when a cursor is configured with invalid options."""


class MalformedPage(CouchPagerError):
    """Raised when a fetch function returns a page of the wrong shape."""


class InvalidBookmark(CouchPagerError):
    """Raised when a bookmark token cannot be decoded."""
