from couchpager.lifecycle.observability import (
    enable_tracing,
    disable_tracing,
    FetchEvent,
    add_listener,
    remove_listener,
    record_fetches,
    track_fetch,
)

__all__ = [
    "enable_tracing",
    "disable_tracing",
    "FetchEvent",
    "add_listener",
    "remove_listener",
    "record_fetches",
    "track_fetch",
]
