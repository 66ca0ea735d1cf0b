from couchpager.integrations.mongo import (
    view_fetcher,
    find_fetcher,
    encode_bookmark,
    decode_bookmark,
)

__all__ = [
    "view_fetcher",
    "find_fetcher",
    "encode_bookmark",
    "decode_bookmark",
]
