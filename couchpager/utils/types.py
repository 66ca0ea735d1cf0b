from typing import Any, Awaitable, Callable, Mapping

# Type aliases for better clarity
QueryOptions = dict[str, Any]
PageResult = Mapping[str, Any]
FetchFunction = Callable[[QueryOptions], Awaitable[PageResult]]

# Constants
DEFAULT_LIMIT = 20  # Page size when none is given
VIEW_OPTION_KEYS = ("startkey", "endkey", "skip")
MANGO_OPTION_KEYS = ("bookmark",)
CURSOR_OPTION_KEYS = ("limit", *VIEW_OPTION_KEYS, *MANGO_OPTION_KEYS, "exhaustion")


def merge_options(
    base: Mapping[str, Any] | None = None,
    override: Mapping[str, Any] | None = None,
    **kwargs: Any
) -> QueryOptions:
    """Merge multiple option mappings with proper precedence.

    Args:
        base: Base options
        override: Override options (takes precedence over base)
        **kwargs: Additional options (highest precedence)

    Returns:
        Merged options dictionary
    """
    return {**(base or {}), **(override or {}), **kwargs}
