"""Settings resolution utilities for cursor configuration."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, NonNegativeInt, PositiveInt, ValidationError

from couchpager.utils.exceptions import InvalidOptions
from couchpager.utils.types import CURSOR_OPTION_KEYS, DEFAULT_LIMIT, QueryOptions


class ExhaustionPolicy(str, Enum):
    """How a bookmark cursor decides that no pages remain."""

    # Only an empty doc list ends the sweep
    EMPTY_DOCS = "empty_docs"
    # An empty doc list or a falsy returned bookmark ends the sweep
    DOCS_OR_BOOKMARK = "docs_or_bookmark"


class CursorSettings(BaseModel):
    """Validated cursor configuration.

    Only ``limit`` is common to every cursor kind; the remaining fields are
    read by the cursor kind they belong to and ignored by the others.
    """

    model_config = ConfigDict(frozen=True)

    limit: PositiveInt = DEFAULT_LIMIT
    startkey: Any = None
    endkey: Any = None
    skip: NonNegativeInt = 0
    bookmark: Any = None
    exhaustion: ExhaustionPolicy = ExhaustionPolicy.DOCS_OR_BOOKMARK

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None, **overrides: Any) -> CursorSettings:
        """Build settings from the recognised keys of ``options``.

        Unrecognised keys are ignored. ``None`` values fall back to defaults.

        Raises:
            InvalidOptions: If a recognised value is invalid
        """
        merged = {**(options or {}), **overrides}
        values = {
            key: merged[key]
            for key in CURSOR_OPTION_KEYS
            if merged.get(key) is not None
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidOptions(f"Invalid cursor options: {e}") from e


class SettingsResolver:
    """Resolves cursor defaults from an inner Settings class."""

    @staticmethod
    def get_defaults(cls: type) -> QueryOptions:
        """Get cursor option defaults declared on ``cls.Settings``.

        Args:
            cls: Cursor class

        Returns:
            Mapping of recognised option names to their declared defaults
        """
        settings = getattr(cls, "Settings", None)
        if settings is None:
            return {}
        return {
            key: getattr(settings, key)
            for key in CURSOR_OPTION_KEYS
            if hasattr(settings, key)
        }


def split_options(options: Mapping[str, Any] | None) -> tuple[QueryOptions, QueryOptions]:
    """Separate cursor-managed options from passthrough query options.

    Args:
        options: Options given to a paginated query call

    Returns:
        Tuple of (cursor options, query options)
    """
    cursor_opts: QueryOptions = {}
    query_opts: QueryOptions = {}
    for key, value in (options or {}).items():
        if key in CURSOR_OPTION_KEYS:
            cursor_opts[key] = value
        else:
            query_opts[key] = value
    return cursor_opts, query_opts
