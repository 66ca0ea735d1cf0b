from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from couchpager.utils.exceptions import MalformedPage


class Row(BaseModel):
    """A single row of a key-range (view or _all_docs) page."""

    model_config = ConfigDict(extra="allow")

    key: Any
    id: Any = None


class RowPage(BaseModel):
    """Key-range page result: an ordered list of rows."""

    model_config = ConfigDict(extra="allow")

    rows: list[Row]

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def first_key(self) -> Any:
        return self.rows[0].key

    @property
    def last_key(self) -> Any:
        return self.rows[-1].key

    def count_key(self, key: Any) -> int:
        """Count the rows whose key equals ``key``."""
        return sum(1 for row in self.rows if row.key == key)


class DocPage(BaseModel):
    """Bookmark page result: a list of documents and a continuation token."""

    model_config = ConfigDict(extra="allow")

    docs: list[dict[str, Any]]
    bookmark: Any

    def __len__(self) -> int:
        return len(self.docs)


def _validate(model: type[BaseModel], page: Any) -> Any:
    if not isinstance(page, Mapping):
        raise MalformedPage(
            f"Expected a mapping for a {model.__name__}, got {type(page).__name__}"
        )
    try:
        return model.model_validate(dict(page))
    except ValidationError as e:
        raise MalformedPage(f"Fetch function returned a malformed {model.__name__}: {e}") from e


def parse_row_page(page: Any) -> RowPage:
    """Validate a fetch result as a row page.

    Raises:
        MalformedPage: If ``rows`` is missing or a row has no ``key``
    """
    return _validate(RowPage, page)


def parse_doc_page(page: Any) -> DocPage:
    """Validate a fetch result as a doc page.

    Raises:
        MalformedPage: If ``docs`` or ``bookmark`` is missing
    """
    return _validate(DocPage, page)
