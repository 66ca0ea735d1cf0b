from __future__ import annotations

import copy
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from couchpager.utils.exceptions import EmptyHistory

FrozenOptions = Mapping[str, Any]


class CursorHistory:
    """Ordered stack of the exact options used for each page advanced into.

    Entries are frozen snapshots: mutating the mapping that was pushed does
    not change what a later replay sends to the fetch function.
    """

    def __init__(self) -> None:
        self._entries: list[FrozenOptions] = []

    def push(self, options: Mapping[str, Any]) -> FrozenOptions:
        """Store a frozen copy of ``options`` on top of the stack."""
        entry = MappingProxyType(copy.deepcopy(dict(options)))
        self._entries.append(entry)
        return entry

    def pop(self) -> FrozenOptions:
        """Remove and return the top entry.

        Raises:
            EmptyHistory: If the stack is empty
        """
        if not self._entries:
            raise EmptyHistory("Cursor history is empty")
        return self._entries.pop()

    def peek(self, back: int = 0) -> FrozenOptions:
        """Return an entry without removing it.

        Args:
            back: How many entries below the top to look (0 is the top)

        Raises:
            EmptyHistory: If the stack holds no entry at that position
        """
        if back < 0 or back >= len(self._entries):
            raise EmptyHistory(
                f"Cursor history has {len(self._entries)} entries, cannot look back {back}"
            )
        return self._entries[-1 - back]

    def clear(self) -> None:
        self._entries.clear()

    @property
    def depth(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[FrozenOptions]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"CursorHistory(depth={len(self._entries)})"
