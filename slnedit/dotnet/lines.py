"""Mutable, index-addressed sequence of text lines."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


class LineBuffer:
    """Ordered lines with 0-based indices.

    Lines are stored without terminators. Inserting or removing shifts
    the index of every line below the edit point.
    """

    def __init__(self, lines: Iterable[str] = ()) -> None:
        self._lines: list[str] = list(lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def __getitem__(self, index: int) -> str:
        return self._lines[index]

    @property
    def lines(self) -> tuple[str, ...]:
        """Snapshot of the current lines."""
        return tuple(self._lines)

    def insert(self, index: int, *lines: str) -> None:
        """Insert ``lines`` so the first of them ends up at ``index``."""
        if not 0 <= index <= len(self._lines):
            raise IndexError(f"Insert position {index} outside 0..{len(self._lines)}")
        for line in lines:
            if line is None:
                raise ValueError("Cannot insert None as a line")
        self._lines[index:index] = lines
        logger.debug(f"Inserted {len(lines)} line(s) at {index}")

    def remove(self, index: int, count: int = 1) -> None:
        """Remove ``count`` lines starting at ``index``."""
        if count < 0:
            raise ValueError(f"Cannot remove a negative number of lines ({count})")
        if index < 0 or index + count > len(self._lines):
            raise IndexError(
                f"Cannot remove lines {index}..{index + count - 1} "
                f"from a buffer of {len(self._lines)}"
            )
        del self._lines[index:index + count]
        logger.debug(f"Removed {count} line(s) at {index}")

    def replace(self, lines: Iterable[str]) -> None:
        """Replace the whole contents."""
        self._lines = list(lines)
