"""Line-oriented file storage for solution and project files."""

from __future__ import annotations

import codecs
import logging
import re
from pathlib import Path
from typing import Iterable

from slnedit.config import SaveOptions

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class TextStorage:
    """Reads and writes files as lists of lines without terminators."""

    def read_lines(self, path: str) -> list[str]:
        """Read a file, tolerating a UTF-8 byte-order mark and any line ending."""
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            content = f.read()
        lines = _LINE_BREAK_RE.split(content)
        if lines and lines[-1] == "":
            # Trailing terminator, not an empty last line
            lines.pop()
        logger.debug(f"Read {len(lines)} lines from {path}")
        return lines

    def write_lines(
        self,
        path: str,
        lines: Iterable[str],
        line_ending: str = "\r\n",
        byte_order_mark: bool = True,
        encoding: str = "utf-8",
    ) -> None:
        """Write every line followed by ``line_ending``.

        Newline translation is disabled so ``line_ending`` reaches the
        file as given.
        """
        if byte_order_mark and codecs.lookup(encoding).name == "utf-8":
            encoding = "utf-8-sig"
        count = 0
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding=encoding, newline="") as f:
            for line in lines:
                f.write(line)
                f.write(line_ending)
                count += 1
        logger.debug(f"Wrote {count} lines to {path}")

    def save(self, path: str, lines: Iterable[str], options: SaveOptions) -> None:
        self.write_lines(
            path,
            lines,
            line_ending=options.line_ending,
            byte_order_mark=options.byte_order_mark,
            encoding=options.encoding,
        )
