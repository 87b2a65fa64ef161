"""Read and edit properties in .csproj/.vbproj files.

Only <PropertyGroup> blocks are interpreted; all other lines are kept as
they are.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from xml.sax.saxutils import escape, unescape

from slnedit.config import SaveOptions
from slnedit.dotnet.lines import LineBuffer
from slnedit.errors import InvalidOperationError, SolutionParseError, require, require_text
from slnedit.storage import TextStorage

logger = logging.getLogger(__name__)

# Self-closing <PropertyGroup ... /> lines hold nothing and are skipped
_GROUP_START_RE = re.compile(r"^(\s*)<PropertyGroup(\s[^>]*?)?(?<!/)>\s*$")
_GROUP_END_RE = re.compile(r"^\s*</PropertyGroup>\s*$")
_PROPERTY_RE = re.compile(r"^(\s*)<([A-Za-z_][\w.-]*)(?:\s[^>]*)?>([^<]*)</\2>\s*$")
_PROJECT_START_RE = re.compile(r"^(\s*)<Project\b")


@dataclass(frozen=True)
class ProjectProperty:
    name: str
    value: str
    line_number: int
    indent: str = ""


@dataclass(frozen=True)
class PropertyGroup:
    properties: tuple[ProjectProperty, ...]
    begin_line_number: int
    end_line_number: int
    indent: str = ""


class ProjectFile:
    """A project file loaded as lines, with its PropertyGroup properties."""

    def __init__(self, path: str, lines: list[str], storage: TextStorage | None = None) -> None:
        self.path = require_text(path, "path")
        self._storage = storage or TextStorage()
        self._lines = LineBuffer(require(lines, "lines"))
        self.property_groups: list[PropertyGroup] = []
        self._load()

    @classmethod
    def load(cls, path: str, storage: TextStorage | None = None) -> ProjectFile:
        storage = storage or TextStorage()
        return cls(path, storage.read_lines(path), storage=storage)

    @property
    def name(self) -> str:
        """Project name according to the file name."""
        return os.path.splitext(os.path.basename(self.path))[0]

    @property
    def lines(self) -> tuple[str, ...]:
        return self._lines.lines

    def get_property(self, name: str) -> str:
        """Value of a property, or "" if no PropertyGroup defines it.

        When several groups define the property the last one wins, as it
        does in MSBuild evaluation.
        """
        found = self._find(require_text(name, "name"))
        return found.value if found else ""

    def set_property(self, name: str, value: str) -> None:
        """Set a property, rewriting its last definition or adding a new one."""
        require_text(name, "name")
        require(value, "value")

        existing = self._find(name)
        if existing is not None:
            self._lines.remove(existing.line_number)
            self._lines.insert(existing.line_number, _format(existing.indent, name, value))
        elif self.property_groups:
            group = self.property_groups[0]
            indent = group.properties[0].indent if group.properties else group.indent + "  "
            self._lines.insert(group.end_line_number, _format(indent, name, value))
        else:
            index, indent = self._project_start()
            self._lines.insert(
                index + 1,
                f"{indent}  <PropertyGroup>",
                _format(indent + "    ", name, value),
                f"{indent}  </PropertyGroup>",
            )

        logger.debug(f"Set {name} in {self.path}")
        self._load()

    def save(self, options: SaveOptions | None = None) -> None:
        """Write the project back, by default with Windows line endings and a BOM."""
        self._storage.save(self.path, self._lines, options or SaveOptions())
        logger.info(f"Saved {self.path}")

    def _find(self, name: str) -> ProjectProperty | None:
        found = None
        for group in self.property_groups:
            for prop in group.properties:
                if prop.name == name:
                    found = prop
        return found

    def _project_start(self) -> tuple[int, str]:
        for index, line in enumerate(self._lines):
            match = _PROJECT_START_RE.match(line)
            if match:
                return index, match.group(1)
        raise InvalidOperationError(f"No <Project> element in {self.path}")

    def _load(self) -> None:
        groups = []
        properties: list[ProjectProperty] = []
        begin = -1
        begin_line = ""
        indent = ""
        for index, line in enumerate(self._lines):
            if begin < 0:
                match = _GROUP_START_RE.match(line)
                if match:
                    begin = index
                    begin_line = line
                    indent = match.group(1)
                    properties = []
                continue

            if _GROUP_END_RE.match(line):
                groups.append(PropertyGroup(tuple(properties), begin, index, indent))
                begin = -1
                continue

            match = _PROPERTY_RE.match(line)
            if match:
                properties.append(ProjectProperty(
                    name=match.group(2),
                    value=unescape(match.group(3)),
                    line_number=index,
                    indent=match.group(1),
                ))

        if begin >= 0:
            raise SolutionParseError("No '</PropertyGroup>'", begin + 1, begin_line, path=self.path)
        self.property_groups = groups


def _format(indent: str, name: str, value: str) -> str:
    return f"{indent}<{name}>{escape(value)}</{name}>"
