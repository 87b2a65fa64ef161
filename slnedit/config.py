"""Core constants and configuration for solution editing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProjectTypeIds(str, Enum):
    """Well-known project type GUIDs as they appear in .sln files."""
    CSHARP = "{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}"
    CSHARP_SDK = "{9A19103F-16F7-4668-BE54-9A1E7A4F7556}"
    VBNET = "{F184B08F-C81C-45F6-A57F-5ABD9991F28F}"
    SOLUTION_FOLDER = "{2150E333-8FDC-42A3-9474-1A3956D46DE8}"


# Literal marker lines, compared against the trimmed line text
GLOBAL_START = "Global"
GLOBAL_END = "EndGlobal"
PROJECT_END = "EndProject"
SECTION_END = "EndGlobalSection"
NESTED_PROJECTS_START = "GlobalSection(NestedProjects) = preSolution"
SOLUTION_CONFIGURATIONS_START = "GlobalSection(SolutionConfigurationPlatforms) = preSolution"
PROJECT_CONFIGURATIONS_START = "GlobalSection(ProjectConfigurationPlatforms) = postSolution"

SECTION_INDENT = "\t"
ENTRY_INDENT = "\t\t"


@dataclass(frozen=True)
class SectionSpan:
    """Start and end line indices of a block; (-1, -1) when absent."""
    start: int = -1
    end: int = -1

    @property
    def present(self) -> bool:
        return self.start >= 0


ABSENT = SectionSpan()


@dataclass
class SaveOptions:
    """How a solution is written back to disk.

    The defaults match what the dotnet tooling writes: Windows line
    endings and a UTF-8 byte-order mark.
    """
    line_ending: str = "\r\n"
    byte_order_mark: bool = True
    encoding: str = "utf-8"
