"""Single-pass scanner for .sln files (custom text format, not XML).

Classifies each line according to the block it is in and produces typed
entries together with the line spans of the sections it recognised.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from slnedit.config import (
    ABSENT,
    GLOBAL_END,
    GLOBAL_START,
    NESTED_PROJECTS_START,
    PROJECT_CONFIGURATIONS_START,
    PROJECT_END,
    SECTION_END,
    SOLUTION_CONFIGURATIONS_START,
    SectionSpan,
)
from slnedit.dotnet.entities import NestedProject, ProjectConfiguration, ProjectReference
from slnedit.errors import SolutionParseError

if TYPE_CHECKING:
    from slnedit.dotnet.solution import Solution


# Project("{TYPE-GUID}") = "Name", "Path\To\Project.csproj", "{PROJECT-GUID}"
_PROJECT_RE = re.compile(r'^\s*Project\("([^"]*)"\) = "([^"]*)", "([^"]*)", "([^"]*)"')

# {CHILD-GUID} = {PARENT-GUID}
_NESTED_PROJECT_RE = re.compile(r"^\s*(\S+) = (\S+)\s*$")

# Debug|Any CPU = Debug|Any CPU
_SOLUTION_CONFIGURATION_RE = re.compile(r"^\s*([^=]+) = (.+)$")

# {PROJECT-GUID}.Debug|Any CPU.Build.0 = Debug|Any CPU
_PROJECT_CONFIGURATION_RE = re.compile(r"^\s*([^.]+)\.([^.]+)\.(.+) = (.+)$")


class ScanState(Enum):
    OUTSIDE = "outside"
    PROJECT_REFERENCE = "project_reference"
    NESTED_PROJECTS = "nested_projects"
    SOLUTION_CONFIGURATIONS = "solution_configurations"
    PROJECT_CONFIGURATIONS = "project_configurations"


_SECTION_STATES = {
    NESTED_PROJECTS_START: ScanState.NESTED_PROJECTS,
    SOLUTION_CONFIGURATIONS_START: ScanState.SOLUTION_CONFIGURATIONS,
    PROJECT_CONFIGURATIONS_START: ScanState.PROJECT_CONFIGURATIONS,
}

_UNTERMINATED = {
    ScanState.PROJECT_REFERENCE: "No 'EndProject' for project reference",
    ScanState.NESTED_PROJECTS: "No 'EndGlobalSection' for nested projects section",
    ScanState.SOLUTION_CONFIGURATIONS: "No 'EndGlobalSection' for solution configurations section",
    ScanState.PROJECT_CONFIGURATIONS: "No 'EndGlobalSection' for project configurations section",
}


@dataclass
class ScanResult:
    """Everything one pass over the lines produced."""
    global_span: SectionSpan = ABSENT
    nested_projects_span: SectionSpan = ABSENT
    solution_configurations_span: SectionSpan = ABSENT
    project_configurations_span: SectionSpan = ABSENT
    project_references: list[ProjectReference] = field(default_factory=list)
    nested_projects: list[NestedProject] = field(default_factory=list)
    solution_configurations: frozenset[str] = frozenset()
    project_configurations: list[ProjectConfiguration] = field(default_factory=list)


def scan_solution(
    lines: Iterable[str],
    path: str = "",
    owner: Optional[Solution] = None,
    generation: int = 0,
) -> ScanResult:
    """Scan solution lines and return the sections and entries found.

    Args:
        lines: The solution text, one entry per line without terminators.
        path: File path reported in parse errors.
        owner: Solution the produced project references are attached to.
        generation: Scan counter stamped on every produced entity.

    Raises:
        SolutionParseError: A block entry does not match its grammar, a
            block is never closed, or the Global section is missing.
    """
    result = ScanResult()
    solution_configurations: set[str] = set()
    starts: dict[ScanState, int] = {}
    ends: dict[ScanState, int] = {}
    global_start = -1
    global_end = -1

    state = ScanState.OUTSIDE
    block_start = -1
    block_line = ""
    opening: tuple[str, str, str, str] = ("", "", "", "")

    def fail(message: str, index: int, line: str) -> SolutionParseError:
        return SolutionParseError(message, index + 1, line, path=path)

    for index, line in enumerate(lines):
        stripped = line.strip()

        if state is ScanState.PROJECT_REFERENCE:
            if stripped == PROJECT_END:
                type_id, name, location, project_id = opening
                result.project_references.append(ProjectReference(
                    id=project_id,
                    type_id=type_id,
                    name=name,
                    location=location,
                    line_number=block_start,
                    line_count=index - block_start + 1,
                    solution=owner,
                    generation=generation,
                ))
                state = ScanState.OUTSIDE
            elif _PROJECT_RE.match(line):
                raise fail("Expected 'EndProject'", index, line)
            continue

        if state is not ScanState.OUTSIDE:
            if stripped == SECTION_END:
                ends[state] = index
                state = ScanState.OUTSIDE
                continue

            if state is ScanState.NESTED_PROJECTS:
                match = _NESTED_PROJECT_RE.match(line)
                if not match:
                    raise fail("Expected '{guid} = {guid}'", index, line)
                result.nested_projects.append(NestedProject(
                    child_id=match.group(1),
                    parent_id=match.group(2),
                    line_number=index,
                    solution=owner,
                    generation=generation,
                ))

            elif state is ScanState.SOLUTION_CONFIGURATIONS:
                match = _SOLUTION_CONFIGURATION_RE.match(line)
                if not match:
                    raise fail("Expected '{configuration} = {configuration}'", index, line)
                solution_configurations.add(match.group(1).strip())

            else:
                match = _PROJECT_CONFIGURATION_RE.match(line)
                if not match:
                    raise fail(
                        "Expected '{guid}.{configuration}.{property} = {configuration}'",
                        index,
                        line,
                    )
                result.project_configurations.append(ProjectConfiguration(
                    project_id=match.group(1).strip(),
                    project_configuration=match.group(2),
                    property=match.group(3),
                    solution_configuration=match.group(4).strip(),
                    line_number=index,
                    solution=owner,
                    generation=generation,
                ))
            continue

        # Outside any block
        if not stripped or stripped.startswith("#"):
            continue

        match = _PROJECT_RE.match(line)
        if match:
            state = ScanState.PROJECT_REFERENCE
            block_start = index
            block_line = line
            opening = (match.group(1), match.group(2), match.group(3), match.group(4))
            continue

        section_state = _SECTION_STATES.get(stripped)
        if section_state is not None:
            state = section_state
            block_start = index
            block_line = line
            starts[section_state] = index
            continue

        if stripped == GLOBAL_START:
            global_start = index
        elif stripped == GLOBAL_END:
            global_end = index

    if state is not ScanState.OUTSIDE:
        raise fail(_UNTERMINATED[state], block_start, block_line)
    if global_start < 0:
        raise SolutionParseError("No 'Global' section in file", 1, "", path=path)
    if global_end < 0:
        raise SolutionParseError("No 'EndGlobal' in file", 1, "", path=path)

    def span(section: ScanState) -> SectionSpan:
        if section not in starts:
            return ABSENT
        return SectionSpan(starts[section], ends[section])

    result.global_span = SectionSpan(global_start, global_end)
    result.nested_projects_span = span(ScanState.NESTED_PROJECTS)
    result.solution_configurations_span = span(ScanState.SOLUTION_CONFIGURATIONS)
    result.project_configurations_span = span(ScanState.PROJECT_CONFIGURATIONS)
    result.solution_configurations = frozenset(solution_configurations)
    return result
