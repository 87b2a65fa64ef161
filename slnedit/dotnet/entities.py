"""Typed snapshots of the entries found in a .sln file.

Every entity records the line it came from and the scan that produced
it. A mutation rescans the whole file, so entities fetched before a
mutation are stale and must be fetched again.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from slnedit.config import ProjectTypeIds

if TYPE_CHECKING:
    from slnedit.dotnet.project import ProjectFile
    from slnedit.dotnet.solution import Solution


@dataclass(frozen=True)
class ProjectReference:
    """A project (or solution folder) entry.

    Project("<type_id>") = "<name>", "<location>", "<id>"
    ...
    EndProject
    """
    id: str
    type_id: str
    name: str
    location: str
    line_number: int
    line_count: int
    solution: Optional[Solution] = field(default=None, repr=False, compare=False)
    generation: int = field(default=0, repr=False, compare=False)

    @property
    def is_folder(self) -> bool:
        return self.type_id.upper() == ProjectTypeIds.SOLUTION_FOLDER.value

    @property
    def absolute_location(self) -> str:
        """Full path of the referenced file, resolved against the solution directory."""
        location = self.location.replace("\\", os.sep).replace("/", os.sep)
        return os.path.abspath(os.path.join(self._owner().directory, location))

    @property
    def is_local(self) -> bool:
        """Whether the referenced file lives under the solution's directory."""
        directory = os.path.abspath(self._owner().directory)
        location = self.absolute_location
        if location == directory:
            return False
        try:
            return os.path.commonpath([location, directory]) == directory
        except ValueError:
            # Different drives on Windows
            return False

    @property
    def nesting_parent(self) -> ProjectReference | None:
        return self._owner().get_nesting_parent(self)

    @property
    def build_target_name(self) -> str:
        return self._owner().get_build_target_name(self)

    def get_project(self, loader: Callable[[str], ProjectFile] | None = None) -> ProjectFile:
        """Load the project file this reference points at."""
        if loader is None:
            from slnedit.dotnet.project import ProjectFile
            loader = ProjectFile.load
        return loader(self.absolute_location)

    def _owner(self) -> Solution:
        if self.solution is None:
            raise ValueError(f"{self} is not attached to a solution")
        return self.solution

    @staticmethod
    def format_start(type_id: str, name: str, location: str, id: str) -> str:
        return f'Project("{type_id}") = "{name}", "{location}", "{id}"'

    @staticmethod
    def format_end() -> str:
        return "EndProject"

    def __str__(self) -> str:
        start = self.format_start(self.type_id, self.name, self.location, self.id)
        return f"Line {self.line_number + 1}:{self.line_count}: {start}"


@dataclass(frozen=True)
class NestedProject:
    """A ``<child_id> = <parent_id>`` entry in the NestedProjects section."""
    child_id: str
    parent_id: str
    line_number: int
    solution: Optional[Solution] = field(default=None, repr=False, compare=False)
    generation: int = field(default=0, repr=False, compare=False)

    @staticmethod
    def format(child_id: str, parent_id: str) -> str:
        return f"{child_id} = {parent_id}"

    def __str__(self) -> str:
        return f"Line {self.line_number + 1}: {self.format(self.child_id, self.parent_id)}"


@dataclass(frozen=True)
class ProjectConfiguration:
    """A ``<project_id>.<project_cfg>.<property> = <solution_cfg>`` entry."""
    project_id: str
    project_configuration: str
    property: str
    solution_configuration: str
    line_number: int
    solution: Optional[Solution] = field(default=None, repr=False, compare=False)
    generation: int = field(default=0, repr=False, compare=False)

    @staticmethod
    def format(
        project_id: str,
        project_configuration: str,
        property: str,
        solution_configuration: str,
    ) -> str:
        return f"{project_id}.{project_configuration}.{property} = {solution_configuration}"

    def __str__(self) -> str:
        entry = self.format(
            self.project_id,
            self.project_configuration,
            self.property,
            self.solution_configuration,
        )
        return f"Line {self.line_number + 1}: {entry}"
