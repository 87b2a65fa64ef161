"""slnedit - Model and edit Visual Studio solution files line by line."""

from slnedit.config import ProjectTypeIds, SaveOptions, SectionSpan
from slnedit.dotnet.entities import NestedProject, ProjectConfiguration, ProjectReference
from slnedit.dotnet.solution import Solution
from slnedit.errors import (
    InvalidOperationError,
    NestingCycleError,
    ProjectNotFoundError,
    SolutionError,
    SolutionParseError,
    StaleEntityError,
)

__version__ = "0.1.0"
__all__ = [
    "InvalidOperationError",
    "NestedProject",
    "NestingCycleError",
    "ProjectConfiguration",
    "ProjectNotFoundError",
    "ProjectReference",
    "ProjectTypeIds",
    "SaveOptions",
    "SectionSpan",
    "Solution",
    "SolutionError",
    "SolutionParseError",
    "StaleEntityError",
]
