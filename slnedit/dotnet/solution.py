"""Edit .sln files in place.

A Solution holds the complete text of a .sln file and interprets the
parts it knows about (project references, solution folder nesting,
solution and project configurations) without disturbing the rest.

Every mutation splices the line buffer and then rescans the whole file,
so the typed view is always derived from the current text. Entities
obtained before a mutation are stale afterwards and are rejected by
further mutations.
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

from slnedit.config import (
    ENTRY_INDENT,
    NESTED_PROJECTS_START,
    PROJECT_CONFIGURATIONS_START,
    SECTION_END,
    SECTION_INDENT,
    SOLUTION_CONFIGURATIONS_START,
    ProjectTypeIds,
    SaveOptions,
    SectionSpan,
)
from slnedit.dotnet.entities import NestedProject, ProjectConfiguration, ProjectReference
from slnedit.dotnet.lines import LineBuffer
from slnedit.dotnet.scanner import ScanResult, scan_solution
from slnedit.errors import (
    InvalidOperationError,
    NestingCycleError,
    ProjectNotFoundError,
    StaleEntityError,
    require,
    require_text,
)
from slnedit.graph.nesting import NestingIndex
from slnedit.storage import TextStorage

logger = logging.getLogger(__name__)

# Characters MSBuild replaces with "_" when it names per-project solution targets
_TARGET_NAME_ESCAPES = str.maketrans({c: "_" for c in "%$@;.()'"})


def escape_target_name(name: str) -> str:
    return name.translate(_TARGET_NAME_ESCAPES)


def new_project_id() -> str:
    """A fresh id in the upper-case, braced form Visual Studio writes."""
    return "{" + str(uuid.uuid4()).upper() + "}"


class Solution:
    """A Visual Studio solution (.sln) file."""

    def __init__(self, path: str, lines: list[str], storage: TextStorage | None = None) -> None:
        self.path = require_text(path, "path")
        self._storage = storage or TextStorage()
        self._buffer = LineBuffer(require(lines, "lines"))
        self._generation = 0
        self._scan: Optional[ScanResult] = None
        self._nesting = NestingIndex()
        self.reload()

    @classmethod
    def load(cls, path: str, storage: TextStorage | None = None) -> Solution:
        """Load a solution from a .sln file.

        Raises:
            OSError: The file cannot be read.
            SolutionParseError: The file is not a well-formed solution.
        """
        storage = storage or TextStorage()
        solution = cls(path, storage.read_lines(path), storage=storage)
        logger.info(
            f"Loaded {path}: {len(solution.project_references)} project references, "
            f"{len(solution.nested_projects)} nested projects"
        )
        return solution

    def save(self, options: SaveOptions | None = None, path: str | None = None) -> None:
        """Write the solution, by default to its own path with CRLF and a BOM."""
        target = path or self.path
        self._storage.save(target, self._buffer, options or SaveOptions())
        logger.info(f"Saved {target}")

    # --- Text ---

    @property
    def directory(self) -> str:
        return os.path.dirname(os.path.abspath(self.path))

    @property
    def lines(self) -> tuple[str, ...]:
        return self._buffer.lines

    def replace_lines(self, lines: list[str]) -> None:
        """Replace the whole text, e.g. to restore a snapshot of ``lines``."""
        self._buffer.replace(require(lines, "lines"))
        self.reload()

    def reload(self) -> None:
        """Rescan the text.

        If the text does not parse, the error propagates and the solution
        stays unusable until the text is fixed and reloaded.
        """
        self._generation += 1
        self._scan = None
        scan = scan_solution(self._buffer, self.path, owner=self, generation=self._generation)
        self._scan = scan
        self._nesting = NestingIndex(scan.nested_projects)
        logger.debug(f"Scanned {self.path} ({len(self._buffer)} lines, generation {self._generation})")

    def _view(self) -> ScanResult:
        if self._scan is None:
            raise InvalidOperationError(
                f"{self.path} did not parse after the last change; fix the text and reload"
            )
        return self._scan

    # --- Sections ---

    @property
    def global_span(self) -> SectionSpan:
        return self._view().global_span

    @property
    def nested_projects_span(self) -> SectionSpan:
        return self._view().nested_projects_span

    @property
    def solution_configurations_span(self) -> SectionSpan:
        return self._view().solution_configurations_span

    @property
    def project_configurations_span(self) -> SectionSpan:
        return self._view().project_configurations_span

    # --- Entities ---

    @property
    def project_references(self) -> tuple[ProjectReference, ...]:
        return tuple(self._view().project_references)

    @property
    def solution_folders(self) -> tuple[ProjectReference, ...]:
        """Solution folders are project references with the folder type id."""
        return tuple(p for p in self.project_references if p.is_folder)

    @property
    def nested_projects(self) -> tuple[NestedProject, ...]:
        return tuple(self._view().nested_projects)

    @property
    def solution_configurations(self) -> frozenset[str]:
        return self._view().solution_configurations

    @property
    def project_configurations(self) -> tuple[ProjectConfiguration, ...]:
        return tuple(self._view().project_configurations)

    @property
    def nesting(self) -> NestingIndex:
        self._view()
        return self._nesting

    # --- Queries ---

    def find_project_reference(self, id: str) -> ProjectReference | None:
        require(id, "id")
        return next((p for p in self.project_references if p.id == id), None)

    def get_project_reference(self, id: str) -> ProjectReference:
        """Get the project reference with the given id.

        Raises:
            ProjectNotFoundError: No reference has that id.
        """
        project = self.find_project_reference(id)
        if project is None:
            raise ProjectNotFoundError(id)
        return project

    def get_nesting_parent(self, project: ProjectReference) -> ProjectReference | None:
        """The folder a reference is nested in, or None for a root."""
        require(project, "project")
        parent_id = self.nesting.parent(project.id)
        if parent_id is None:
            return None
        return self.get_project_reference(parent_id)

    def get_ancestors(self, project: ProjectReference) -> list[ProjectReference]:
        """Folders containing a reference, nearest first."""
        require(project, "project")
        return [self.get_project_reference(i) for i in self.nesting.ancestors(project.id)]

    def get_children(self, folder: ProjectReference) -> list[ProjectReference]:
        require(folder, "folder")
        return [self.get_project_reference(i) for i in self.nesting.children(folder.id)]

    def get_build_target_name(self, project: ProjectReference) -> str:
        """Name of the solution-level MSBuild target that builds ``project``.

        The names of the folders containing the project, root first, and
        then the project itself, each escaped and joined with backslashes.
        """
        require(project, "project")
        names = [project.name] + [a.name for a in self.get_ancestors(project)]
        return "\\".join(escape_target_name(n) for n in reversed(names))

    def get_project_configurations(self, project_id: str) -> list[ProjectConfiguration]:
        require(project_id, "project_id")
        return [c for c in self.project_configurations if c.project_id == project_id]

    # --- Project references ---

    def add_project_reference(self, type_id: str, name: str, location: str, id: str) -> ProjectReference:
        """Add a project reference just before the Global section.

        Raises:
            InvalidOperationError: A reference with ``id`` already exists.
            ValueError: A field contains a double quote.
        """
        require(type_id, "type_id")
        require(name, "name")
        require(location, "location")
        require(id, "id")
        for value, label in ((type_id, "type_id"), (name, "name"), (location, "location"), (id, "id")):
            if '"' in value:
                raise ValueError(f"{label} must not contain a double quote: {value!r}")

        if self.find_project_reference(id) is not None:
            raise InvalidOperationError(f"Solution already contains a project with id {id}")

        self._buffer.insert(
            self.global_span.start,
            ProjectReference.format_start(type_id, name, location, id),
            ProjectReference.format_end(),
        )
        logger.debug(f"Added project reference {name} {id}")
        self.reload()
        return self.get_project_reference(id)

    def delete_project_reference(self, project: ProjectReference) -> None:
        """Delete just the reference's own lines.

        Nesting entries and project configurations that mention it are
        left alone, see delete_project_reference_and_related().
        """
        self._check_current(require(project, "project"))
        self._buffer.remove(project.line_number, project.line_count)
        logger.debug(f"Deleted project reference {project.name} {project.id}")
        self.reload()

    def delete_project_reference_and_related(self, project: ProjectReference) -> None:
        """Delete a reference with its nesting entries and project configurations."""
        self._check_current(require(project, "project"))
        project_id = project.id

        while True:
            nesting = next(
                (n for n in self.nested_projects
                 if n.parent_id == project_id or n.child_id == project_id),
                None,
            )
            if nesting is None:
                break
            self.delete_nested_project(nesting)

        while True:
            configuration = next(
                (c for c in self.project_configurations if c.project_id == project_id),
                None,
            )
            if configuration is None:
                break
            self.delete_project_configuration(configuration)

        self.delete_project_reference(self.get_project_reference(project_id))

    # --- Solution folders ---

    def add_solution_folder(self, name: str, id: str | None = None) -> ProjectReference:
        """Add a solution folder, generating an id if none is given."""
        require_text(name, "name")
        if id is None:
            id = new_project_id()
        require_text(id, "id")
        if any(f.id == id for f in self.solution_folders):
            raise InvalidOperationError(f"Solution already contains a folder with id {id}")
        return self.add_project_reference(ProjectTypeIds.SOLUTION_FOLDER.value, name, name, id)

    def delete_solution_folder(self, folder: ProjectReference) -> None:
        """Delete a solution folder and everything nested in it.

        To delete only the folder's own reference use
        delete_project_reference().
        """
        folder_id = require(folder, "folder").id
        self.delete_solution_folder_contents(folder)
        self.delete_project_reference_and_related(self.get_project_reference(folder_id))

    def delete_solution_folder_contents(self, folder: ProjectReference) -> None:
        """Delete everything nested in a solution folder, subfolders first."""
        self._check_current(require(folder, "folder"))
        if not folder.is_folder:
            raise InvalidOperationError(f"{folder.name} {folder.id} is not a solution folder")

        folder_id = folder.id
        cycle = self.nesting.find_cycle(source=folder_id)
        if cycle is not None:
            raise NestingCycleError(cycle)

        while True:
            nesting = next((n for n in self.nested_projects if n.parent_id == folder_id), None)
            if nesting is None:
                break

            child = self.find_project_reference(nesting.child_id)
            if child is None:
                logger.debug(f"Removing nesting entry for missing project {nesting.child_id}")
                self.delete_nested_project(nesting)
            elif child.is_folder:
                self.delete_solution_folder(child)
            else:
                self.delete_project_reference_and_related(child)

    # --- Nested projects ---

    def add_nested_projects_section(self) -> None:
        """Add an empty NestedProjects section at the end of the Global section.

        Raises:
            InvalidOperationError: The solution already has one.
        """
        if self.nested_projects_span.present:
            raise InvalidOperationError("Solution already contains a nested projects section")

        self._buffer.insert(
            self.global_span.end,
            SECTION_INDENT + NESTED_PROJECTS_START,
            SECTION_INDENT + SECTION_END,
        )
        self.reload()

    def add_nested_project(self, child_id: str, parent_id: str) -> NestedProject:
        """Nest one reference inside a solution folder.

        Raises:
            InvalidOperationError: The entry would make a folder contain
                itself.
        """
        require_text(child_id, "child_id")
        require_text(parent_id, "parent_id")

        if self.nesting.would_create_cycle(child_id, parent_id):
            raise InvalidOperationError(
                f"Nesting {child_id} in {parent_id} would create a cycle",
                code="NESTING_CYCLE",
            )

        if not self.nested_projects_span.present:
            self.add_nested_projects_section()

        index = self.nested_projects_span.end
        self._buffer.insert(index, ENTRY_INDENT + NestedProject.format(child_id, parent_id))
        logger.debug(f"Nested {child_id} in {parent_id}")
        self.reload()
        return self._nested_project_at(index)

    def delete_nested_project(self, nested_project: NestedProject) -> None:
        self._check_current(require(nested_project, "nested_project"))
        self._buffer.remove(nested_project.line_number)
        logger.debug(f"Deleted nesting {nested_project.child_id} = {nested_project.parent_id}")
        self.reload()

    # --- Solution configurations ---

    def add_solution_configurations_section(self) -> None:
        """Add an empty SolutionConfigurationPlatforms section at the start of Global.

        Raises:
            InvalidOperationError: The solution already has one.
        """
        if self.solution_configurations_span.present:
            raise InvalidOperationError("Solution already contains a solution configurations section")

        self._buffer.insert(
            self.global_span.start + 1,
            SECTION_INDENT + SOLUTION_CONFIGURATIONS_START,
            SECTION_INDENT + SECTION_END,
        )
        self.reload()

    def add_solution_configuration(self, name: str) -> None:
        """Add a solution configuration such as "Debug|Any CPU" if it is missing."""
        require_text(name, "name")
        if name in self.solution_configurations:
            return

        if not self.solution_configurations_span.present:
            self.add_solution_configurations_section()

        self._buffer.insert(
            self.solution_configurations_span.end,
            f"{ENTRY_INDENT}{name} = {name}",
        )
        logger.debug(f"Added solution configuration {name}")
        self.reload()

    # --- Project configurations ---

    def add_project_configurations_section(self) -> None:
        """Add an empty ProjectConfigurationPlatforms section.

        It goes right after the solution configurations section if there
        is one, otherwise at the end of the Global section.

        Raises:
            InvalidOperationError: The solution already has one.
        """
        if self.project_configurations_span.present:
            raise InvalidOperationError("Solution already contains a project configurations section")

        index = self.global_span.end
        if self.solution_configurations_span.present:
            index = self.solution_configurations_span.end + 1

        self._buffer.insert(
            index,
            SECTION_INDENT + PROJECT_CONFIGURATIONS_START,
            SECTION_INDENT + SECTION_END,
        )
        self.reload()

    def add_project_configuration(
        self,
        project_id: str,
        project_configuration: str,
        property: str,
        solution_configuration: str,
    ) -> ProjectConfiguration:
        """Map a solution configuration to a project configuration.

        Entries for one project are kept together and in ascending
        ordinal order of solution configuration.
        """
        require(project_id, "project_id")
        require(project_configuration, "project_configuration")
        require(property, "property")
        require(solution_configuration, "solution_configuration")

        if not self.project_configurations_span.present:
            self.add_project_configurations_section()

        index = self._project_configuration_insert_index(project_id, solution_configuration)
        self._buffer.insert(
            index,
            ENTRY_INDENT + ProjectConfiguration.format(
                project_id,
                project_configuration,
                property,
                solution_configuration,
            ),
        )
        logger.debug(f"Added configuration {project_id}.{project_configuration}.{property}")
        self.reload()
        return self._project_configuration_at(index)

    def _project_configuration_insert_index(self, project_id: str, solution_configuration: str) -> int:
        same_project = self.get_project_configurations(project_id)

        # Before the first entry with a later solution configuration
        for configuration in same_project:
            if configuration.solution_configuration > solution_configuration:
                return configuration.line_number

        # After the last entry for the same solution configuration
        same_label = [c for c in same_project if c.solution_configuration == solution_configuration]
        if same_label:
            return same_label[-1].line_number + 1

        # After the last entry for the project
        if same_project:
            return same_project[-1].line_number + 1

        return self.project_configurations_span.end

    def delete_project_configuration(self, configuration: ProjectConfiguration) -> None:
        self._check_current(require(configuration, "configuration"))
        self._buffer.remove(configuration.line_number)
        logger.debug(f"Deleted configuration {configuration}")
        self.reload()

    # --- Helpers ---

    def _check_current(self, entity) -> None:
        self._view()
        if entity.solution is not self:
            raise InvalidOperationError(f"{entity} belongs to a different solution")
        if entity.generation != self._generation:
            raise StaleEntityError(entity)

    def _nested_project_at(self, index: int) -> NestedProject:
        return next(n for n in self.nested_projects if n.line_number == index)

    def _project_configuration_at(self, index: int) -> ProjectConfiguration:
        return next(c for c in self.project_configurations if c.line_number == index)

    def __repr__(self) -> str:
        return f"Solution({self.path!r})"
