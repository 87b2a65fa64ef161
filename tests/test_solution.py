"""Tests for solution queries and edits."""

from __future__ import annotations

import os
import shutil

import pytest

from slnedit.config import ProjectTypeIds, SectionSpan
from slnedit.dotnet.solution import Solution, escape_target_name
from slnedit.errors import (
    InvalidOperationError,
    NestingCycleError,
    ProjectNotFoundError,
    SolutionParseError,
    StaleEntityError,
)

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
NESTED_SLN = os.path.join(FIXTURES_DIR, "nested_solution", "Nested.sln")

FOLDER = ProjectTypeIds.SOLUTION_FOLDER.value
CSHARP = ProjectTypeIds.CSHARP.value

APP = "{11111111-1111-1111-1111-111111111111}"
LIB = "{22222222-2222-2222-2222-222222222222}"
SHARED = "{33333333-3333-3333-3333-333333333333}"
SRC = "{AAAAAAAA-AAAA-AAAA-AAAA-AAAAAAAAAAAA}"
ITEMS = "{BBBBBBBB-BBBB-BBBB-BBBB-BBBBBBBBBBBB}"


def _empty_solution() -> Solution:
    return Solution("/repo/Empty.sln", [
        "",
        "Microsoft Visual Studio Solution File, Format Version 12.00",
        "Global",
        "EndGlobal",
    ])


def _mentions(solution: Solution, project_id: str) -> bool:
    return (
        any(p.id == project_id for p in solution.project_references)
        or any(project_id in (n.child_id, n.parent_id) for n in solution.nested_projects)
        or any(c.project_id == project_id for c in solution.project_configurations)
    )


class TestLoadAndSave:
    def test_load(self):
        solution = Solution.load(NESTED_SLN)
        assert len(solution.project_references) == 5
        assert solution.directory == os.path.dirname(os.path.abspath(NESTED_SLN))

    def test_round_trip_without_edits(self, tmp_path):
        target = tmp_path / "Nested.sln"
        shutil.copy(NESTED_SLN, target)
        original = target.read_bytes()

        Solution.load(str(target)).save()

        saved = target.read_bytes()
        assert saved.startswith(b"\xef\xbb\xbf")
        assert saved[3:] == original

    def test_lines_preserved(self):
        with open(NESTED_SLN, encoding="utf-8") as f:
            expected = f.read().split("\n")[:-1]
        solution = Solution.load(NESTED_SLN)
        assert list(solution.lines) == [line.rstrip("\r") for line in expected]

    def test_required_arguments(self):
        with pytest.raises(ValueError):
            Solution(None, [])
        with pytest.raises(ValueError):
            Solution("x.sln", None)

    def test_load_missing_file(self):
        with pytest.raises(OSError):
            Solution.load("/nonexistent/path.sln")


class TestQueries:
    def test_get_project_reference(self):
        solution = Solution.load(NESTED_SLN)
        assert solution.get_project_reference(LIB).name == "Lib"

    def test_get_project_reference_not_found(self):
        solution = Solution.load(NESTED_SLN)
        with pytest.raises(ProjectNotFoundError) as exc_info:
            solution.get_project_reference("{NOPE}")
        assert exc_info.value.project_id == "{NOPE}"
        assert isinstance(exc_info.value, LookupError)

    def test_solution_folders(self):
        solution = Solution.load(NESTED_SLN)
        assert [f.name for f in solution.solution_folders] == ["src", "Solution Items"]

    def test_nesting_parent(self):
        solution = Solution.load(NESTED_SLN)
        app = solution.get_project_reference(APP)
        assert app.nesting_parent.id == SRC
        assert solution.get_project_reference(SHARED).nesting_parent is None

    def test_children(self):
        solution = Solution.load(NESTED_SLN)
        src = solution.get_project_reference(SRC)
        assert [c.name for c in solution.get_children(src)] == ["App", "Lib"]

    def test_get_project_configurations(self):
        solution = Solution.load(NESTED_SLN)
        assert len(solution.get_project_configurations(SHARED)) == 2


class TestProjectReferences:
    def test_add_goes_before_global(self):
        solution = _empty_solution()
        project = solution.add_project_reference(CSHARP, "App", "App\\App.csproj", APP)

        assert project.line_number == 2
        assert project.line_count == 2
        assert solution.lines[2] == f'Project("{CSHARP}") = "App", "App\\App.csproj", "{APP}"'
        assert solution.lines[3] == "EndProject"
        assert solution.global_span == SectionSpan(4, 5)

    def test_add_duplicate_id_rejected(self):
        solution = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            solution.add_project_reference(CSHARP, "Again", "Again.csproj", APP)

    def test_add_requires_arguments(self):
        solution = _empty_solution()
        with pytest.raises(ValueError):
            solution.add_project_reference(CSHARP, None, "App.csproj", APP)
        assert len(solution.lines) == 4

    def test_add_rejects_double_quotes(self):
        solution = _empty_solution()
        before = solution.lines
        with pytest.raises(ValueError):
            solution.add_project_reference(CSHARP, 'Say "hi"', "App.csproj", APP)
        with pytest.raises(ValueError):
            solution.add_solution_folder('a"b', "{F0000000-0000-0000-0000-000000000000}")
        assert solution.lines == before

    def test_delete_removes_only_its_lines(self):
        solution = Solution.load(NESTED_SLN)
        before = len(solution.lines)

        solution.delete_project_reference(solution.get_project_reference(ITEMS))

        assert len(solution.lines) == before - 5
        assert solution.find_project_reference(ITEMS) is None
        assert solution.global_span.start == 13

    def test_delete_leaves_related_entries(self):
        solution = Solution.load(NESTED_SLN)
        solution.delete_project_reference(solution.get_project_reference(APP))

        assert any(n.child_id == APP for n in solution.nested_projects)
        assert any(c.project_id == APP for c in solution.project_configurations)

    def test_delete_and_related(self):
        solution = Solution.load(NESTED_SLN)
        solution.delete_project_reference_and_related(solution.get_project_reference(APP))

        assert not _mentions(solution, APP)
        assert solution.get_project_reference(LIB).nesting_parent.id == SRC
        assert len(solution.project_configurations) == 6

    def test_delete_and_related_for_parent_folder(self):
        solution = Solution.load(NESTED_SLN)
        solution.delete_project_reference_and_related(solution.get_project_reference(SRC))

        assert not _mentions(solution, SRC)
        assert solution.nested_projects == ()
        # Children are kept, now at the root
        assert solution.get_project_reference(APP).nesting_parent is None

    def test_untouched_lines_survive_edits(self):
        solution = Solution.load(NESTED_SLN)
        solution.delete_project_reference_and_related(solution.get_project_reference(SHARED))
        assert "\t\tHideSolutionNode = FALSE" in solution.lines
        assert "\t\tSolutionGuid = {DDDDDDDD-DDDD-DDDD-DDDD-DDDDDDDDDDDD}" in solution.lines
        assert solution.lines[0] == ""


class TestStaleEntities:
    def test_stale_reference_rejected(self):
        solution = Solution.load(NESTED_SLN)
        app = solution.get_project_reference(APP)
        solution.add_solution_folder("tests")

        with pytest.raises(StaleEntityError):
            solution.delete_project_reference(app)

    def test_refetched_reference_accepted(self):
        solution = Solution.load(NESTED_SLN)
        solution.add_solution_folder("tests")
        solution.delete_project_reference(solution.get_project_reference(APP))
        assert solution.find_project_reference(APP) is None

    def test_reference_from_other_solution_rejected(self):
        first = Solution.load(NESTED_SLN)
        second = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            second.delete_project_reference(first.get_project_reference(APP))

    def test_nesting_entry_from_other_solution_rejected(self):
        first = Solution.load(NESTED_SLN)
        second = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            second.delete_nested_project(first.nested_projects[0])
        assert len(second.nested_projects) == 2

    def test_configuration_from_other_solution_rejected(self):
        first = Solution.load(NESTED_SLN)
        second = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            second.delete_project_configuration(first.project_configurations[0])
        assert len(second.project_configurations) == 10


class TestNestedProjects:
    def test_add_section(self):
        solution = _empty_solution()
        solution.add_nested_projects_section()

        assert solution.nested_projects_span == SectionSpan(3, 4)
        assert solution.lines[3] == "\tGlobalSection(NestedProjects) = preSolution"
        assert solution.lines[4] == "\tEndGlobalSection"
        assert solution.lines[5] == "EndGlobal"

    def test_add_section_twice(self):
        solution = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            solution.add_nested_projects_section()

    def test_add_creates_section(self):
        solution = _empty_solution()
        folder = solution.add_solution_folder("src", SRC)
        solution.add_project_reference(CSHARP, "App", "App.csproj", APP)

        edge = solution.add_nested_project(APP, folder.id)

        assert edge.child_id == APP
        assert edge.parent_id == SRC
        assert solution.lines[edge.line_number] == f"\t\t{APP} = {SRC}"
        assert solution.get_project_reference(APP).nesting_parent.name == "src"

    def test_add_appends_at_section_end(self):
        solution = Solution.load(NESTED_SLN)
        edge = solution.add_nested_project(SHARED, SRC)

        assert edge.line_number == 41
        assert [n.child_id for n in solution.nested_projects] == [APP, LIB, SHARED]

    def test_add_rejects_cycle(self):
        solution = Solution.load(NESTED_SLN)
        tests = solution.add_solution_folder("tests")
        solution.add_nested_project(tests.id, SRC)

        with pytest.raises(InvalidOperationError):
            solution.add_nested_project(SRC, tests.id)
        with pytest.raises(InvalidOperationError):
            solution.add_nested_project(SRC, SRC)

    def test_delete(self):
        solution = Solution.load(NESTED_SLN)
        edge = solution.nested_projects[0]
        solution.delete_nested_project(edge)

        assert [n.child_id for n in solution.nested_projects] == [LIB]
        assert solution.nested_projects[0].line_number == 39


class TestSolutionFolders:
    def test_add_folder(self):
        solution = _empty_solution()
        folder = solution.add_solution_folder("build", "{F0000000-0000-0000-0000-000000000000}")

        assert folder.is_folder
        assert folder.location == "build"
        assert folder.type_id == FOLDER

    def test_add_folder_generates_id(self):
        solution = _empty_solution()
        folder = solution.add_solution_folder("build")

        assert folder.id.startswith("{") and folder.id.endswith("}")
        assert folder.id == folder.id.upper()
        assert len(folder.id) == 38

    def test_add_folder_duplicate_id(self):
        solution = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            solution.add_solution_folder("src again", SRC)

    def test_add_folder_requires_name(self):
        solution = _empty_solution()
        with pytest.raises(ValueError):
            solution.add_solution_folder("")

    def test_delete_folder(self):
        solution = Solution.load(NESTED_SLN)
        solution.delete_solution_folder(solution.get_project_reference(SRC))

        names = [p.name for p in solution.project_references]
        assert names == ["Solution Items", "Shared"]
        assert solution.nested_projects == ()
        assert {c.project_id for c in solution.project_configurations} == {SHARED}

    def test_delete_nested_folders(self):
        solution = _empty_solution()
        root = solution.add_solution_folder("root")
        ids = {root.id}

        # root/{a, b/{c, d/{e}}} with a leaf project in every folder
        def folder(name, parent_id):
            f = solution.add_solution_folder(name)
            solution.add_nested_project(f.id, parent_id)
            ids.add(f.id)
            return f.id

        def leaf(name, parent_id):
            project = solution.add_project_reference(CSHARP, name, f"{name}\\{name}.csproj", f"{{{name.upper()}}}")
            solution.add_nested_project(project.id, parent_id)
            solution.add_project_configuration(project.id, "Debug|Any CPU", "ActiveCfg", "Debug|Any CPU")
            solution.add_project_configuration(project.id, "Debug|Any CPU", "Build.0", "Debug|Any CPU")
            ids.add(project.id)

        a = folder("a", root.id)
        b = folder("b", root.id)
        c = folder("c", b)
        d = folder("d", b)
        e = folder("e", d)
        for name, parent in [("p1", root.id), ("p2", a), ("p3", c), ("p4", e), ("p5", e)]:
            leaf(name, parent)
        outside = solution.add_project_reference(CSHARP, "Outside", "Outside.csproj", "{OUTSIDE}")
        solution.add_project_configuration(outside.id, "Debug|Any CPU", "ActiveCfg", "Debug|Any CPU")

        solution.delete_solution_folder(solution.get_project_reference(root.id))

        assert [p.name for p in solution.project_references] == ["Outside"]
        assert solution.nested_projects == ()
        assert [c.project_id for c in solution.project_configurations] == ["{OUTSIDE}"]
        assert not any(_mentions(solution, i) for i in ids)

    def test_delete_non_folder(self):
        solution = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            solution.delete_solution_folder(solution.get_project_reference(APP))
        assert solution.find_project_reference(APP) is not None

    def test_delete_folder_contents_only(self):
        solution = Solution.load(NESTED_SLN)
        solution.delete_solution_folder_contents(solution.get_project_reference(SRC))

        assert solution.find_project_reference(SRC) is not None
        assert solution.find_project_reference(APP) is None
        assert solution.find_project_reference(LIB) is None

    def test_delete_folder_with_missing_child(self):
        solution = _empty_solution()
        folder = solution.add_solution_folder("src", SRC)
        solution.add_nested_project("{GONE}", folder.id)

        solution.delete_solution_folder(solution.get_project_reference(SRC))

        assert solution.project_references == ()
        assert solution.nested_projects == ()

    def test_delete_folder_in_cycle(self):
        solution = Solution("/repo/Cycle.sln", [
            f'Project("{FOLDER}") = "a", "a", "{{A}}"',
            "EndProject",
            f'Project("{FOLDER}") = "b", "b", "{{B}}"',
            "EndProject",
            "Global",
            "\tGlobalSection(NestedProjects) = preSolution",
            "\t\t{A} = {B}",
            "\t\t{B} = {A}",
            "\tEndGlobalSection",
            "EndGlobal",
        ])
        before = solution.lines
        with pytest.raises(NestingCycleError):
            solution.delete_solution_folder(solution.get_project_reference("{A}"))
        assert solution.lines == before


class TestSolutionConfigurations:
    def test_add_section_after_global_start(self):
        solution = _empty_solution()
        solution.add_solution_configurations_section()

        assert solution.solution_configurations_span == SectionSpan(3, 4)
        assert solution.lines[3] == "\tGlobalSection(SolutionConfigurationPlatforms) = preSolution"

    def test_add_section_twice(self):
        solution = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            solution.add_solution_configurations_section()

    def test_add_configuration(self):
        solution = _empty_solution()
        solution.add_solution_configuration("Debug|x64")
        solution.add_solution_configuration("Debug|x64")

        assert solution.solution_configurations == {"Debug|x64"}
        assert "\t\tDebug|x64 = Debug|x64" in solution.lines


class TestProjectConfigurations:
    def test_add_section_after_solution_configurations(self):
        solution = _empty_solution()
        solution.add_solution_configurations_section()
        solution.add_project_configurations_section()

        assert solution.project_configurations_span == SectionSpan(5, 6)
        assert solution.lines[5] == "\tGlobalSection(ProjectConfigurationPlatforms) = postSolution"

    def test_add_section_without_solution_configurations(self):
        solution = _empty_solution()
        solution.add_nested_projects_section()
        solution.add_project_configurations_section()

        assert solution.project_configurations_span == SectionSpan(5, 6)
        assert solution.nested_projects_span == SectionSpan(3, 4)

    def test_add_section_twice(self):
        solution = Solution.load(NESTED_SLN)
        with pytest.raises(InvalidOperationError):
            solution.add_project_configurations_section()

    def test_ordering_within_project(self):
        solution = _empty_solution()
        for label in ["Debug|Any CPU", "Release|Any CPU", "Beta|Any CPU"]:
            solution.add_project_configuration(APP, label, "ActiveCfg", label)

        labels = [c.solution_configuration for c in solution.get_project_configurations(APP)]
        assert labels == ["Beta|Any CPU", "Debug|Any CPU", "Release|Any CPU"]

    def test_same_label_goes_after_last_match(self):
        solution = Solution.load(NESTED_SLN)
        added = solution.add_project_configuration(SHARED, "Debug|Any CPU", "Build.0", "Debug|Any CPU")

        mine = solution.get_project_configurations(SHARED)
        assert [c.property for c in mine] == ["ActiveCfg", "Build.0", "ActiveCfg"]
        assert added.line_number == mine[1].line_number
        assert added.property == "Build.0"

    def test_projects_stay_contiguous(self):
        solution = Solution.load(NESTED_SLN)
        solution.add_project_configuration(APP, "Debug|x64", "ActiveCfg", "Debug|x64")
        solution.add_project_configuration(LIB, "Alpha|Any CPU", "ActiveCfg", "Alpha|Any CPU")

        ids = [c.project_id for c in solution.project_configurations]
        assert ids == [APP] * 5 + [LIB] * 5 + [SHARED] * 2
        lib = [c.solution_configuration for c in solution.get_project_configurations(LIB)]
        assert lib[0] == "Alpha|Any CPU"

    def test_new_project_appends_to_section(self):
        solution = Solution.load(NESTED_SLN)
        added = solution.add_project_configuration(SRC, "Debug|Any CPU", "ActiveCfg", "Debug|Any CPU")

        assert added.line_number == 34
        assert solution.project_configurations_span == SectionSpan(23, 35)

    def test_delete(self):
        solution = Solution.load(NESTED_SLN)
        solution.delete_project_configuration(solution.project_configurations[0])
        assert len(solution.project_configurations) == 9
        assert solution.project_configurations[0].property == "Build.0"


class TestRescanFailure:
    def test_bad_text_leaves_solution_unusable(self):
        solution = _empty_solution()
        snapshot = list(solution.lines)

        with pytest.raises(SolutionParseError):
            solution.replace_lines(["Global"])
        with pytest.raises(InvalidOperationError):
            solution.project_references

        solution.replace_lines(snapshot)
        assert solution.global_span == SectionSpan(2, 3)

    def test_bad_entry_text_propagates_and_keeps_edit(self):
        solution = _empty_solution()
        with pytest.raises(SolutionParseError):
            solution.add_nested_project("not valid", "{A}")
        assert "\t\tnot valid = {A}" in solution.lines


class TestBuildTargetNames:
    def test_escape_table(self):
        assert escape_target_name("a%b$c@d;e.f(g)h'i") == "a_b_c_d_e_f_g_h_i"
        assert escape_target_name("Plain-Name_1") == "Plain-Name_1"

    def test_nested_folder_name(self):
        solution = _empty_solution()
        root = solution.add_solution_folder("A;B")
        child = solution.add_solution_folder("My.Solution(v1)")
        solution.add_nested_project(child.id, root.id)

        child = solution.get_project_reference(child.id)
        assert child.build_target_name == "A_B\\My_Solution_v1_"

    def test_fixture_target_names(self):
        solution = Solution.load(NESTED_SLN)
        assert solution.get_project_reference(APP).build_target_name == "src\\App"
        assert solution.get_project_reference(SHARED).build_target_name == "Shared"
