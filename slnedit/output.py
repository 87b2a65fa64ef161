"""JSON serialisation of a solution's structure."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from slnedit.dotnet.solution import Solution
from slnedit.errors import SolutionError


def _project_entry(solution: Solution, project) -> dict[str, Any]:
    parent = solution.nesting.parent(project.id)
    try:
        target = solution.get_build_target_name(project)
    except SolutionError:
        # Dangling parent id or nesting cycle
        target = None
    return {
        "id": project.id,
        "type_id": project.type_id,
        "name": project.name,
        "location": project.location,
        "folder": project.is_folder,
        "local": None if project.is_folder else project.is_local,
        "parent": parent,
        "build_target": target,
        "line": project.line_number + 1,
        "line_count": project.line_count,
    }


def build_summary(solution: Solution) -> dict[str, Any]:
    """Build a JSON-serialisable description of the solution."""
    projects = solution.project_references
    return {
        "path": str(Path(solution.path).resolve()),
        "stats": {
            "lines": len(solution.lines),
            "projects": sum(1 for p in projects if not p.is_folder),
            "folders": sum(1 for p in projects if p.is_folder),
            "nested_projects": len(solution.nested_projects),
            "solution_configurations": len(solution.solution_configurations),
            "project_configurations": len(solution.project_configurations),
        },
        "sections": {
            "global": asdict(solution.global_span),
            "nested_projects": asdict(solution.nested_projects_span),
            "solution_configurations": asdict(solution.solution_configurations_span),
            "project_configurations": asdict(solution.project_configurations_span),
        },
        "projects": [_project_entry(solution, p) for p in projects],
        "nested_projects": [
            {"child": n.child_id, "parent": n.parent_id, "line": n.line_number + 1}
            for n in solution.nested_projects
        ],
        "solution_configurations": sorted(solution.solution_configurations),
        "project_configurations": [
            {
                "project": c.project_id,
                "project_configuration": c.project_configuration,
                "property": c.property,
                "solution_configuration": c.solution_configuration,
                "line": c.line_number + 1,
            }
            for c in solution.project_configurations
        ],
    }


def write_output(summary: dict[str, Any], output_path: str) -> None:
    """Write a summary to a JSON file."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(summary, f, indent=2, default=str)
