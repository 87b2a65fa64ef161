"""slnedit CLI - inspect and restructure Visual Studio solution files."""

from __future__ import annotations

import logging
from functools import wraps

import click

from slnedit.dotnet.solution import Solution
from slnedit.errors import SolutionError


@click.group()
@click.option("--verbose", is_flag=True, help="Log every edit and rescan")
def cli(verbose: bool) -> None:
    """slnedit - Edit .sln files without disturbing what you did not touch."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


def _reports_errors(fn):
    """Turn solution errors into click errors with a non-zero exit code."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (SolutionError, OSError) as e:
            raise click.ClickException(str(e)) from e
    return wrapper


_SOLUTION_PATH = click.Path(exists=True, dir_okay=False)


@cli.command("show")
@click.argument("path", type=_SOLUTION_PATH)
@click.option("-o", "--output", "output_path", default=None, help="Also write a JSON summary to this file")
@_reports_errors
def show_cmd(path: str, output_path: str | None) -> None:
    """List the projects and folders in a solution."""
    from rich.console import Console
    from rich.table import Table

    from slnedit.output import build_summary, write_output

    solution = Solution.load(path)
    summary = build_summary(solution)

    table = Table(title=f"Solution: {click.format_filename(path)}", show_edge=False)
    table.add_column("Build target", style="bold")
    table.add_column("Id")
    table.add_column("Location")
    table.add_column("Local", justify="center")
    for entry in summary["projects"]:
        name = entry["build_target"] or entry["name"]
        if entry["folder"]:
            name = f"[blue]{name}/[/blue]"
        local = "" if entry["local"] is None else ("yes" if entry["local"] else "[red]no[/red]")
        table.add_row(name, entry["id"], entry["location"], local)

    console = Console()
    console.print(table)

    configurations = ", ".join(summary["solution_configurations"]) or "(none)"
    console.print(f"Configurations: {configurations}")

    if output_path:
        write_output(summary, output_path)
        console.print(f"[green]Summary written to:[/green] {output_path}")


@cli.command("add-folder")
@click.argument("path", type=_SOLUTION_PATH)
@click.argument("name")
@click.option("--parent", "parent_id", default=None, help="Id of the folder to nest the new folder in")
@click.option("--id", "folder_id", default=None, help="Id for the new folder (generated if omitted)")
@_reports_errors
def add_folder_cmd(path: str, name: str, parent_id: str | None, folder_id: str | None) -> None:
    """Add a solution folder."""
    solution = Solution.load(path)
    if parent_id is not None:
        # Fail before editing if the parent is unknown
        solution.get_project_reference(parent_id)
    folder = solution.add_solution_folder(name, folder_id)
    if parent_id is not None:
        solution.add_nested_project(folder.id, parent_id)
    solution.save()
    click.echo(folder.id)


@cli.command("nest")
@click.argument("path", type=_SOLUTION_PATH)
@click.argument("child_id")
@click.argument("parent_id")
@_reports_errors
def nest_cmd(path: str, child_id: str, parent_id: str) -> None:
    """Move a project or folder into a solution folder."""
    solution = Solution.load(path)
    solution.get_project_reference(child_id)
    parent = solution.get_project_reference(parent_id)
    if not parent.is_folder:
        raise click.ClickException(f"{parent.name} is not a solution folder")

    # Unnest from any current parent first
    while True:
        existing = next((n for n in solution.nested_projects if n.child_id == child_id), None)
        if existing is None:
            break
        solution.delete_nested_project(existing)

    solution.add_nested_project(child_id, parent_id)
    solution.save()


@cli.command("remove")
@click.argument("path", type=_SOLUTION_PATH)
@click.argument("project_id")
@_reports_errors
def remove_cmd(path: str, project_id: str) -> None:
    """Remove a project, or a folder and everything in it."""
    solution = Solution.load(path)
    project = solution.get_project_reference(project_id)
    if project.is_folder:
        solution.delete_solution_folder(project)
    else:
        solution.delete_project_reference_and_related(project)
    solution.save()


@cli.command("target-name")
@click.argument("path", type=_SOLUTION_PATH)
@click.argument("project_id")
@_reports_errors
def target_name_cmd(path: str, project_id: str) -> None:
    """Print the msbuild -t: target name for a project in the solution."""
    solution = Solution.load(path)
    click.echo(solution.get_project_reference(project_id).build_target_name)


if __name__ == "__main__":
    cli()
