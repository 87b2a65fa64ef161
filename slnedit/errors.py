"""Exceptions raised while loading and editing solutions."""

from __future__ import annotations


class SolutionError(Exception):
    def __init__(self, message: str, code: str = "UNKNOWN"):
        self.message = message
        self.code = code
        super().__init__(message)


class SolutionParseError(SolutionError):
    """The solution text does not follow the expected grammar.

    ``line_number`` is 1-based and ``line`` is the raw text of the
    offending line.
    """

    def __init__(self, message: str, line_number: int, line: str, path: str = ""):
        self.reason = message
        self.line_number = line_number
        self.line = line
        self.path = path
        location = f"{path}:{line_number}" if path else f"line {line_number}"
        super().__init__(f"{location}: {message}: {line!r}", code="PARSE_ERROR")


class ProjectNotFoundError(SolutionError, LookupError):
    def __init__(self, project_id: str):
        super().__init__(
            f"No project with id {project_id} in solution",
            code="NOT_FOUND",
        )
        self.project_id = project_id


class InvalidOperationError(SolutionError):
    def __init__(self, message: str, code: str = "INVALID_OPERATION"):
        super().__init__(message, code=code)


class StaleEntityError(InvalidOperationError):
    """An entity from an earlier scan was passed to a mutation."""

    def __init__(self, entity: object):
        super().__init__(
            f"{entity} is out of date; fetch it again from the solution",
            code="STALE_ENTITY",
        )
        self.entity = entity


class NestingCycleError(InvalidOperationError):
    def __init__(self, cycle: list[str]):
        super().__init__(
            f"Solution folder nesting contains a cycle: {' -> '.join(cycle)}",
            code="NESTING_CYCLE",
        )
        self.cycle = cycle


def require(value, name: str):
    """Return ``value``, raising ``ValueError`` when it is None."""
    if value is None:
        raise ValueError(f"{name} is required")
    return value


def require_text(value: str | None, name: str) -> str:
    """Return ``value``, raising ``ValueError`` when it is None or empty."""
    if not value:
        raise ValueError(f"{name} is required")
    return value
