"""Custom exception hierarchy for dataflow-vars.

All exceptions inherit from DataflowError so callers can catch broadly
or narrowly as needed.
"""

from __future__ import annotations


class DataflowError(Exception):
    """Base for all dataflow-vars errors."""


class DataflowLoadError(DataflowError):
    """YAML parsing or dataflow/config structure validation failed."""


class ExpressionError(DataflowError):
    """JSONata expression compilation or evaluation failed."""


class RecursiveExpressionError(ExpressionError):
    """An expression read its own unresolved slot while being evaluated."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Recursive expression detected at '{path}'")


class ExpressionNotConvergedError(ExpressionError):
    """Resolution hit the iteration cap with expressions still pending."""

    def __init__(self, paths: list[str], limit: int) -> None:
        self.paths = paths
        self.limit = limit
        super().__init__(
            f"Variables did not resolve within {limit} passes: {', '.join(paths)}"
        )


class InvalidPathWriteError(DataflowError, TypeError):
    """A dotted-path write tried to descend through a non-container."""


class StepExecutionError(DataflowError):
    """A step failed during execution."""

    def __init__(
        self,
        step_alias: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        self.step_alias = step_alias
        self.cause = cause
        super().__init__(f"Step '{step_alias}' failed: {message}")


class DataflowAbortedError(StepExecutionError):
    """An abort_if step stopped the dataflow."""


class ValidationError(DataflowError):
    """Dataflow vars failed validation against their JSON Schema."""
