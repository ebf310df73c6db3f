"""reader_json step: read an array of records out of a JSON file."""

from __future__ import annotations

import json
import re
from typing import Any

from dataflow_vars.context import ExecutionContext
from dataflow_vars.errors import StepExecutionError
from dataflow_vars.expressions import evaluate_expression
from dataflow_vars.models import ReaderJsonConfig, StepDefinition

_DIGITS = re.compile(r"(\d+)")


def natural_key(value: Any) -> list[Any]:
    """Case-insensitive natural sort key ("item2" sorts before "item10")."""
    parts = _DIGITS.split(str(value).lower())
    return [int(part) if i % 2 else part for i, part in enumerate(parts)]


def execute_reader_json(
    step: StepDefinition,
    config: ReaderJsonConfig,
    context: ExecutionContext,
    input: Any = None,
) -> list[Any]:
    """Load ``config.path`` and return the records it holds.

    ``array_key`` is a JSONata expression selecting the array inside the
    document (empty means the document itself). ``array_sort`` is a
    JSONata expression evaluated per record to sort by.
    """
    path = context.resolve_path(config.path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise StepExecutionError(
            step.alias, f"Failed to open file: {config.path}", cause=e
        ) from e
    except json.JSONDecodeError as e:
        raise StepExecutionError(
            step.alias, f"Failed to decode JSON in {config.path}: {e}", cause=e
        ) from e

    records = evaluate_expression(config.array_key, data) if config.array_key else data
    if records is None:
        raise StepExecutionError(
            step.alias, f"Failed to fetch array at '{config.array_key}'"
        )
    if not isinstance(records, list):
        raise StepExecutionError(
            step.alias,
            f"array_key must resolve to a list, got {type(records).__name__}",
        )

    if config.array_sort:
        records = sorted(
            records,
            key=lambda record: natural_key(evaluate_expression(config.array_sort, record)),
        )
    return records
