"""set_variable step: write a value anywhere in the variable tree."""

from __future__ import annotations

from typing import Any

from dataflow_vars.context import ExecutionContext
from dataflow_vars.models import SetVariableConfig, StepDefinition
from dataflow_vars.variables import split_path

_DATAFLOW_VARS = ["dataflow", "vars"]


def execute_set_variable(
    step: StepDefinition,
    config: SetVariableConfig,
    context: ExecutionContext,
    input: Any = None,
) -> Any:
    """Set ``config.field`` to ``config.value`` in the variable tree.

    ``field`` is a full dotted path (e.g. ``dataflow.vars.counter`` or
    ``steps.fetch.vars.cursor``). Paths under ``dataflow.vars`` are also
    written into the dataflow definition and saved, so they survive
    beyond this run, but only once the tree has accepted the write.
    The input passes through untouched.
    """
    context.variables.set(config.field, config.value)

    levels = split_path(config.field)
    if len(levels) > 2 and levels[:2] == _DATAFLOW_VARS:
        context.persist_dataflow_vars(".".join(levels[2:]), config.value)
    return input
