"""abort_if step: stop the dataflow when a condition holds."""

from __future__ import annotations

from typing import Any

from dataflow_vars.context import ExecutionContext
from dataflow_vars.errors import DataflowAbortedError
from dataflow_vars.models import AbortIfConfig, StepDefinition


def execute_abort_if(
    step: StepDefinition,
    config: AbortIfConfig,
    context: ExecutionContext,
    input: Any = None,
) -> Any:
    """Abort unless the resolved condition is exactly ``False``.

    An empty condition always aborts. Anything other than ``False``
    (including an expression that never resolved) also aborts.
    """
    if config.condition is False:
        return input

    if config.condition == "":
        raise DataflowAbortedError(step.alias, "Aborting (no condition set)")
    raise DataflowAbortedError(step.alias, f"Aborting: condition was {config.condition!r}")
