"""Dataflow executor: the main orchestrator.

Builds the variable tree, resolves each step's config through it,
dispatches steps to their executors and tracks timing.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from dataflow_vars import dataflow_logger
from dataflow_vars.config import GlobalConfig
from dataflow_vars.context import ExecutionContext, SaveFn
from dataflow_vars.errors import DataflowError, StepExecutionError
from dataflow_vars.expressions import ExpressionEvaluator
from dataflow_vars.loader import validate_vars
from dataflow_vars.models import (
    STEP_CONFIG_MODELS,
    AbortIfConfig,
    DataflowDefinition,
    DataflowResult,
    HashFileConfig,
    ReaderJsonConfig,
    SetVariableConfig,
    StepConfig,
    StepDefinition,
    StepResult,
)
from dataflow_vars.steps.abort_if import execute_abort_if
from dataflow_vars.steps.hash_file import execute_hash_file
from dataflow_vars.steps.reader_json import execute_reader_json
from dataflow_vars.steps.set_variable import execute_set_variable
from dataflow_vars.variables import clone_tree, set_at_path


def load_step_config(step: StepDefinition, context: ExecutionContext) -> StepConfig:
    """Resolve a step's config through the variable tree and validate it."""
    raw = context.step_variables(step.alias).get("config") or {}
    try:
        return STEP_CONFIG_MODELS[step.type].model_validate(raw)
    except PydanticValidationError as e:
        raise StepExecutionError(step.alias, f"Invalid config: {e}", cause=e) from e


def execute_step(
    step: StepDefinition, context: ExecutionContext, input: Any = None
) -> Any:
    """Dispatch a step to its executor based on its resolved config.

    Uses structural pattern matching on the Pydantic config model type.
    """
    config = load_step_config(step, context)
    match config:
        case SetVariableConfig():
            return execute_set_variable(step, config, context, input)
        case AbortIfConfig():
            return execute_abort_if(step, config, context, input)
        case HashFileConfig():
            return execute_hash_file(step, config, context, input)
        case ReaderJsonConfig():
            return execute_reader_json(step, config, context, input)
        case _:
            raise StepExecutionError(step.alias, f"Unknown step type: {step.type}")


def run_dataflow(
    definition: DataflowDefinition,
    global_config: GlobalConfig | None = None,
    *,
    evaluator: ExpressionEvaluator | None = None,
    base_dir: str | Path | None = None,
    save: SaveFn | None = None,
    overrides: dict[str, Any] | None = None,
    force: bool = False,
) -> DataflowResult:
    """Execute a dataflow definition.

    1. Refuses disabled dataflows unless ``force`` is set.
    2. Validates the dataflow vars (with overrides) against ``vars_schema``.
    3. Creates an ExecutionContext (and with it the variable tree) and
       applies the overrides to the tree.
    4. Executes each step in order, feeding each the previous output.
    5. Returns the DataflowResult with the final resolved variables.

    Args:
        definition: Parsed dataflow definition.
        global_config: Global settings and vars snapshot.
        evaluator: Expression evaluator; JSONata by default.
        base_dir: Directory relative step paths are anchored at.
        save: Called with the definition after a step changes
            ``dataflow.vars``.
        overrides: Values for ``dataflow.vars`` (dotted keys) that apply to
            this run only. They go into the variable tree, never into
            ``definition``, so ``save`` does not write them back.
        force: Run even if the dataflow is disabled.

    Raises:
        DataflowError: If the dataflow is disabled.
        ValidationError: If vars don't match ``vars_schema``.
        StepExecutionError: If any step fails.
        ExpressionError: If variables can't be resolved.
    """
    if not definition.enabled and not force:
        raise DataflowError(f"Dataflow '{definition.name}' is disabled")

    overrides = overrides or {}
    if definition.vars_schema is not None:
        run_vars = clone_tree(definition.vars)
        for key, value in overrides.items():
            set_at_path(run_vars, key, value)
        validate_vars(definition.vars_schema, run_vars)

    context = ExecutionContext(
        definition, global_config, evaluator=evaluator, base_dir=base_dir, save=save
    )
    for key, value in overrides.items():
        context.variables.set(f"dataflow.vars.{key}", value)

    step_results: list[StepResult] = []
    start = time.monotonic()
    dataflow_logger.log_dataflow_start(definition.name, len(definition.steps))

    output: Any = None
    for step in definition.steps:
        step_start = time.monotonic()
        dataflow_logger.log_step_start(step.alias, step.type)

        try:
            output = execute_step(step, context, output)
        except DataflowError as e:
            dataflow_logger.log_error(step.alias, str(e))
            raise
        except Exception as e:
            dataflow_logger.log_error(step.alias, str(e))
            raise StepExecutionError(step.alias, str(e), cause=e) from e

        duration_ms = (time.monotonic() - step_start) * 1000
        step_results.append(
            StepResult(step_alias=step.alias, value=output, duration_ms=duration_ms)
        )
        dataflow_logger.log_step_complete(step.alias, duration_ms)

    total_ms = (time.monotonic() - start) * 1000

    return DataflowResult(
        output=output,
        step_results=step_results,
        total_duration_ms=total_ms,
        variables=context.variables.get_tree(),
    )
