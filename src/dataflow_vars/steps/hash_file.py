"""hash_file step: store a file's digest in the step's vars."""

from __future__ import annotations

import hashlib
from typing import Any

from dataflow_vars import dataflow_logger
from dataflow_vars.context import ExecutionContext
from dataflow_vars.errors import StepExecutionError
from dataflow_vars.models import HashFileConfig, StepDefinition

_CHUNK_SIZE = 64 * 1024


def execute_hash_file(
    step: StepDefinition,
    config: HashFileConfig,
    context: ExecutionContext,
    input: Any = None,
) -> Any:
    """Hash the file at ``config.path`` and set ``vars.hash`` on this step.

    Any algorithm ``hashlib.new`` accepts is allowed. Relative paths are
    anchored at the context's base directory.
    """
    path = context.resolve_path(config.path)
    if not path.is_file():
        raise StepExecutionError(step.alias, f"File not found: {config.path}")

    try:
        digest = hashlib.new(config.algorithm)
    except ValueError as e:
        raise StepExecutionError(
            step.alias,
            f"Unsupported hash algorithm '{config.algorithm}'. "
            f"Available: {', '.join(sorted(hashlib.algorithms_available))}",
            cause=e,
        ) from e

    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)

    value = digest.hexdigest()
    dataflow_logger.log_file_hashed(step.alias, path, config.algorithm, value)
    context.step_variables(step.alias).set("vars.hash", value)
    return input
