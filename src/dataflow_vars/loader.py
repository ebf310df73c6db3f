"""YAML dataflow loading/saving and JSON Schema validation of vars."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError as PydanticValidationError

from dataflow_vars.errors import DataflowLoadError, ValidationError
from dataflow_vars.models import DataflowDefinition


def load_dataflow(path: str | Path) -> DataflowDefinition:
    """Load a dataflow definition from a YAML file.

    Parses YAML, then validates the structure via Pydantic.

    Args:
        path: Path to the YAML dataflow file.

    Returns:
        Validated DataflowDefinition.

    Raises:
        DataflowLoadError: If the file doesn't exist, YAML is invalid,
            or the structure doesn't match the expected schema.
    """
    path = Path(path)
    if not path.is_file():
        raise DataflowLoadError(f"Dataflow file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise DataflowLoadError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise DataflowLoadError(
            f"Dataflow YAML must be a mapping, got {type(raw).__name__}"
        )

    try:
        return DataflowDefinition.model_validate(raw)
    except PydanticValidationError as e:
        raise DataflowLoadError(
            f"Dataflow structure invalid: {e}"
        ) from e


def save_dataflow(definition: DataflowDefinition, path: str | Path) -> None:
    """Write a dataflow definition back to YAML.

    Used to persist ``dataflow.vars`` after a step changes them.
    """
    data = definition.model_dump(mode="json", exclude_none=True)
    Path(path).write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )


def validate_vars(schema: dict[str, Any], data: dict[str, Any]) -> None:
    """Validate dataflow vars against the dataflow's ``vars_schema``.

    Raises:
        ValidationError: If data doesn't match schema.
    """
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise ValidationError(f"Vars validation failed: {e.message}") from e
