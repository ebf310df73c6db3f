"""Global configuration snapshot.

Process-wide settings and the user-authored global vars are read once
by the caller and handed to the variable tree as a ``GlobalConfig``.
Nothing in the resolution core reads ambient state on its own.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from dataflow_vars.errors import DataflowLoadError

DEFAULT_REPEAT_LIMIT = 100


class ResolverSettings(BaseModel):
    repeat_limit: int = Field(default=DEFAULT_REPEAT_LIMIT, ge=1)
    strict: bool = False


class GlobalConfig(BaseModel):
    cfg: dict[str, Any] = Field(default_factory=dict)
    vars: dict[str, Any] = Field(default_factory=dict)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)

    @field_validator("vars", mode="before")
    @classmethod
    def _parse_vars(cls, value: Any) -> Any:
        """Global vars may be stored as a YAML blob rather than a mapping."""
        if value is None:
            return {}
        if isinstance(value, str):
            try:
                value = yaml.safe_load(value)
            except yaml.YAMLError as e:
                raise ValueError(f"global vars are not valid YAML: {e}") from e
            if value is None:
                return {}
        if not isinstance(value, dict):
            raise ValueError(
                f"global vars must be a mapping, got {type(value).__name__}"
            )
        return value


def load_global_config(path: str | Path | None = None) -> GlobalConfig:
    """Load the global configuration from a YAML file.

    Args:
        path: YAML file with optional ``cfg``, ``vars`` and ``resolver``
            sections. ``None`` returns the defaults.

    Raises:
        DataflowLoadError: If the file is missing, isn't valid YAML,
            or doesn't match the expected structure.
    """
    if path is None:
        return GlobalConfig()

    path = Path(path)
    if not path.is_file():
        raise DataflowLoadError(f"Config file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise DataflowLoadError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise DataflowLoadError(
            f"Config YAML must be a mapping, got {type(raw).__name__}"
        )

    try:
        return GlobalConfig.model_validate(raw)
    except PydanticValidationError as e:
        raise DataflowLoadError(f"Config structure invalid: {e}") from e
