"""Pydantic models for dataflow definitions, step configs and results.

All data structures live here. No business logic, just shapes.
Step configs are kept raw on the definition (they may hold unresolved
expressions) and are validated against the per-type config model only
after the variable tree has resolved them.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


# ── Step definitions ──────────────────────────────────────────────

StepType = Literal["set_variable", "abort_if", "hash_file", "reader_json"]


class StepDefinition(BaseModel):
    name: str
    alias: str = Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    type: StepType
    config: dict[str, Any] = Field(default_factory=dict)
    vars: dict[str, Any] = Field(default_factory=dict)


# ── Step configs (validated after resolution) ─────────────────────


class SetVariableConfig(BaseModel):
    field: str
    value: Any = None


class AbortIfConfig(BaseModel):
    condition: Any = ""


class HashFileConfig(BaseModel):
    path: str
    algorithm: str = "sha256"


class ReaderJsonConfig(BaseModel):
    path: str
    array_key: str = ""
    array_sort: str = ""


StepConfig = SetVariableConfig | AbortIfConfig | HashFileConfig | ReaderJsonConfig

STEP_CONFIG_MODELS: dict[str, type[BaseModel]] = {
    "set_variable": SetVariableConfig,
    "abort_if": AbortIfConfig,
    "hash_file": HashFileConfig,
    "reader_json": ReaderJsonConfig,
}


# ── Dataflow definition ──────────────────────────────────────────


class DataflowDefinition(BaseModel):
    name: str
    enabled: bool = True
    concurrency_enabled: bool = False
    vars: dict[str, Any] = Field(default_factory=dict)
    vars_schema: dict[str, Any] | None = None
    steps: list[StepDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _aliases_unique(self) -> DataflowDefinition:
        seen: set[str] = set()
        for step in self.steps:
            if step.alias in seen:
                raise ValueError(f"Duplicate step alias: '{step.alias}'")
            seen.add(step.alias)
        return self


# ── Runtime results ──────────────────────────────────────────────


class StepResult(BaseModel):
    step_alias: str
    value: Any
    duration_ms: float


class DataflowResult(BaseModel):
    output: Any
    step_results: list[StepResult]
    total_duration_ms: float
    variables: dict[str, Any]
