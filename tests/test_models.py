"""Tests for dataflow, step and step-config models."""

from __future__ import annotations

from typing import get_args

import pytest
from pydantic import ValidationError

from dataflow_vars.models import (
    STEP_CONFIG_MODELS,
    AbortIfConfig,
    DataflowDefinition,
    HashFileConfig,
    ReaderJsonConfig,
    SetVariableConfig,
    StepDefinition,
    StepType,
)


def test_step_definition_defaults():
    step = StepDefinition(name="Set", alias="set_it", type="set_variable")
    assert step.config == {}
    assert step.vars == {}


@pytest.mark.parametrize("alias", ["has.dot", "1starts_with_digit", "has space", ""])
def test_step_alias_must_be_identifier(alias):
    with pytest.raises(ValidationError):
        StepDefinition(name="x", alias=alias, type="set_variable")


def test_unknown_step_type_rejected():
    with pytest.raises(ValidationError):
        StepDefinition(name="x", alias="x", type="teleport")


def test_step_config_is_kept_raw():
    step = StepDefinition(
        name="x",
        alias="x",
        type="hash_file",
        config={"path": "{{ dataflow.vars.file }}", "algorithm": 5},
    )
    assert step.config["path"] == "{{ dataflow.vars.file }}"


def test_dataflow_defaults():
    defn = DataflowDefinition(name="flow")
    assert defn.enabled is True
    assert defn.concurrency_enabled is False
    assert defn.vars == {}
    assert defn.vars_schema is None
    assert defn.steps == []


def test_duplicate_aliases_rejected():
    with pytest.raises(ValidationError, match="Duplicate step alias"):
        DataflowDefinition(
            name="flow",
            steps=[
                {"name": "A", "alias": "same", "type": "abort_if"},
                {"name": "B", "alias": "same", "type": "set_variable"},
            ],
        )


def test_duplicate_names_allowed():
    defn = DataflowDefinition(
        name="flow",
        steps=[
            {"name": "Same", "alias": "a", "type": "abort_if"},
            {"name": "Same", "alias": "b", "type": "abort_if"},
        ],
    )
    assert [s.alias for s in defn.steps] == ["a", "b"]


def test_every_step_type_has_a_config_model():
    assert set(STEP_CONFIG_MODELS) == set(get_args(StepType))


def test_config_defaults():
    assert SetVariableConfig(field="a.b").value is None
    assert AbortIfConfig().condition == ""
    assert HashFileConfig(path="f").algorithm == "sha256"
    reader = ReaderJsonConfig(path="f.json")
    assert reader.array_key == ""
    assert reader.array_sort == ""


def test_hash_file_config_requires_path():
    with pytest.raises(ValidationError):
        HashFileConfig()
