"""Tests for set_variable step executor."""

from __future__ import annotations

import pytest

from dataflow_vars.context import ExecutionContext
from dataflow_vars.errors import InvalidPathWriteError
from dataflow_vars.models import DataflowDefinition, SetVariableConfig, StepDefinition
from dataflow_vars.steps.set_variable import execute_set_variable


def make_context(save=None) -> ExecutionContext:
    definition = DataflowDefinition(
        name="flow",
        vars={"counter": 1},
        steps=[
            StepDefinition(name="Set", alias="set_it", type="set_variable"),
            StepDefinition(name="Other", alias="other", type="abort_if"),
        ],
    )
    return ExecutionContext(definition, save=save)


def test_sets_step_var():
    ctx = make_context()
    step = ctx.definition.steps[0]
    config = SetVariableConfig(field="steps.other.vars.cursor", value=42)
    execute_set_variable(step, config, ctx)
    assert ctx.variables.get("steps.other.vars.cursor") == 42


def test_input_passes_through():
    ctx = make_context()
    step = ctx.definition.steps[0]
    config = SetVariableConfig(field="steps.set_it.vars.x", value=1)
    assert execute_set_variable(step, config, ctx, ["a", "b"]) == ["a", "b"]


def test_dataflow_vars_are_persisted():
    saved = []
    ctx = make_context(save=saved.append)
    step = ctx.definition.steps[0]
    config = SetVariableConfig(field="dataflow.vars.counter", value=2)

    execute_set_variable(step, config, ctx)

    assert ctx.variables.get("dataflow.vars.counter") == 2
    assert ctx.definition.vars == {"counter": 2}
    assert saved == [ctx.definition]


def test_nested_dataflow_vars_are_persisted():
    saved = []
    ctx = make_context(save=saved.append)
    step = ctx.definition.steps[0]
    config = SetVariableConfig(field="dataflow.vars.state.cursor", value="abc")

    execute_set_variable(step, config, ctx)

    assert ctx.definition.vars["state"] == {"cursor": "abc"}
    assert ctx.variables.get("dataflow.vars.state.cursor") == "abc"


def test_other_paths_are_not_persisted():
    saved = []
    ctx = make_context(save=saved.append)
    step = ctx.definition.steps[0]
    execute_set_variable(step, SetVariableConfig(field="global.vars.x", value=1), ctx)
    assert saved == []
    assert ctx.variables.get("global.vars.x") == 1


def test_dataflow_vars_itself_is_not_persisted():
    saved = []
    ctx = make_context(save=saved.append)
    step = ctx.definition.steps[0]
    config = SetVariableConfig(field="dataflow.vars", value={"fresh": True})
    execute_set_variable(step, config, ctx)
    assert saved == []
    assert ctx.variables.get("dataflow.vars.fresh") is True


def test_rejected_tree_write_is_not_persisted():
    saved = []
    ctx = make_context(save=saved.append)
    step = ctx.definition.steps[0]
    execute_set_variable(step, SetVariableConfig(field="dataflow.vars", value=5), ctx)

    with pytest.raises(InvalidPathWriteError):
        execute_set_variable(
            step, SetVariableConfig(field="dataflow.vars.x.y", value=1), ctx
        )

    assert saved == []
    assert ctx.definition.vars == {"counter": 1}


def test_write_through_scalar_raises():
    ctx = make_context()
    step = ctx.definition.steps[0]
    config = SetVariableConfig(field="dataflow.name.inner", value=1)
    with pytest.raises(InvalidPathWriteError):
        execute_set_variable(step, config, ctx)
