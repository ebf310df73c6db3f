"""Tests for YAML dataflow loading/saving and vars JSON Schema validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from dataflow_vars.errors import DataflowLoadError, ValidationError
from dataflow_vars.loader import load_dataflow, save_dataflow, validate_vars

FIXTURES = Path(__file__).parent / "fixtures"


def test_load_fixture():
    defn = load_dataflow(FIXTURES / "extract_flow.yaml")
    assert defn.name == "nightly-extract"
    assert [s.alias for s in defn.steps] == ["read_users", "hash_users", "remember", "guard"]
    assert defn.steps[1].config["path"] == "{{ steps.read_users.config.path }}"
    assert defn.vars["limit"] == 10


def test_load_simple_dataflow(tmp_path):
    yaml_content = """\
name: tiny
enabled: false
vars:
  greeting: hello
steps:
  - name: Stop
    alias: stop
    type: abort_if
    config:
      condition: false
"""
    path = tmp_path / "flow.yaml"
    path.write_text(yaml_content)
    defn = load_dataflow(path)
    assert defn.enabled is False
    assert defn.steps[0].config == {"condition": False}


def test_load_missing_file(tmp_path):
    with pytest.raises(DataflowLoadError, match="not found"):
        load_dataflow(tmp_path / "nope.yaml")


def test_load_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("name: [unclosed")
    with pytest.raises(DataflowLoadError, match="Invalid YAML"):
        load_dataflow(path)


def test_load_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- name: x\n")
    with pytest.raises(DataflowLoadError, match="must be a mapping"):
        load_dataflow(path)


def test_load_duplicate_alias(tmp_path):
    yaml_content = """\
name: dup
steps:
  - {name: A, alias: same, type: abort_if}
  - {name: B, alias: same, type: abort_if}
"""
    path = tmp_path / "dup.yaml"
    path.write_text(yaml_content)
    with pytest.raises(DataflowLoadError, match="Duplicate step alias"):
        load_dataflow(path)


def test_load_missing_name(tmp_path):
    path = tmp_path / "noname.yaml"
    path.write_text("steps: []\n")
    with pytest.raises(DataflowLoadError, match="structure invalid"):
        load_dataflow(path)


def test_save_then_load_preserves_definition(tmp_path):
    defn = load_dataflow(FIXTURES / "extract_flow.yaml")
    defn.vars["last_hash"] = "abc123"
    path = tmp_path / "saved.yaml"
    save_dataflow(defn, path)
    assert load_dataflow(path) == defn


def test_validate_vars_passes():
    schema = {"type": "object", "properties": {"limit": {"type": "integer"}}}
    validate_vars(schema, {"limit": 3})


def test_validate_vars_fails():
    schema = {
        "type": "object",
        "properties": {"limit": {"type": "integer"}},
        "required": ["limit"],
    }
    with pytest.raises(ValidationError, match="Vars validation failed"):
        validate_vars(schema, {"limit": "three"})
