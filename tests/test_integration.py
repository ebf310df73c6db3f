"""End-to-end integration tests loading real YAML dataflows.

These tests exercise the full flow: YAML load -> validate -> execute,
using real filesystem operations.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from pathlib import Path

import pytest

from dataflow_vars import (
    RecursiveExpressionError,
    VariableTree,
    load_dataflow,
    load_global_config,
    run_dataflow,
    save_dataflow,
    validate_dataflow,
)

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def workdir(tmp_path) -> Path:
    shutil.copy(FIXTURES / "extract_flow.yaml", tmp_path / "extract_flow.yaml")
    shutil.copy(FIXTURES / "users.json", tmp_path / "users.json")
    return tmp_path


def test_extract_flow_end_to_end(workdir):
    defn = load_dataflow(workdir / "extract_flow.yaml")
    assert validate_dataflow(defn).ok

    result = run_dataflow(
        defn, load_global_config(FIXTURES / "global.yaml"), base_dir=workdir
    )

    assert [u["id"] for u in result.output] == ["3", "2", "1"]

    digest = hashlib.md5((workdir / "users.json").read_bytes()).hexdigest()
    variables = result.variables
    assert variables["steps"]["hash_users"]["vars"]["hash"] == digest
    assert variables["steps"]["hash_users"]["config"]["path"] == "users.json"
    assert variables["dataflow"]["vars"]["last_hash"] == digest
    assert variables["dataflow"]["vars"]["label"] == "nightly-extract for https://example.org/admin"
    assert variables["dataflow"]["vars"]["source_dir"] == "/srv/data/extracts"
    assert variables["global"]["vars"]["owner"] == "https://example.org/admin"
    assert variables["steps"]["guard"]["config"]["condition"] is False


def test_extract_flow_persists_dataflow_vars(workdir):
    flow = workdir / "extract_flow.yaml"
    defn = load_dataflow(flow)

    run_dataflow(defn, base_dir=workdir, save=lambda d: save_dataflow(d, flow))

    digest = hashlib.md5((workdir / "users.json").read_bytes()).hexdigest()
    reloaded = load_dataflow(flow)
    assert reloaded.vars["last_hash"] == digest
    assert reloaded.vars["label"] == "{{ dataflow.name }} for {{ global.vars.owner }}"
    assert reloaded.steps == defn.steps


def test_variable_tree_from_yaml():
    tree = VariableTree(
        load_dataflow(FIXTURES / "extract_flow.yaml"),
        load_global_config(FIXTURES / "global.yaml"),
    )
    assert tree.aliases == ["read_users", "hash_users", "remember", "guard"]
    assert tree.step("hash_users").get("config.path") == "users.json"
    assert tree.get("steps.guard.config.condition") is False
    # Not produced until hash_users runs.
    assert tree.get("steps.remember.config.value") == "{{ steps.hash_users.vars.hash }}"


def test_broken_flow_fails_validation_and_resolution():
    defn = load_dataflow(FIXTURES / "broken_flow.yaml")
    assert not validate_dataflow(defn).ok
    with pytest.raises(RecursiveExpressionError):
        VariableTree(defn).get_tree()


def test_logging_writes_to_disk(workdir):
    """When logging is configured, dataflow.log should contain events."""
    from dataflow_vars import configure_logging

    logger = logging.getLogger("dataflow_vars")
    handlers, level = list(logger.handlers), logger.level
    log_dir = workdir / "logs"
    configure_logging(log_dir)
    try:
        run_dataflow(load_dataflow(workdir / "extract_flow.yaml"), base_dir=workdir)
    finally:
        for handler in logger.handlers[len(handlers):]:
            handler.close()
        logger.handlers = handlers
        logger.setLevel(level)

    lines = (log_dir / "dataflow.log").read_text().strip().split("\n")
    events = [json.loads(line) for line in lines]
    event_types = [e["event"] for e in events]
    assert event_types[0] == "dataflow_start"
    assert "step_start" in event_types
    assert "step_complete" in event_types
    assert "file_hashed" in event_types
    assert "variable_set" in event_types
