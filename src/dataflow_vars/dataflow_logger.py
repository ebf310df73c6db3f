"""Structured JSON logging for dataflow runs.

Writes JSON-lines to disk so agents and humans can debug dataflow
runs after the fact. Each log entry is a single JSON object on one line.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

_logger = logging.getLogger("dataflow_vars")


def configure_logging(
    log_dir: str | Path, level: int = logging.DEBUG
) -> None:
    """Set up dataflow logging to write JSON-lines to a file.

    Args:
        log_dir: Directory to write ``dataflow.log`` into.
        level: Logging level (default: DEBUG).
    """
    log_path = Path(log_dir) / "dataflow.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(str(log_path))
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    _logger.addHandler(handler)
    _logger.setLevel(level)


def _log(event: dict[str, Any], level: int = logging.INFO) -> None:
    _logger.log(level, json.dumps(event, default=str))


def log_dataflow_start(name: str, step_count: int) -> None:
    _log({"event": "dataflow_start", "dataflow": name, "step_count": step_count})


def log_step_start(step_alias: str, step_type: str) -> None:
    _log({"event": "step_start", "step_alias": step_alias, "step_type": step_type})


def log_step_complete(step_alias: str, duration_ms: float) -> None:
    _log({
        "event": "step_complete",
        "step_alias": step_alias,
        "duration_ms": round(duration_ms, 2),
    })


def log_variables_resolved(passes: int, converged: bool) -> None:
    _log({"event": "variables_resolved", "passes": passes, "converged": converged})


def log_resolution_incomplete(limit: int, pending: list[str]) -> None:
    _log(
        {"event": "resolution_incomplete", "limit": limit, "pending": pending},
        level=logging.WARNING,
    )


def log_variable_set(path: str) -> None:
    _log({"event": "variable_set", "path": path}, level=logging.DEBUG)


def log_file_hashed(step_alias: str, path: str | Path, algorithm: str, digest: str) -> None:
    _log(
        {
            "event": "file_hashed",
            "step_alias": step_alias,
            "path": str(path),
            "algorithm": algorithm,
            "hash": digest,
        },
        level=logging.DEBUG,
    )


def log_error(step_alias: str, error: str) -> None:
    _log({"event": "error", "step_alias": step_alias, "error": error}, level=logging.ERROR)
