"""Dataflow execution context.

Holds everything a step needs while a dataflow runs: the variable tree,
the definition it was built from, where relative paths are anchored,
and how to persist changes to the dataflow's own vars.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from dataflow_vars.config import GlobalConfig
from dataflow_vars.expressions import ExpressionEvaluator
from dataflow_vars.models import DataflowDefinition
from dataflow_vars.variables import StepVariables, VariableTree, set_at_path

SaveFn = Callable[[DataflowDefinition], None]


class ExecutionContext:
    """Per-run state shared by every step.

    The variable tree lives exactly as long as this context does.
    """

    def __init__(
        self,
        definition: DataflowDefinition,
        global_config: GlobalConfig | None = None,
        *,
        evaluator: ExpressionEvaluator | None = None,
        base_dir: str | Path | None = None,
        save: SaveFn | None = None,
    ) -> None:
        self.definition = definition
        self.variables = VariableTree(definition, global_config, evaluator=evaluator)
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._save = save

    def step_variables(self, alias: str) -> StepVariables:
        return self.variables.step(alias)

    def resolve_path(self, path: str | Path) -> Path:
        """Anchor a relative path at ``base_dir``; absolute paths pass through."""
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return self.base_dir / path

    def persist_dataflow_vars(self, name: str, value: Any) -> None:
        """Store ``value`` at ``name`` in the definition's vars and save it.

        Only touches the definition; callers update the variable tree
        themselves.
        """
        set_at_path(self.definition.vars, name, value)
        if self._save is not None:
            self._save(self.definition)
