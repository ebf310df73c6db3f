"""The variable tree: owns every scope and resolves expressions between them.

Layout of the namespace::

    global.cfg                process settings
    global.vars               user-authored global vars
    dataflow.name / .vars / .config.{enabled, concurrency_enabled}
    steps.<alias>.{name, alias, type, config, vars}

The *source* tree holds values exactly as supplied. Reading goes through
a *working* tree, a fresh clone of the source in which embedded
expressions have been evaluated repeatedly until a pass finds nothing
left to evaluate (or ``repeat_limit`` passes have run).
"""

from __future__ import annotations

import uuid
from typing import Any

from dataflow_vars import dataflow_logger
from dataflow_vars.config import DEFAULT_REPEAT_LIMIT, GlobalConfig
from dataflow_vars.errors import (
    DataflowError,
    ExpressionNotConvergedError,
    RecursiveExpressionError,
)
from dataflow_vars.expressions import ExpressionEvaluator, JsonataEvaluator
from dataflow_vars.models import DataflowDefinition
from dataflow_vars.variables.node import (
    VariableMap,
    clone_tree,
    clone_value,
    get_at_path,
    is_map,
    iter_leaves,
    join_path,
    set_at_path,
)
from dataflow_vars.variables.step import StepVariables

REPEAT_LIMIT = DEFAULT_REPEAT_LIMIT


def _contains(value: Any, marker: str) -> bool:
    if isinstance(value, str):
        return marker in value
    if is_map(value):
        return any(_contains(v, marker) for v in value.values())
    if isinstance(value, list):
        return any(_contains(v, marker) for v in value)
    return False


class VariableTree:
    """Root of the variable namespace for one dataflow evaluation context."""

    def __init__(
        self,
        dataflow: DataflowDefinition,
        global_config: GlobalConfig | None = None,
        *,
        evaluator: ExpressionEvaluator | None = None,
        repeat_limit: int | None = None,
        strict: bool | None = None,
    ) -> None:
        config = global_config or GlobalConfig()
        self._evaluator = evaluator or JsonataEvaluator()
        if repeat_limit is None:
            repeat_limit = config.resolver.repeat_limit
        if repeat_limit < 1:
            raise ValueError(f"repeat_limit must be at least 1, got {repeat_limit}")
        self._repeat_limit = repeat_limit
        self._strict = config.resolver.strict if strict is None else strict
        # Unique per tree, so no user-supplied value can collide with it.
        self._placeholder = f"__placeholder_{uuid.uuid4().hex}__"

        self._tree: VariableMap | None = None
        self._valid = False
        self._passes = 0

        steps: VariableMap = {}
        self._steps: dict[str, StepVariables] = {}
        for step in dataflow.steps:
            steps[step.alias] = {
                "name": step.name,
                "alias": step.alias,
                "type": step.type,
                "config": clone_tree(step.config),
                "vars": clone_tree(step.vars),
            }
            self._steps[step.alias] = StepVariables(step.alias, self)

        self._source: VariableMap = {
            "global": {
                "cfg": clone_tree(config.cfg),
                "vars": clone_tree(config.vars),
            },
            "dataflow": {
                "name": dataflow.name,
                "vars": clone_tree(dataflow.vars),
                "config": {
                    "enabled": dataflow.enabled,
                    "concurrency_enabled": dataflow.concurrency_enabled,
                },
            },
            "steps": steps,
        }

    # ── Accessors ────────────────────────────────────────────────

    @property
    def is_valid(self) -> bool:
        return self._valid

    @property
    def passes(self) -> int:
        """Number of walks made by the last successful reconstruction."""
        return self._passes

    @property
    def aliases(self) -> list[str]:
        return list(self._steps)

    def step(self, alias: str) -> StepVariables:
        try:
            return self._steps[alias]
        except KeyError:
            raise DataflowError(f"Unknown step alias: '{alias}'") from None

    def get_tree(self) -> VariableMap:
        """Return the resolved tree, reconstructing it first if stale."""
        if not self._valid or self._tree is None:
            self.reconstruct()
        return self._tree

    def get(self, path: str) -> Any:
        """Resolved value at a dotted path, or None if it doesn't exist."""
        return get_at_path(self.get_tree(), path)

    def get_raw(self, path: str) -> Any:
        """Unresolved value at a dotted path, as originally supplied."""
        return clone_value(get_at_path(self._source, path))

    def get_raw_tree(self) -> VariableMap:
        """A copy of the whole unresolved source tree."""
        return clone_tree(self._source)

    def set(self, path: str, value: Any) -> None:
        """Write into the source tree and drop the resolved snapshot.

        Raises:
            InvalidPathWriteError: If the path runs through a scalar.
        """
        set_at_path(self._source, path, value)
        dataflow_logger.log_variable_set(path)
        self.invalidate()

    def invalidate(self) -> None:
        self._valid = False

    # ── Resolution ───────────────────────────────────────────────

    def reconstruct(self) -> None:
        """Rebuild the working tree from source and resolve every expression.

        The new tree only replaces the cached one once resolution succeeds.

        Raises:
            RecursiveExpressionError: If an expression reads its own slot.
            ExpressionNotConvergedError: In strict mode, if expressions are
                still pending after ``repeat_limit`` passes.
            ExpressionError: If the evaluator fails.
        """
        tree = clone_tree(self._source)

        passes = 0
        converged = False
        while passes < self._repeat_limit:
            passes += 1
            if not self._walk(tree, tree, ""):
                converged = True
                break

        if not converged:
            pending = [
                path
                for path, value in iter_leaves(tree)
                if self._evaluator.has_expression(value)
            ]
            converged = not pending
            if pending:
                dataflow_logger.log_resolution_incomplete(self._repeat_limit, pending)
                if self._strict:
                    raise ExpressionNotConvergedError(pending, self._repeat_limit)

        self._tree = tree
        self._passes = passes
        self._valid = True
        dataflow_logger.log_variables_resolved(passes, converged)

    def _walk(self, tree: VariableMap, node: VariableMap, prefix: str) -> bool:
        """One depth-first pass. True if any leaf held an expression."""
        found = False
        for key, value in list(node.items()):
            path = join_path(prefix, key)
            if is_map(value):
                found |= self._walk(tree, value, path)
            else:
                found |= self._resolve_leaf(tree, node, key, path)
        return found

    def _resolve_leaf(
        self, tree: VariableMap, node: VariableMap, key: str, path: str
    ) -> bool:
        value = node[key]
        if not self._evaluator.has_expression(value):
            return False

        # The leaf's own slot reads as the placeholder while it is evaluated.
        node[key] = self._placeholder
        try:
            resolved = self._evaluator.evaluate(value, tree)
        finally:
            node[key] = value

        if _contains(resolved, self._placeholder):
            raise RecursiveExpressionError(path)
        if resolved is not None:
            node[key] = clone_value(resolved)
        return True
