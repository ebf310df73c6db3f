"""Per-step view onto the variable tree."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dataflow_vars.variables.tree import VariableTree


class StepVariables:
    """Resolves names relative to ``steps.<alias>`` before the whole tree.

    Holds only the alias and a reference to the owning tree; all data
    lives in the tree itself, so writes are visible to it immediately.
    """

    def __init__(self, alias: str, root: VariableTree) -> None:
        self._alias = alias
        self._root = root

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def prefix(self) -> str:
        return f"steps.{self._alias}"

    def get(self, name: str) -> Any:
        """Look up ``name`` in this step's scope, then globally.

        Args:
            name: Dotted name, e.g. ``"vars.count"`` or ``"global.cfg.wwwroot"``.

        Returns:
            The resolved value, or None if neither lookup finds it.
        """
        value = self._root.get(f"{self.prefix}.{name}")
        if value is not None:
            return value
        return self._root.get(name)

    def set(self, name: str, value: Any) -> None:
        """Set a variable inside this step's own scope.

        Args:
            name: Dotted name relative to the step (e.g. ``"config.destination"``).
            value: Value to store.

        Raises:
            InvalidPathWriteError: If the path runs through a scalar.
        """
        self._root.set(f"{self.prefix}.{name}", value)

    def __repr__(self) -> str:
        return f"StepVariables(alias={self._alias!r})"
