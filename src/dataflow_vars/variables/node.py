"""Variable nodes and dotted-path addressing.

A node is either a Scalar (str, number, bool, None, or a list, which is
carried around as an opaque value) or a Map: a plain ``dict`` from name
to node. Trees are owned recursive containers; every function here that
hands out a tree builds a fresh one.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from typing import Any, Union

from dataflow_vars.errors import InvalidPathWriteError

Scalar = Union[str, int, float, bool, None, list]
VariableMap = dict[str, Any]
Node = Union[Scalar, VariableMap]

PATH_SEPARATOR = "."


def is_map(value: Any) -> bool:
    return isinstance(value, Mapping)


def clone_tree(source: Mapping[str, Any]) -> VariableMap:
    """Deep structural copy of a Map-rooted tree.

    Nested Maps are rebuilt as fresh dicts under the same (stringified)
    key; scalars are copied by value. ``source`` is never touched.
    """
    tree: VariableMap = {}
    for key, value in source.items():
        tree[str(key)] = clone_value(value)
    return tree


def clone_value(value: Any) -> Any:
    """Clone a single node of either kind."""
    if is_map(value):
        return clone_tree(value)
    if isinstance(value, list):
        return copy.deepcopy(value)
    return value


def split_path(path: str) -> list[str]:
    return path.split(PATH_SEPARATOR)


def join_path(prefix: str, name: str) -> str:
    return f"{prefix}{PATH_SEPARATOR}{name}" if prefix else name


def get_at_path(tree: Mapping[str, Any], path: str) -> Any:
    """Return the node at ``path``, or None if any level is missing.

    Missing paths are an expected outcome (fallback lookups rely on it),
    so this never raises.
    """
    current: Any = tree
    for level in split_path(path):
        if not is_map(current) or level not in current:
            return None
        current = current[level]
    return current


def set_at_path(tree: VariableMap, path: str, value: Any) -> None:
    """Write ``value`` at ``path``, creating intermediate Maps as needed.

    The whole path is checked before anything is created, so a rejected
    write leaves ``tree`` exactly as it was.

    Raises:
        InvalidPathWriteError: If a segment is empty, or an existing
            intermediate level holds a scalar.
    """
    levels = split_path(path)
    if any(level == "" for level in levels):
        raise InvalidPathWriteError(f"Invalid variable path '{path}'")

    current: Any = tree
    for depth, level in enumerate(levels[:-1]):
        if level not in current:
            break
        current = current[level]
        if not is_map(current):
            walked = PATH_SEPARATOR.join(levels[: depth + 1])
            raise InvalidPathWriteError(
                f"Cannot set '{path}': '{walked}' is not a container"
            )

    current = tree
    for level in levels[:-1]:
        current = current.setdefault(level, {})
    current[levels[-1]] = clone_value(value)


def iter_leaves(tree: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    """Yield ``(dotted_path, value)`` for every scalar, depth-first."""
    for key, value in tree.items():
        path = join_path(prefix, str(key))
        if is_map(value):
            yield from iter_leaves(value, path)
        else:
            yield path, value
