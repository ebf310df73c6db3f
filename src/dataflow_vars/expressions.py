"""JSONata expression evaluator for variable values.

Values embed expressions as ``{{ <jsonata> }}``. A value that is exactly
one expression resolves to the raw JSONata result (which may be a Map or
list); a value mixing text and expressions is interpolated into a string.

A whole-value body runs to the last ``}}``, so object constructors such
as ``{{ {"a": {"b": 1}} }}`` stay intact. Inside interpolated text a body
still ends at the first ``}}``.
"""

from __future__ import annotations

import functools
import json
import re
from typing import Any, Protocol

import jsonata

from dataflow_vars.errors import ExpressionError

EXPRESSION_PATTERN = re.compile(r"\{\{((?:(?!\}\}).)+?)\}\}", re.DOTALL)
WHOLE_EXPRESSION_PATTERN = re.compile(r"\{\{((?:(?!\{\{).)+)\}\}", re.DOTALL)


class ExpressionEvaluator(Protocol):
    """What the variable tree needs from an expression language."""

    def has_expression(self, value: Any) -> bool: ...

    def evaluate(self, value: str, context: dict[str, Any]) -> Any: ...


@functools.lru_cache(maxsize=512)
def _compile(expression: str) -> jsonata.Jsonata:
    return jsonata.Jsonata(expression)


def evaluate_expression(expression: str, context: Any) -> Any:
    """Evaluate a bare JSONata expression against a context.

    Args:
        expression: JSONata expression string (e.g., "steps.extract.vars.count",
            "$count(dataflow.vars.items)").
        context: Dict (or list) the expression is evaluated against.

    Returns:
        The resolved value. Returns None for paths that don't exist
        (JSONata's undefined behavior).

    Raises:
        ExpressionError: If the expression is invalid or evaluation fails.
    """
    try:
        return _compile(expression).evaluate(context)
    except Exception as e:
        raise ExpressionError(
            f"Expression '{expression}' failed: {e}"
        ) from e


def has_expression(value: Any) -> bool:
    """True for strings containing at least one ``{{ ... }}``."""
    return isinstance(value, str) and EXPRESSION_PATTERN.search(value) is not None


def _whole_body(value: str) -> str | None:
    """Body of a value that is exactly one expression, or None.

    The braces inside the body must balance; string literals are not
    special-cased.
    """
    match = WHOLE_EXPRESSION_PATTERN.fullmatch(value)
    if match is None:
        return None
    body = match.group(1)
    if body.count("{") != body.count("}"):
        return None
    return body.strip()


def extract_expressions(value: Any) -> list[str]:
    """Return the stripped body of every embedded expression in ``value``."""
    if not isinstance(value, str):
        return []
    body = _whole_body(value)
    if body is not None:
        return [body]
    return [m.group(1).strip() for m in EXPRESSION_PATTERN.finditer(value)]


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, str)):
        return str(value)
    return json.dumps(value, default=str)


def render(value: str, context: dict[str, Any]) -> Any:
    """Resolve every embedded expression in ``value``.

    Returns None if any embedded expression is undefined, so callers can
    tell "not resolvable yet" apart from a resolved empty string.
    """
    body = _whole_body(value)
    if body is not None:
        return evaluate_expression(body, context)
    whole = EXPRESSION_PATTERN.fullmatch(value)
    if whole is not None:
        return evaluate_expression(whole.group(1).strip(), context)

    parts: list[str] = []
    last = 0
    for match in EXPRESSION_PATTERN.finditer(value):
        resolved = evaluate_expression(match.group(1).strip(), context)
        if resolved is None:
            return None
        parts.append(value[last:match.start()])
        parts.append(_to_text(resolved))
        last = match.end()
    parts.append(value[last:])
    return "".join(parts)


class JsonataEvaluator:
    """Default ExpressionEvaluator: ``{{ }}`` embedding over JSONata."""

    def has_expression(self, value: Any) -> bool:
        return has_expression(value)

    def evaluate(self, value: str, context: dict[str, Any]) -> Any:
        return render(value, context)
