"""Pre-flight dataflow validator.

Statically validates a dataflow definition without executing it.
Catches broken references, bad expressions, self-referencing variables
and incomplete step configs before anything runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from jsonata import Jsonata
from jsonata.jexception import JException
from pydantic import ValidationError as PydanticValidationError

from dataflow_vars.expressions import extract_expressions, has_expression
from dataflow_vars.models import STEP_CONFIG_MODELS, DataflowDefinition, StepDefinition
from dataflow_vars.variables import iter_leaves

# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single validation finding."""

    severity: Severity
    scope: str  # step alias, or "dataflow"
    message: str
    field: str  # dotted path of the offending value


@dataclass(frozen=True)
class ValidationResult:
    """Aggregate result of dataflow validation."""

    diagnostics: list[Diagnostic]

    @property
    def ok(self) -> bool:
        """True when there are no error-severity diagnostics."""
        return not any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]


# ---------------------------------------------------------------------------
# Top-level names an expression may start from
# ---------------------------------------------------------------------------

ROOT_SCOPES: frozenset[str] = frozenset({"global", "dataflow", "steps"})

# ---------------------------------------------------------------------------
# 1. Name uniqueness
# ---------------------------------------------------------------------------


def _check_name_uniqueness(steps: list[StepDefinition]) -> list[Diagnostic]:
    """Warn about steps sharing a display name (aliases are already unique)."""
    diagnostics: list[Diagnostic] = []
    seen: dict[str, int] = {}

    for i, step in enumerate(steps):
        if step.name in seen:
            diagnostics.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    scope=step.alias,
                    message=(
                        f"Duplicate step name '{step.name}' "
                        f"(first at index {seen[step.name]})"
                    ),
                    field="name",
                )
            )
        else:
            seen[step.name] = i

    return diagnostics


# ---------------------------------------------------------------------------
# 2. JSONata expression parsing
# ---------------------------------------------------------------------------


def _parse_jsonata(
    expression: str,
    scope: str,
    field: str,
) -> tuple[Any | None, list[Diagnostic]]:
    """Try to parse a JSONata expression. Return (ast, diagnostics)."""
    try:
        parsed = Jsonata(expression)
        return parsed.ast, []
    except (JException, Exception) as e:
        return None, [
            Diagnostic(
                severity=Severity.ERROR,
                scope=scope,
                message=f"Invalid JSONata expression '{expression}': {e}",
                field=field,
            )
        ]


# ---------------------------------------------------------------------------
# 3. Reference extraction from JSONata AST
# ---------------------------------------------------------------------------


def _path_prefix(steps: list[Any]) -> str | None:
    """Dotted path spelled by the leading plain-name steps of a path node."""
    names: list[str] = []
    for step in steps:
        if getattr(step, "type", None) != "name":
            break
        names.append(str(step.value))
        # Past a filter the path is relative to matched elements.
        if getattr(step, "stages", None) or getattr(step, "predicate", None):
            break
    return ".".join(names) if names else None


def _extract_references(node: Any | None) -> set[str]:
    """Walk a JSONata AST and collect the dotted paths it reads.

    For ``steps.extract.vars.count + 1`` this yields
    ``{"steps.extract.vars.count"}``. Function calls and operators are
    recursed into; ``$``-variables are builtins, not tree references.

    References inside array filter expressions (``items[id = 1]``) are
    relative to the array element, so ``stages`` children are skipped.
    """
    if node is None:
        return set()

    refs: set[str] = set()
    node_type = getattr(node, "type", None)

    if node_type == "path":
        steps = getattr(node, "steps", None) or []
        if steps:
            prefix = _path_prefix(steps)
            if prefix is not None:
                refs.add(prefix)
            else:
                refs.update(_extract_references(steps[0]))

    elif node_type == "name":
        refs.add(str(node.value))

    elif node_type == "binary":
        refs.update(_extract_references(getattr(node, "lhs", None)))
        refs.update(_extract_references(getattr(node, "rhs", None)))

    elif node_type == "unary":
        lhs_object = getattr(node, "lhs_object", None)
        if lhs_object:
            for pair in lhs_object:
                refs.update(_extract_references(pair[0]))
                refs.update(_extract_references(pair[1]))
        expressions = getattr(node, "expressions", None)
        if expressions:
            for expr in expressions:
                refs.update(_extract_references(expr))

    elif node_type == "function":
        for arg in getattr(node, "arguments", None) or []:
            refs.update(_extract_references(arg))

    elif node_type == "condition":
        refs.update(_extract_references(getattr(node, "condition", None)))
        refs.update(_extract_references(getattr(node, "then", None)))
        refs.update(_extract_references(getattr(node, "_else", None)))

    elif node_type == "block":
        for expr in getattr(node, "expressions", None) or []:
            refs.update(_extract_references(expr))

    elif node_type == "bind":
        refs.update(_extract_references(getattr(node, "rhs", None)))

    elif node_type == "apply":
        refs.update(_extract_references(getattr(node, "lhs", None)))
        refs.update(_extract_references(getattr(node, "rhs", None)))

    return refs


# ---------------------------------------------------------------------------
# 4. Expressions and references across the namespace
# ---------------------------------------------------------------------------


def _raw_namespace(definition: DataflowDefinition) -> dict[str, Any]:
    """The parts of the variable namespace a dataflow file defines."""
    return {
        "dataflow": {"vars": definition.vars},
        "steps": {
            step.alias: {"config": step.config, "vars": step.vars}
            for step in definition.steps
        },
    }


def _scope_of(path: str) -> str:
    parts = path.split(".")
    if parts[0] == "steps" and len(parts) > 1:
        return parts[1]
    return parts[0]


def _check_reference(
    ref: str, path: str, aliases: set[str], scope: str
) -> list[Diagnostic]:
    parts = ref.split(".")
    if parts[0] not in ROOT_SCOPES:
        return [
            Diagnostic(
                severity=Severity.ERROR,
                scope=scope,
                message=(
                    f"Reference '{ref}' does not start with a known scope. "
                    f"Expected one of: {sorted(ROOT_SCOPES)}"
                ),
                field=path,
            )
        ]
    if parts[0] == "steps" and len(parts) > 1 and parts[1] not in aliases:
        return [
            Diagnostic(
                severity=Severity.ERROR,
                scope=scope,
                message=(
                    f"Reference '{ref}' names unknown step '{parts[1]}'. "
                    f"Available aliases: {sorted(aliases)}"
                ),
                field=path,
            )
        ]
    if ref == path or path.startswith(ref + "."):
        return [
            Diagnostic(
                severity=Severity.ERROR,
                scope=scope,
                message=f"Expression refers to its own value via '{ref}'",
                field=path,
            )
        ]
    return []


def _check_expressions(definition: DataflowDefinition) -> list[Diagnostic]:
    """Parse every embedded expression and verify what it references."""
    diagnostics: list[Diagnostic] = []
    aliases = {step.alias for step in definition.steps}

    for path, value in iter_leaves(_raw_namespace(definition)):
        scope = _scope_of(path)
        for expression in extract_expressions(value):
            ast, parse_diags = _parse_jsonata(expression, scope, path)
            diagnostics.extend(parse_diags)
            if ast is None:
                continue
            for ref in sorted(_extract_references(ast)):
                diagnostics.extend(_check_reference(ref, path, aliases, scope))

    return diagnostics


# ---------------------------------------------------------------------------
# 5. Step config shape
# ---------------------------------------------------------------------------


def _check_step_config(step: StepDefinition) -> list[Diagnostic]:
    """Check a step's config against its type's config model.

    Configs holding expressions can only be checked for missing
    required fields; fully literal configs are validated outright.
    """
    model = STEP_CONFIG_MODELS[step.type]
    templated = any(has_expression(v) for _, v in iter_leaves(step.config))

    if templated:
        return [
            Diagnostic(
                severity=Severity.ERROR,
                scope=step.alias,
                message=f"Step type '{step.type}' requires config '{name}'",
                field=f"config.{name}",
            )
            for name, info in model.model_fields.items()
            if info.is_required() and name not in step.config
        ]

    try:
        model.model_validate(step.config)
    except PydanticValidationError as e:
        return [
            Diagnostic(
                severity=Severity.ERROR,
                scope=step.alias,
                message=f"{err['msg']} (step type '{step.type}')",
                field=".".join(["config", *(str(loc) for loc in err["loc"])]),
            )
            for err in e.errors()
        ]
    return []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_dataflow(definition: DataflowDefinition) -> ValidationResult:
    """Statically validate a dataflow definition without executing it.

    Checks:
    - Step display name uniqueness
    - JSONata expression syntax inside ``{{ }}``
    - Reference resolution (known scopes, known step aliases)
    - Expressions that reference their own value
    - Step config shape per step type

    Returns a ``ValidationResult``. The dataflow is considered valid
    when ``result.ok`` is True (no error-severity diagnostics).
    """
    diagnostics: list[Diagnostic] = []
    diagnostics.extend(_check_name_uniqueness(definition.steps))
    diagnostics.extend(_check_expressions(definition))
    for step in definition.steps:
        diagnostics.extend(_check_step_config(step))
    return ValidationResult(diagnostics=diagnostics)


def load_and_validate_dataflow(
    path: str | Path,
) -> tuple[DataflowDefinition, ValidationResult]:
    """Load a dataflow from YAML and validate it.

    Convenience wrapper: calls ``load_dataflow`` then ``validate_dataflow``.
    Raises ``DataflowLoadError`` if YAML/Pydantic parsing fails.
    """
    from dataflow_vars.loader import load_dataflow

    definition = load_dataflow(path)
    result = validate_dataflow(definition)
    return definition, result
