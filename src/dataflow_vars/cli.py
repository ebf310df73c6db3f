"""Command-line interface for dataflow-vars.

Enables execution via ``python -m dataflow_vars.cli`` or a plain
``dataflow-vars`` command after install.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# ── Human-readable help strings ──────────────────────────────────────────────

_TOP_DESCRIPTION = """\
YAML-driven dataflow runner with a resolving variable tree.

Every value in a dataflow (its vars, each step's config and vars, and the
global config) may embed JSONata expressions as {{ ... }}. Expressions can
reference any other value by dotted path, e.g. {{ steps.extract.vars.count }}
or {{ global.cfg.wwwroot }}, and are resolved repeatedly until nothing is
left to resolve.
"""

_TOP_EPILOG = """\
Quick examples:
  dataflow-vars run flow.yaml --config global.yaml
  dataflow-vars run flow.yaml --var limit=10 --persist
  dataflow-vars vars flow.yaml --path steps.extract.config
  dataflow-vars validate flow.yaml
"""

_RUN_DESCRIPTION = """\
Execute a dataflow YAML file and emit results as JSON.

Steps run in order. Each step's config is resolved through the variable
tree before the step runs, so earlier steps can feed later ones by
writing variables.
"""

_RUN_EPILOG = """\
Output schema (JSON written to stdout, or to the --output file):

  {
    "output": <any>            -- output of the last step
    "step_results": [
      {"step_alias": <str>, "value": <any>, "duration_ms": <num>}
    ],
    "total_duration_ms": <num>,
    "variables": <object>      -- the final resolved variable tree
  }

--var KEY=VALUE sets dataflow.vars.KEY for this run (KEY may be dotted).
VALUE is JSON-parsed first, then falls back to a plain string. Overrides
are never written back to the dataflow file, even with --persist.

--persist writes changes steps make to dataflow.vars back into the
dataflow file.
"""

_VALIDATE_DESCRIPTION = """\
Statically validate a dataflow YAML file without executing it.

Checks for: malformed JSONata expressions, references to unknown scopes or
step aliases, expressions referring to their own value, and step configs
missing required fields.
"""

_VALIDATE_EPILOG = """\
Diagnostic output format (written to stderr on failure):
  [error]   scope field: message  -- blocks execution; must be fixed
  [warning] scope field: message  -- may cause issues at runtime

Exit codes:
  0 -- dataflow is valid
  1 -- one or more errors found
"""

_VARS_DESCRIPTION = """\
Print the variable tree of a dataflow as JSON without running any step.

By default the tree is fully resolved; --raw prints values exactly as
written. --path limits output to one dotted path.
"""


# ── Argument parser ───────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dataflow-vars",
        description=_TOP_DESCRIPTION,
        epilog=_TOP_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command")

    # ── run ──────────────────────────────────────────────────────────────────
    run_p = sub.add_parser(
        "run",
        help="Execute a dataflow and emit results as JSON",
        description=_RUN_DESCRIPTION,
        epilog=_RUN_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    run_p.add_argument("dataflow", type=Path, help="Path to the dataflow YAML file")
    _add_config_argument(run_p)
    run_p.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Set dataflow.vars.KEY for this run only. Repeatable.",
    )
    run_p.add_argument(
        "--output", "-o",
        type=Path,
        metavar="FILE",
        help="Write JSON output to FILE instead of stdout.",
    )
    run_p.add_argument(
        "--log-dir",
        type=Path,
        metavar="DIR",
        help="Write JSON-lines step logs to DIR/dataflow.log.",
    )
    run_p.add_argument(
        "--persist",
        action="store_true",
        help="Save dataflow.vars changes made by steps back to the dataflow file.",
    )
    run_p.add_argument(
        "--force",
        action="store_true",
        help="Run even if the dataflow is disabled.",
    )

    # ── validate ─────────────────────────────────────────────────────────────
    val_p = sub.add_parser(
        "validate",
        help="Statically validate a dataflow without executing it",
        description=_VALIDATE_DESCRIPTION,
        epilog=_VALIDATE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    val_p.add_argument("dataflow", type=Path, help="Path to the dataflow YAML file to validate")

    # ── vars ─────────────────────────────────────────────────────────────────
    vars_p = sub.add_parser(
        "vars",
        help="Print the resolved variable tree as JSON",
        description=_VARS_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    vars_p.add_argument("dataflow", type=Path, help="Path to the dataflow YAML file")
    _add_config_argument(vars_p)
    vars_p.add_argument("--path", metavar="DOTTED.PATH", help="Only print this path.")
    vars_p.add_argument("--raw", action="store_true", help="Print unresolved values.")

    return parser


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        type=Path,
        metavar="FILE",
        help="Global config YAML (cfg, vars and resolver sections).",
    )


# ── Command handlers ──────────────────────────────────────────────────────────

def _parse_vars(raw: list[str]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for pair in raw:
        if "=" not in pair:
            print(f"Error: --var values must be KEY=VALUE, got {pair!r}", file=sys.stderr)
            sys.exit(1)
        key, value = pair.split("=", 1)
        # Try to parse as JSON for non-string values (numbers, booleans, arrays, objects)
        try:
            data[key] = json.loads(value)
        except json.JSONDecodeError:
            data[key] = value
    return data


def _cmd_run(args: argparse.Namespace) -> int:
    from dataflow_vars import (
        configure_logging,
        load_dataflow,
        load_global_config,
        run_dataflow,
        save_dataflow,
    )

    if args.log_dir:
        configure_logging(args.log_dir)

    definition = load_dataflow(args.dataflow)

    save = (lambda defn: save_dataflow(defn, args.dataflow)) if args.persist else None

    result = run_dataflow(
        definition,
        load_global_config(args.config),
        base_dir=args.dataflow.parent,
        save=save,
        overrides=_parse_vars(args.var),
        force=args.force,
    )

    text = json.dumps(result.model_dump(mode="json"), indent=2, default=str)

    if args.output:
        args.output.write_text(text)
        print(f"Output written to {args.output}", file=sys.stderr)
    else:
        print(text)

    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    from dataflow_vars import load_and_validate_dataflow

    definition, result = load_and_validate_dataflow(args.dataflow)

    if result.ok:
        print(f"Dataflow is valid ({len(definition.steps)} steps)")
        return 0

    for d in result.diagnostics:
        print(f"[{d.severity.value}] {d.scope} {d.field}: {d.message}", file=sys.stderr)

    error_count = len(result.errors)
    warning_count = len(result.warnings)
    print(f"\n{error_count} error(s), {warning_count} warning(s)", file=sys.stderr)
    return 1


def _cmd_vars(args: argparse.Namespace) -> int:
    from dataflow_vars import VariableTree, load_dataflow, load_global_config

    tree = VariableTree(load_dataflow(args.dataflow), load_global_config(args.config))
    if args.raw:
        value = tree.get_raw(args.path) if args.path else tree.get_raw_tree()
    else:
        value = tree.get(args.path) if args.path else tree.get_tree()

    print(json.dumps(value, indent=2, default=str))
    return 0


# ── Entry point ───────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> None:
    from dataflow_vars.errors import DataflowError

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    handlers = {"run": _cmd_run, "validate": _cmd_validate, "vars": _cmd_vars}
    try:
        sys.exit(handlers[args.command](args))
    except DataflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
