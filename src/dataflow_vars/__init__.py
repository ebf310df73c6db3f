"""dataflow-vars: YAML dataflows over a self-resolving variable tree."""

from dataflow_vars.config import GlobalConfig, ResolverSettings, load_global_config
from dataflow_vars.dataflow_logger import configure_logging
from dataflow_vars.errors import (
    DataflowAbortedError,
    DataflowError,
    DataflowLoadError,
    ExpressionError,
    ExpressionNotConvergedError,
    InvalidPathWriteError,
    RecursiveExpressionError,
    StepExecutionError,
    ValidationError,
)
from dataflow_vars.executor import run_dataflow
from dataflow_vars.expressions import ExpressionEvaluator, JsonataEvaluator
from dataflow_vars.loader import load_dataflow, save_dataflow, validate_vars
from dataflow_vars.models import DataflowDefinition, DataflowResult, StepDefinition, StepResult
from dataflow_vars.validator import (
    Diagnostic,
    Severity,
    ValidationResult,
    load_and_validate_dataflow,
    validate_dataflow,
)
from dataflow_vars.variables import StepVariables, VariableTree

__all__ = [
    "configure_logging",
    "Diagnostic",
    "load_and_validate_dataflow",
    "load_dataflow",
    "load_global_config",
    "run_dataflow",
    "save_dataflow",
    "Severity",
    "validate_dataflow",
    "validate_vars",
    "ValidationResult",
    "DataflowAbortedError",
    "DataflowDefinition",
    "DataflowError",
    "DataflowLoadError",
    "DataflowResult",
    "ExpressionError",
    "ExpressionEvaluator",
    "ExpressionNotConvergedError",
    "GlobalConfig",
    "InvalidPathWriteError",
    "JsonataEvaluator",
    "RecursiveExpressionError",
    "ResolverSettings",
    "StepDefinition",
    "StepExecutionError",
    "StepResult",
    "StepVariables",
    "ValidationError",
    "VariableTree",
]
