"""
Variable tree module.
Builds the global/dataflow/steps namespace and resolves expressions in it.
"""

from .node import clone_tree, get_at_path, iter_leaves, set_at_path, split_path
from .step import StepVariables
from .tree import REPEAT_LIMIT, VariableTree

__all__ = [
    'REPEAT_LIMIT',
    'StepVariables',
    'VariableTree',
    'clone_tree',
    'get_at_path',
    'iter_leaves',
    'set_at_path',
    'split_path',
]
