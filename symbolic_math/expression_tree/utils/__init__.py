"""Utilities for expression trees."""

from .simplifier import ExpressionSimplifier, TermCollector, simplify
from .sympy_utils import SymPyChecker
from .tree_utils import (
    get_all_nodes, calculate_tree_depth, find_nodes_by_type, contains_node_type,
    find_nodes_by_operator, find_functions_by_name, get_variable_usage_counts,
    get_constants
)

__all__ = [
    'ExpressionSimplifier', 'TermCollector', 'simplify', 'SymPyChecker',
    'get_all_nodes', 'calculate_tree_depth', 'find_nodes_by_type', 'contains_node_type',
    'find_nodes_by_operator', 'find_functions_by_name', 'get_variable_usage_counts',
    'get_constants'
]
