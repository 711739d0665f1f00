"""Core expression tree components."""

from .node import (
    Node, ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, FunctionNode,
    UnsupportedIntegralNode, as_node, format_number
)
from .operators import (
    NodeType, BinaryOperator, UnaryOperator, BINARY_OP_MAP, UNARY_OP_MAP,
    evaluate_binary_op, evaluate_unary_op,
    evaluate_binary_op_vectorized, evaluate_unary_op_vectorized
)
from .functions import BUILTIN_FUNCTIONS, call_function

__all__ = [
    'Node', 'ConstantNode', 'VariableNode', 'UnaryOpNode', 'BinaryOpNode', 'FunctionNode',
    'UnsupportedIntegralNode', 'as_node', 'format_number',
    'NodeType', 'BinaryOperator', 'UnaryOperator', 'BINARY_OP_MAP', 'UNARY_OP_MAP',
    'evaluate_binary_op', 'evaluate_unary_op',
    'evaluate_binary_op_vectorized', 'evaluate_unary_op_vectorized',
    'BUILTIN_FUNCTIONS', 'call_function'
]
