"""Expression Tree Module

Immutable expression trees, their evaluation and simplification.
"""

from .expression import Expression
from .core.node import (
    Node,
    ConstantNode,
    VariableNode,
    UnaryOpNode,
    BinaryOpNode,
    FunctionNode,
    UnsupportedIntegralNode
)
from .core.operators import (
    NodeType,
    BinaryOperator,
    UnaryOperator,
    BINARY_OP_MAP,
    UNARY_OP_MAP
)
from .utils import ExpressionSimplifier, SymPyChecker, simplify

__all__ = [
    "Expression",
    "Node", "ConstantNode", "VariableNode", "UnaryOpNode", "BinaryOpNode", "FunctionNode",
    "UnsupportedIntegralNode",
    "NodeType", "BinaryOperator", "UnaryOperator",
    "BINARY_OP_MAP", "UNARY_OP_MAP",
    "ExpressionSimplifier", "SymPyChecker", "simplify"
]
