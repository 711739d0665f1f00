"""
Tree Utility Functions

Traversal and analysis helpers shared by the simplifier, the calculus
modules and the Expression wrapper. Nodes expose their children uniformly
through Node.children(), so none of these need per-variant dispatch.
"""

from collections import Counter, deque
from typing import Dict, List, Type, TypeVar, Union

from ..core.node import Node, ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, FunctionNode
from ..core.operators import BinaryOperator, UnaryOperator

T = TypeVar('T', bound=Node)


def get_all_nodes(node: Node, traversal_order: str = 'breadth_first') -> List[Node]:
    """
    Get all nodes in the tree using specified traversal order.

    Args:
        node: Root node of the tree
        traversal_order: 'breadth_first' (default) or 'depth_first'

    Returns:
        List of all nodes in the tree
    """
    if traversal_order == 'breadth_first':
        return _breadth_first_traversal(node)
    elif traversal_order == 'depth_first':
        return _depth_first_traversal(node)
    else:
        raise ValueError(f"Invalid traversal_order: {traversal_order}")


def _breadth_first_traversal(node: Node) -> List[Node]:
    nodes_to_visit = deque([node])
    all_nodes = []

    while nodes_to_visit:
        current_node = nodes_to_visit.popleft()
        all_nodes.append(current_node)
        nodes_to_visit.extend(current_node.children())

    return all_nodes


def _depth_first_traversal(node: Node) -> List[Node]:
    """Pre-order, iterative so deep trees do not hit the recursion limit"""
    stack = [node]
    all_nodes = []

    while stack:
        current_node = stack.pop()
        all_nodes.append(current_node)
        stack.extend(reversed(current_node.children()))

    return all_nodes


def calculate_tree_depth(node: Node) -> int:
    """Maximum depth of the tree (leaf nodes have depth 1)"""
    children = node.children()
    if not children:
        return 1
    return 1 + max(calculate_tree_depth(child) for child in children)


def find_nodes_by_type(node: Node, node_type: Type[T]) -> List[T]:
    return [n for n in get_all_nodes(node) if isinstance(n, node_type)]


def contains_node_type(node: Node, node_type: Type[Node]) -> bool:
    """Short-circuiting variant of find_nodes_by_type"""
    stack = [node]
    while stack:
        current_node = stack.pop()
        if isinstance(current_node, node_type):
            return True
        stack.extend(current_node.children())
    return False


def find_nodes_by_operator(node: Node, operator: Union[BinaryOperator, UnaryOperator]) -> List[Node]:
    """
    Find all operator nodes with a specific operator.

    Binary and unary operator enums share integer values, so the node kind is
    matched along with the operator.
    """
    node_type = BinaryOpNode if isinstance(operator, BinaryOperator) else UnaryOpNode
    return [n for n in get_all_nodes(node)
            if isinstance(n, node_type) and n.operator == operator]


def find_functions_by_name(node: Node, name: str) -> List[FunctionNode]:
    name = name.lower()
    return [n for n in find_nodes_by_type(node, FunctionNode) if n.name == name]


def get_variable_usage_counts(node: Node) -> Dict[str, int]:
    """How many times each variable occurs in the tree"""
    return dict(Counter(v.name for v in find_nodes_by_type(node, VariableNode)))


def get_constants(node: Node) -> List[float]:
    return [c.value for c in find_nodes_by_type(node, ConstantNode)]
