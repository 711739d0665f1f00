import numpy as np
from typing import List, Optional, Tuple

from ..core.node import (
  Node, VariableNode, ConstantNode, BinaryOpNode, UnaryOpNode, FunctionNode,
  UnsupportedIntegralNode
)
from ..core.operators import BinaryOperator, UnaryOperator
from ...config import get_config
from ...errors import EvaluationError
from ...logging_system import log_debug

Term = Tuple[float, Optional[Node]]


def _is_value(node: Node, value: float) -> bool:
  return isinstance(node, ConstantNode) and abs(node.value - value) < get_config().epsilon


class ExpressionSimplifier:
  """
  Single bottom-up simplification pass.

  Children are simplified first, then exactly one rule is applied at each
  node. The rule helpers (simplify_binary, simplify_unary) double as smart
  constructors, so trees built through them are already in simplified form.
  """

  @staticmethod
  def simplify(node: Node) -> Node:
    if isinstance(node, (ConstantNode, VariableNode)):
      return node

    if isinstance(node, UnaryOpNode):
      operand = ExpressionSimplifier.simplify(node.operand)
      return ExpressionSimplifier.simplify_unary(node.operator, operand)

    if isinstance(node, BinaryOpNode):
      left = ExpressionSimplifier.simplify(node.left)
      right = ExpressionSimplifier.simplify(node.right)
      return ExpressionSimplifier.simplify_binary(node.operator, left, right)

    if isinstance(node, FunctionNode):
      args = [ExpressionSimplifier.simplify(arg) for arg in node.args]
      result = FunctionNode(node.name, args)
      if all(isinstance(arg, ConstantNode) for arg in args):
        return ExpressionSimplifier._fold(result) or result
      return result

    if isinstance(node, UnsupportedIntegralNode):
      return UnsupportedIntegralNode(ExpressionSimplifier.simplify(node.integrand), node.variable)

    raise TypeError(f"Cannot simplify node of type {type(node).__name__}")

  @staticmethod
  def _fold(node: Node) -> Optional[ConstantNode]:
    """Evaluate a constant subtree; None when the value is unusable"""
    try:
      value = node.evaluate({})
    except EvaluationError as e:
      log_debug(f"Constant folding skipped for {node.to_string()}: {e}")
      return None
    if not np.isfinite(value):
      return None
    return ConstantNode(value)

  @staticmethod
  def simplify_unary(op: UnaryOperator, operand: Node) -> Node:
    node = UnaryOpNode(op, operand)
    if isinstance(operand, ConstantNode):
      folded = ExpressionSimplifier._fold(node)
      if folded is not None:
        return folded

    if op == UnaryOperator.NEGATE:
      if isinstance(operand, UnaryOpNode) and operand.operator == UnaryOperator.NEGATE:
        return operand.operand  # --x = x
    return node

  @staticmethod
  def simplify_binary(op: BinaryOperator, left: Node, right: Node) -> Node:
    if isinstance(left, ConstantNode) and isinstance(right, ConstantNode):
      folded = ExpressionSimplifier._fold(BinaryOpNode(op, left, right))
      if folded is not None:
        return folded

    if op == BinaryOperator.ADD:
      return ExpressionSimplifier._simplify_add(left, right)
    if op == BinaryOperator.SUBTRACT:
      return ExpressionSimplifier._simplify_subtract(left, right)
    if op == BinaryOperator.MULTIPLY:
      return ExpressionSimplifier._simplify_multiply(left, right)
    if op == BinaryOperator.DIVIDE:
      return ExpressionSimplifier._simplify_divide(left, right)
    if op == BinaryOperator.POWER:
      return ExpressionSimplifier._simplify_power(left, right)
    return BinaryOpNode(op, left, right)

  @staticmethod
  def _simplify_add(left: Node, right: Node) -> Node:
    if _is_value(left, 0.0):
      return right  # 0 + x = x
    if _is_value(right, 0.0):
      return left  # x + 0 = x
    # x + x = 2*x falls out of term collection
    return TermCollector.collect(BinaryOpNode(BinaryOperator.ADD, left, right))

  @staticmethod
  def _simplify_subtract(left: Node, right: Node) -> Node:
    if _is_value(right, 0.0):
      return left  # x - 0 = x
    if left == right:
      return ConstantNode(0.0)  # x - x = 0
    return TermCollector.collect(BinaryOpNode(BinaryOperator.SUBTRACT, left, right))

  @staticmethod
  def _as_power(node: Node) -> Tuple[Node, Node]:
    if isinstance(node, BinaryOpNode) and node.operator == BinaryOperator.POWER:
      return node.left, node.right
    return node, ConstantNode(1.0)

  @staticmethod
  def _simplify_multiply(left: Node, right: Node) -> Node:
    if _is_value(left, 0.0) or _is_value(right, 0.0):
      return ConstantNode(0.0)
    if _is_value(left, 1.0):
      return right
    if _is_value(right, 1.0):
      return left

    # x^a * x^b = x^(a+b), covering bare x as x^1
    left_base, left_exp = ExpressionSimplifier._as_power(left)
    right_base, right_exp = ExpressionSimplifier._as_power(right)
    if not isinstance(left_base, ConstantNode) and left_base == right_base:
      exponent = ExpressionSimplifier.simplify_binary(BinaryOperator.ADD, left_exp, right_exp)
      return ExpressionSimplifier._simplify_power(left_base, exponent)

    return BinaryOpNode(BinaryOperator.MULTIPLY, left, right)

  @staticmethod
  def _simplify_divide(left: Node, right: Node) -> Node:
    if _is_value(left, 0.0):
      return ConstantNode(0.0)
    if _is_value(right, 1.0):
      return left
    if left == right:
      return ConstantNode(1.0)
    return BinaryOpNode(BinaryOperator.DIVIDE, left, right)

  @staticmethod
  def _simplify_power(base: Node, exponent: Node) -> Node:
    if _is_value(exponent, 0.0):
      return ConstantNode(1.0)
    if _is_value(exponent, 1.0):
      return base
    if _is_value(base, 1.0):
      return ConstantNode(1.0)
    if _is_value(base, 0.0):
      return ConstantNode(0.0)
    return BinaryOpNode(BinaryOperator.POWER, base, exponent)


class TermCollector:
  """Like-term collection over flattened sums and differences"""

  @staticmethod
  def collect(node: Node) -> Node:
    return TermCollector.rebuild(TermCollector.split_terms(node))

  @staticmethod
  def split_terms(node: Node) -> List[Term]:
    """Signed (coefficient, base) terms of a sum with like bases merged"""
    terms: List[Term] = []
    TermCollector._flatten(node, 1.0, terms)
    return TermCollector._merge(terms)

  @staticmethod
  def _flatten(node: Node, scale: float, terms: List[Term]):
    if isinstance(node, BinaryOpNode) and node.operator == BinaryOperator.ADD:
      TermCollector._flatten(node.left, scale, terms)
      TermCollector._flatten(node.right, scale, terms)
    elif isinstance(node, BinaryOpNode) and node.operator == BinaryOperator.SUBTRACT:
      TermCollector._flatten(node.left, scale, terms)
      TermCollector._flatten(node.right, -scale, terms)
    elif isinstance(node, UnaryOpNode) and node.operator == UnaryOperator.NEGATE:
      TermCollector._flatten(node.operand, -scale, terms)
    else:
      coefficient, base = TermCollector.split_coefficient(node)
      if TermCollector._is_sum(base):
        # c*(a + b) contributes c*a and c*b
        TermCollector._flatten(base, scale * coefficient, terms)
      else:
        terms.append((scale * coefficient, base))

  @staticmethod
  def _is_sum(node: Optional[Node]) -> bool:
    if isinstance(node, BinaryOpNode):
      return node.operator in (BinaryOperator.ADD, BinaryOperator.SUBTRACT)
    return isinstance(node, UnaryOpNode) and node.operator == UnaryOperator.NEGATE

  @staticmethod
  def split_coefficient(node: Node) -> Term:
    """c*b and b*c with constant c give (c, b); a bare constant gives (c, None)"""
    if isinstance(node, ConstantNode):
      return node.value, None
    if isinstance(node, BinaryOpNode) and node.operator == BinaryOperator.MULTIPLY:
      if isinstance(node.left, ConstantNode):
        coefficient, base = TermCollector.split_coefficient(node.right)
        return node.left.value * coefficient, base
      if isinstance(node.right, ConstantNode):
        coefficient, base = TermCollector.split_coefficient(node.left)
        return node.right.value * coefficient, base
    if isinstance(node, UnaryOpNode) and node.operator == UnaryOperator.NEGATE:
      coefficient, base = TermCollector.split_coefficient(node.operand)
      return -coefficient, base
    return 1.0, node

  @staticmethod
  def _merge(terms: List[Term]) -> List[Term]:
    # bases are compared structurally; discovery order is kept
    coefficients: List[float] = []
    bases: List[Optional[Node]] = []
    for coefficient, base in terms:
      for i, existing in enumerate(bases):
        if (existing is None and base is None) or (
            existing is not None and base is not None and existing == base):
          coefficients[i] += coefficient
          break
      else:
        coefficients.append(coefficient)
        bases.append(base)

    eps = get_config().epsilon
    return [(c, b) for c, b in zip(coefficients, bases) if abs(c) >= eps]

  @staticmethod
  def _term_node(coefficient: float, base: Optional[Node]) -> Node:
    if base is None:
      return ConstantNode(coefficient)
    eps = get_config().epsilon
    if abs(coefficient - 1.0) < eps:
      return base
    if abs(coefficient + 1.0) < eps:
      return UnaryOpNode(UnaryOperator.NEGATE, base)
    return BinaryOpNode(BinaryOperator.MULTIPLY, ConstantNode(coefficient), base)

  @staticmethod
  def rebuild(terms: List[Term]) -> Node:
    if not terms:
      return ConstantNode(0.0)

    result = TermCollector._term_node(*terms[0])
    for coefficient, base in terms[1:]:
      if coefficient < 0:
        result = BinaryOpNode(BinaryOperator.SUBTRACT, result, TermCollector._term_node(-coefficient, base))
      else:
        result = BinaryOpNode(BinaryOperator.ADD, result, TermCollector._term_node(coefficient, base))
    return result


def simplify(node: Node) -> Node:
  """Simplify an expression tree"""
  return ExpressionSimplifier.simplify(node)
