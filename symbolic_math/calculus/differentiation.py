"""
Symbolic differentiation.

Purely structural: each node variant has a fixed rule and function nodes are
resolved through a closed-form table keyed by name. The raw derivative is
built without simplification and passed through the simplifier once.
"""

from typing import Callable, Dict

from ..errors import NotDifferentiableError
from ..expression_tree.core.node import (
  Node, ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, FunctionNode,
  UnsupportedIntegralNode
)
from ..expression_tree.core.operators import BinaryOperator, UnaryOperator, UNARY_NAMES
from ..expression_tree.utils.simplifier import simplify
from ..logging_system import log_debug, log_info, LogLevel


def _unary(op: UnaryOperator) -> Callable[[Node], Node]:
  return lambda u: UnaryOpNode(op, u)


def _function(name: str) -> Callable[[Node], Node]:
  return lambda u: FunctionNode(name, [u])


sin, cos, tan = _unary(UnaryOperator.SIN), _unary(UnaryOperator.COS), _unary(UnaryOperator.TAN)
sinh, cosh, tanh = _unary(UnaryOperator.SINH), _unary(UnaryOperator.COSH), _unary(UnaryOperator.TANH)
exp, ln, sqrt = _unary(UnaryOperator.EXP), _unary(UnaryOperator.LN), _unary(UnaryOperator.SQRT)
sign = _unary(UnaryOperator.SIGN)
sec, csc, cot = _function('sec'), _function('csc'), _function('cot')

# name -> (u, du) -> d/dx f(u)
DERIVATIVE_TABLE: Dict[str, Callable[[Node, Node], Node]] = {
  'sin': lambda u, du: cos(u) * du,
  'cos': lambda u, du: -(sin(u) * du),
  'tan': lambda u, du: (1 + tan(u) ** 2) * du,
  'asin': lambda u, du: du / sqrt(1 - u ** 2),
  'acos': lambda u, du: -(du / sqrt(1 - u ** 2)),
  'atan': lambda u, du: du / (1 + u ** 2),
  'sec': lambda u, du: sec(u) * tan(u) * du,
  'csc': lambda u, du: -(csc(u) * cot(u) * du),
  'cot': lambda u, du: -(csc(u) ** 2 * du),
  'sinh': lambda u, du: cosh(u) * du,
  'cosh': lambda u, du: sinh(u) * du,
  'tanh': lambda u, du: (1 - tanh(u) ** 2) * du,
  'exp': lambda u, du: exp(u) * du,
  'ln': lambda u, du: du / u,
  'log': lambda u, du: du / u,
  'log10': lambda u, du: du / (u * ln(ConstantNode(10))),
  'log2': lambda u, du: du / (u * ln(ConstantNode(2))),
  'sqrt': lambda u, du: du / (2 * sqrt(u)),
  'abs': lambda u, du: sign(u) * du,
}


class Differentiator:
  """Derivative with respect to a single variable"""

  def __init__(self, variable: str):
    self.variable = variable

  def differentiate(self, node: Node) -> Node:
    if not node.contains_variable(self.variable):
      return ConstantNode(0.0)

    if isinstance(node, VariableNode):
      return ConstantNode(1.0)
    if isinstance(node, UnaryOpNode):
      return self._differentiate_unary(node)
    if isinstance(node, BinaryOpNode):
      return self._differentiate_binary(node)
    if isinstance(node, FunctionNode):
      return self._differentiate_function(node)
    if isinstance(node, UnsupportedIntegralNode):
      if node.variable == self.variable:
        return node.integrand
      return UnsupportedIntegralNode(self.differentiate(node.integrand), node.variable)

    raise NotDifferentiableError(f"Cannot differentiate node of type {type(node).__name__}")

  def _refuse(self, description: str) -> NotDifferentiableError:
    log_debug(f"Differentiation w.r.t. {self.variable} refused: {description}")
    return NotDifferentiableError(f"{description} is not differentiable")

  def _differentiate_unary(self, node: UnaryOpNode) -> Node:
    u = node.operand
    du = self.differentiate(u)

    if node.operator == UnaryOperator.NEGATE:
      return -du

    rule = DERIVATIVE_TABLE.get(UNARY_NAMES.get(node.operator, ''))
    if rule is None:
      raise self._refuse(f"'{node.to_string()}'")
    return rule(u, du)

  def _differentiate_binary(self, node: BinaryOpNode) -> Node:
    op = node.operator
    l, r = node.left, node.right

    if op == BinaryOperator.ADD:
      return self.differentiate(l) + self.differentiate(r)
    if op == BinaryOperator.SUBTRACT:
      return self.differentiate(l) - self.differentiate(r)
    if op == BinaryOperator.MULTIPLY:
      return self.differentiate(l) * r + l * self.differentiate(r)
    if op == BinaryOperator.DIVIDE:
      return (self.differentiate(l) * r - l * self.differentiate(r)) / r ** 2
    if op == BinaryOperator.POWER:
      if not r.contains_variable(self.variable):
        # n * l^(n-1) * l'
        return r * l ** (r - 1) * self.differentiate(l)
      # l^r * (r' * ln(l) + r * l'/l)
      return node * (self.differentiate(r) * ln(l) + r * (self.differentiate(l) / l))
    if op == BinaryOperator.LOG_BASE:
      return self.differentiate(ln(l) / ln(r))

    raise self._refuse(f"'{node.to_string()}'")

  def _differentiate_function(self, node: FunctionNode) -> Node:
    if len(node.args) != 1:
      raise self._refuse(f"{len(node.args)}-argument function '{node.name}'")

    rule = DERIVATIVE_TABLE.get(node.name)
    if rule is None:
      raise self._refuse(f"function '{node.name}'")
    u = node.args[0]
    return rule(u, self.differentiate(u))


def differentiate(node: Node, variable: str) -> Node:
  """Simplified derivative of node with respect to variable"""
  log_info(f"Differentiating {node.to_string()} w.r.t. {variable}", LogLevel.VERBOSE)
  return simplify(Differentiator(variable).differentiate(node))
