"""
Heuristic symbolic integration.

A fixed sequence of structural rules is tried at each node and the first
match wins. Nothing here raises for an unmatched shape: the offending
subtree is wrapped in an UnsupportedIntegralNode and the surrounding result
is still assembled, so partial antiderivatives stay usable.
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from ..config import get_config
from ..errors import EvaluationError
from ..expression_tree.core.node import (
  Node, ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, FunctionNode,
  UnsupportedIntegralNode
)
from ..expression_tree.core.operators import BinaryOperator, UnaryOperator, UNARY_NAMES
from ..expression_tree.utils.simplifier import simplify
from ..expression_tree.utils.tree_utils import contains_node_type
from ..logging_system import log_fallback, log_info, LogLevel


@dataclass(frozen=True)
class IntegrationResult:
  """Antiderivative tagged with whether every part of it was found"""
  node: Node
  supported: bool

  @classmethod
  def ok(cls, node: Node) -> 'IntegrationResult':
    return cls(node, True)

  @classmethod
  def unsupported(cls, integrand: Node, variable: str) -> 'IntegrationResult':
    return cls(UnsupportedIntegralNode(integrand, variable), False)


def _unary(op: UnaryOperator) -> Callable[[Node], Node]:
  return lambda u: UnaryOpNode(op, u)


def _function(name: str) -> Callable[[Node], Node]:
  return lambda u: FunctionNode(name, [u])


sin, cos, tan = _unary(UnaryOperator.SIN), _unary(UnaryOperator.COS), _unary(UnaryOperator.TAN)
sinh, cosh = _unary(UnaryOperator.SINH), _unary(UnaryOperator.COSH)
exp, ln, abs_ = _unary(UnaryOperator.EXP), _unary(UnaryOperator.LN), _unary(UnaryOperator.ABS)
atan = _unary(UnaryOperator.ATAN)
sec, csc, cot = _function('sec'), _function('csc'), _function('cot')

# name -> antiderivative of f(u) with respect to u
ANTIDERIVATIVE_TABLE: Dict[str, Callable[[Node], Node]] = {
  'sin': lambda u: -cos(u),
  'cos': lambda u: sin(u),
  'tan': lambda u: -ln(abs_(cos(u))),
  'sec': lambda u: ln(abs_(sec(u) + tan(u))),
  'csc': lambda u: -ln(abs_(csc(u) + cot(u))),
  'cot': lambda u: ln(abs_(sin(u))),
  'exp': lambda u: exp(u),
  'ln': lambda u: u * ln(u) - u,
  'log': lambda u: u * ln(u) - u,
  'log10': lambda u: (u * ln(u) - u) / ln(ConstantNode(10)),
  'sqrt': lambda u: ConstantNode(2.0 / 3.0) * u ** ConstantNode(1.5),
  'sinh': lambda u: cosh(u),
  'cosh': lambda u: sinh(u),
  'tanh': lambda u: ln(cosh(u)),
}


def _is_variable(node: Node, variable: str) -> bool:
  return isinstance(node, VariableNode) and node.name == variable


def _constant_value(node: Node) -> Optional[float]:
  """Numeric value of a variable-free subtree, None if it has none"""
  if not node.is_constant():
    return None
  try:
    value = node.evaluate({})
  except EvaluationError:
    return None
  return value if np.isfinite(value) else None


def match_affine(node: Node, variable: str) -> Optional[Tuple[float, float]]:
  """(a, b) such that node == a*variable + b, or None"""
  if _is_variable(node, variable):
    return 1.0, 0.0

  if not node.contains_variable(variable):
    value = _constant_value(node)
    return None if value is None else (0.0, value)

  if isinstance(node, UnaryOpNode) and node.operator == UnaryOperator.NEGATE:
    inner = match_affine(node.operand, variable)
    return None if inner is None else (-inner[0], -inner[1])

  if not isinstance(node, BinaryOpNode):
    return None

  if node.operator in (BinaryOperator.ADD, BinaryOperator.SUBTRACT):
    left = match_affine(node.left, variable)
    right = match_affine(node.right, variable)
    if left is None or right is None:
      return None
    sign = 1.0 if node.operator == BinaryOperator.ADD else -1.0
    return left[0] + sign * right[0], left[1] + sign * right[1]

  if node.operator == BinaryOperator.MULTIPLY:
    for factor, other in ((node.left, node.right), (node.right, node.left)):
      scale = _constant_value(factor)
      if scale is not None:
        inner = match_affine(other, variable)
        return None if inner is None else (scale * inner[0], scale * inner[1])
    return None

  if node.operator == BinaryOperator.DIVIDE:
    divisor = _constant_value(node.right)
    if divisor is None or divisor == 0.0:
      return None
    inner = match_affine(node.left, variable)
    return None if inner is None else (inner[0] / divisor, inner[1] / divisor)

  return None


def _constant_exponent(node: Node) -> Optional[float]:
  """Literal n or negated literal -n"""
  if isinstance(node, ConstantNode):
    return node.value
  if (isinstance(node, UnaryOpNode) and node.operator == UnaryOperator.NEGATE
      and isinstance(node.operand, ConstantNode)):
    return -node.operand.value
  return None


class Integrator:
  """Antiderivative with respect to a single variable"""

  def __init__(self, variable: str):
    self.variable = variable
    self.eps = get_config().epsilon

  def _var(self) -> VariableNode:
    return VariableNode(self.variable)

  def _unsupported(self, node: Node, reason: str) -> IntegrationResult:
    log_fallback('integrate', f"{node.to_string()} d{self.variable}: {reason}")
    return IntegrationResult.unsupported(node, self.variable)

  def integrate(self, node: Node) -> IntegrationResult:
    x = self._var()

    if not node.contains_variable(self.variable):
      return IntegrationResult.ok(node * x)

    if _is_variable(node, self.variable):
      return IntegrationResult.ok(x ** 2 / 2)

    if isinstance(node, BinaryOpNode):
      return self._integrate_binary(node)
    if isinstance(node, UnaryOpNode):
      return self._integrate_unary(node)
    if isinstance(node, FunctionNode):
      if len(node.args) != 1:
        return self._unsupported(node, "multi-argument function")
      return self._integrate_named(node, node.name, node.args[0])

    return self._unsupported(node, "no matching rule")

  def _integrate_binary(self, node: BinaryOpNode) -> IntegrationResult:
    op = node.operator
    left, right = node.left, node.right
    x = self._var()

    if op == BinaryOperator.POWER:
      if (isinstance(left, ConstantNode) and abs(left.value - np.e) < self.eps
          and _is_variable(right, self.variable)):
        return IntegrationResult.ok(node)  # e^x

      n = _constant_exponent(right)
      if _is_variable(left, self.variable) and n is not None:
        if abs(n + 1.0) < self.eps:
          return IntegrationResult.ok(ln(x))
        return IntegrationResult.ok(x ** ConstantNode(n + 1.0) / ConstantNode(n + 1.0))
      return self._unsupported(node, "power with non-constant exponent")

    if op == BinaryOperator.DIVIDE:
      if (isinstance(left, ConstantNode) and abs(left.value - 1.0) < self.eps
          and _is_variable(right, self.variable)):
        return IntegrationResult.ok(ln(x))  # 1/x
      return self._integrate_reciprocal(node)

    if op in (BinaryOperator.ADD, BinaryOperator.SUBTRACT):
      first = self.integrate(left)
      second = self.integrate(right)
      return IntegrationResult(BinaryOpNode(op, first.node, second.node),
                               first.supported and second.supported)

    if op == BinaryOperator.MULTIPLY:
      left_free = not left.contains_variable(self.variable)
      right_free = not right.contains_variable(self.variable)
      if left_free:
        inner = self.integrate(right)
        return IntegrationResult(left * inner.node, inner.supported)
      if right_free:
        inner = self.integrate(left)
        return IntegrationResult(right * inner.node, inner.supported)
      return self._integrate_by_parts(node)

    return self._unsupported(node, "no matching rule")

  def _integrate_by_parts(self, node: BinaryOpNode) -> IntegrationResult:
    x = self._var()
    left, right = node.left, node.right
    if not _is_variable(left, self.variable):
      return self._unsupported(node, "product outside the parts patterns")

    if isinstance(right, UnaryOpNode) and _is_variable(right.operand, self.variable):
      if right.operator == UnaryOperator.EXP:
        return IntegrationResult.ok((x - 1) * exp(x))
      if right.operator == UnaryOperator.SIN:
        return IntegrationResult.ok(sin(x) - x * cos(x))
      if right.operator == UnaryOperator.COS:
        return IntegrationResult.ok(cos(x) + x * sin(x))

    if (isinstance(right, BinaryOpNode) and right.operator == BinaryOperator.POWER
        and isinstance(right.left, ConstantNode) and abs(right.left.value - np.e) < self.eps
        and _is_variable(right.right, self.variable)):
      return IntegrationResult.ok((x - 1) * right)

    return self._unsupported(node, "product outside the parts patterns")

  def _integrate_reciprocal(self, node: BinaryOpNode) -> IntegrationResult:
    numerator, denominator = node.left, node.right
    if not (isinstance(numerator, ConstantNode) and abs(numerator.value - 1.0) < self.eps):
      return self._unsupported(node, "quotient with non-unit numerator")

    affine = match_affine(denominator, self.variable)
    if affine is not None and abs(affine[0]) >= self.eps:
      a = affine[0]
      return IntegrationResult.ok(ln(abs_(denominator)) / ConstantNode(a))

    c = self._match_square_plus_constant(denominator)
    if c is not None and c > 0:
      root = ConstantNode(np.sqrt(c))
      return IntegrationResult.ok(atan(self._var() / root) / root)

    return self._unsupported(node, "denominator is neither a*x+b nor x^2+c")

  def _match_square_plus_constant(self, node: Node) -> Optional[float]:
    if not (isinstance(node, BinaryOpNode) and node.operator == BinaryOperator.ADD):
      return None
    for square, constant in ((node.left, node.right), (node.right, node.left)):
      if (isinstance(square, BinaryOpNode) and square.operator == BinaryOperator.POWER
          and _is_variable(square.left, self.variable)
          and isinstance(square.right, ConstantNode) and abs(square.right.value - 2.0) < self.eps
          and isinstance(constant, ConstantNode)):
        return constant.value
    return None

  def _integrate_unary(self, node: UnaryOpNode) -> IntegrationResult:
    if node.operator == UnaryOperator.NEGATE:
      inner = self.integrate(node.operand)
      return IntegrationResult(-inner.node, inner.supported)

    name = UNARY_NAMES.get(node.operator)
    if name is None:
      return self._unsupported(node, "no antiderivative for factorial")
    return self._integrate_named(node, name, node.operand)

  def _integrate_named(self, node: Node, name: str, argument: Node) -> IntegrationResult:
    rule = ANTIDERIVATIVE_TABLE.get(name)
    if rule is None:
      return self._unsupported(node, f"'{name}' is not in the antiderivative table")

    if _is_variable(argument, self.variable):
      return IntegrationResult.ok(rule(argument))

    affine = match_affine(argument, self.variable)
    if affine is None or abs(affine[0]) < self.eps:
      return self._unsupported(node, f"argument of '{name}' is not affine")

    # u = a*x + b, then divide by a
    u_name = self._fresh_name(node)
    in_u = rule(VariableNode(u_name))
    return IntegrationResult.ok(in_u.substitute(u_name, argument) / ConstantNode(affine[0]))

  def _fresh_name(self, node: Node) -> str:
    taken = node.get_variables()
    name = '_u'
    suffix = 0
    while name in taken:
      suffix += 1
      name = f'_u{suffix}'
    return name


def integrate_with_result(node: Node, variable: str) -> IntegrationResult:
  """Integrate and keep the supported/unsupported tag"""
  log_info(f"Integrating {node.to_string()} w.r.t. {variable}", LogLevel.VERBOSE)
  result = Integrator(variable).integrate(node)
  return IntegrationResult(simplify(result.node), result.supported)


def integrate(node: Node, variable: str) -> Node:
  """Antiderivative of node; unmatched parts are wrapped as unsupported"""
  return integrate_with_result(node, variable).node


def is_unsupported(node: Node) -> bool:
  """True when any part of an integration result could not be integrated"""
  return contains_node_type(node, UnsupportedIntegralNode)
