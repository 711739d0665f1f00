import math
from fractions import Fraction
from functools import reduce
from typing import Dict, List, Optional, Tuple

from ..expression_tree.core.node import (
  Node, ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, FunctionNode, UnsupportedIntegralNode
)
from ..expression_tree.core.operators import BinaryOperator, UnaryOperator
from ..expression_tree.utils.simplifier import TermCollector, simplify
from ..config import get_config
from ..logging_system import log_info, log_fallback, LogLevel


def _is_sum(node: Node) -> bool:
  return isinstance(node, BinaryOpNode) and node.operator in (BinaryOperator.ADD, BinaryOperator.SUBTRACT)


def _is_two(node: Node) -> bool:
  return isinstance(node, ConstantNode) and abs(node.value - 2.0) < get_config().epsilon


def distribute(left: Node, right: Node) -> Node:
  """left * right with the product pushed through any sums on either side"""
  if _is_sum(left):
    return BinaryOpNode(left.operator, distribute(left.left, right), distribute(left.right, right))
  if _is_sum(right):
    return BinaryOpNode(right.operator, distribute(left, right.left), distribute(left, right.right))
  return BinaryOpNode(BinaryOperator.MULTIPLY, left, right)


def expand(node: Node) -> Node:
  """
  Distribute products over sums and square binomials, recursively.

  The result is not simplified: expand("(x+1)^2") gives x^2 + 2 * x * 1 + 1^2
  and callers simplify when they want collected terms.
  """
  if isinstance(node, BinaryOpNode):
    left = expand(node.left)
    right = expand(node.right)

    if node.operator == BinaryOperator.MULTIPLY:
      return distribute(left, right)

    if node.operator == BinaryOperator.POWER and _is_sum(left) and _is_two(right):
      a, b = left.left, left.right
      square_a = expand(BinaryOpNode(BinaryOperator.POWER, a, ConstantNode(2.0)))
      square_b = expand(BinaryOpNode(BinaryOperator.POWER, b, ConstantNode(2.0)))
      cross = distribute(distribute(ConstantNode(2.0), a), b)
      # (a + b)^2 = a^2 + 2ab + b^2 and (a - b)^2 = a^2 - 2ab + b^2
      return BinaryOpNode(BinaryOperator.ADD, BinaryOpNode(left.operator, square_a, cross), square_b)

    return BinaryOpNode(node.operator, left, right)

  if isinstance(node, UnaryOpNode):
    return UnaryOpNode(node.operator, expand(node.operand))
  if isinstance(node, FunctionNode):
    return FunctionNode(node.name, [expand(arg) for arg in node.args])
  if isinstance(node, UnsupportedIntegralNode):
    return UnsupportedIntegralNode(expand(node.integrand), node.variable)
  return node


Monomial = Tuple[float, Dict[str, int]]

# rational root candidates p/q for polynomials of degree three and up
_ROOT_CANDIDATES = sorted(
  {Fraction(p, q) for p in range(-10, 11) for q in range(1, 6)},
  key=lambda r: (abs(r), r)
)


def _snap(value: float) -> float:
  nearest = round(value)
  return float(nearest) if abs(value - nearest) < 1e-9 else value


def _monomial(node: Node) -> Optional[Monomial]:
  """c * x^i * y^j * ... as (c, {x: i, y: j}); None for anything else"""
  if isinstance(node, ConstantNode):
    return node.value, {}
  if isinstance(node, VariableNode):
    return 1.0, {node.name: 1}
  if isinstance(node, UnaryOpNode) and node.operator == UnaryOperator.NEGATE:
    inner = _monomial(node.operand)
    return None if inner is None else (-inner[0], inner[1])
  if isinstance(node, BinaryOpNode) and node.operator == BinaryOperator.POWER:
    exponent = node.right
    if (isinstance(node.left, VariableNode) and isinstance(exponent, ConstantNode)
        and exponent.value >= 1 and exponent.value == int(exponent.value)):
      return 1.0, {node.left.name: int(exponent.value)}
    return None
  if isinstance(node, BinaryOpNode) and node.operator == BinaryOperator.MULTIPLY:
    left, right = _monomial(node.left), _monomial(node.right)
    if left is None or right is None:
      return None
    powers = dict(left[1])
    for name, power in right[1].items():
      powers[name] = powers.get(name, 0) + power
    return left[0] * right[0], powers
  return None


def _monomials(node: Node) -> Optional[List[Monomial]]:
  result = []
  for coefficient, base in TermCollector.split_terms(node):
    if base is None:
      result.append((coefficient, {}))
      continue
    monomial = _monomial(base)
    if monomial is None:
      return None
    result.append((coefficient * monomial[0], monomial[1]))
  return result


def _power_node(name: str, power: int) -> Node:
  if power == 1:
    return VariableNode(name)
  return BinaryOpNode(BinaryOperator.POWER, VariableNode(name), ConstantNode(float(power)))


def _power_product(powers: Dict[str, int]) -> Optional[Node]:
  result = None
  for name, power in powers.items():
    factor_node = _power_node(name, power)
    result = factor_node if result is None else BinaryOpNode(BinaryOperator.MULTIPLY, result, factor_node)
  return result


def _sum_of_monomials(monomials: List[Monomial]) -> Node:
  return TermCollector.rebuild([(_snap(c), _power_product(powers)) for c, powers in monomials])


def _product(factors: List[Node]) -> Node:
  """Left-folded product with the constant factors merged in front"""
  scale = 1.0
  others = []
  for factor_node in factors:
    if isinstance(factor_node, ConstantNode):
      scale *= factor_node.value
    else:
      others.append(factor_node)
  if not others:
    return ConstantNode(_snap(scale))

  eps = get_config().epsilon
  if abs(scale + 1.0) < eps:
    others[0] = UnaryOpNode(UnaryOperator.NEGATE, others[0])
  elif abs(scale - 1.0) >= eps:
    others.insert(0, ConstantNode(_snap(scale)))

  result = others[0]
  for factor_node in others[1:]:
    result = BinaryOpNode(BinaryOperator.MULTIPLY, result, factor_node)
  return result


def _common_factor(monomials: List[Monomial]) -> Tuple[float, Dict[str, int]]:
  """Integer gcd of the coefficients and the lowest shared power of each variable"""
  coefficients = [c for c, _ in monomials]
  g = 1.0
  if all(abs(c - round(c)) < 1e-9 for c in coefficients):
    g = float(reduce(math.gcd, (abs(int(round(c))) for c in coefficients)))

  common = {}
  for name in monomials[0][1]:
    if all(name in powers for _, powers in monomials):
      common[name] = min(powers[name] for _, powers in monomials)
  return g, common


def _coefficients(monomials: List[Monomial], variable: str) -> Optional[List[float]]:
  """Ascending coefficients of a polynomial in a single variable"""
  by_power: Dict[int, float] = {}
  for coefficient, powers in monomials:
    if any(name != variable for name in powers):
      return None
    power = powers.get(variable, 0)
    by_power[power] = by_power.get(power, 0.0) + coefficient
  degree = max(by_power)
  return [by_power.get(i, 0.0) for i in range(degree + 1)]


def _polynomial_node(coefficients: List[float], variable: str) -> Node:
  eps = get_config().epsilon
  terms = []
  for power in range(len(coefficients) - 1, -1, -1):
    if abs(coefficients[power]) >= eps:
      base = None if power == 0 else _power_node(variable, power)
      terms.append((_snap(coefficients[power]), base))
  return TermCollector.rebuild(terms)


def _linear_factor(root: Fraction, variable: str) -> Node:
  """q*x - p for the root p/q"""
  lead = VariableNode(variable)
  if root.denominator != 1:
    lead = BinaryOpNode(BinaryOperator.MULTIPLY, ConstantNode(float(root.denominator)), lead)
  if root.numerator == 0:
    return lead
  if root.numerator > 0:
    return BinaryOpNode(BinaryOperator.SUBTRACT, lead, ConstantNode(float(root.numerator)))
  return BinaryOpNode(BinaryOperator.ADD, lead, ConstantNode(float(-root.numerator)))


def _as_rational(value: float) -> Optional[Fraction]:
  fraction = Fraction(value).limit_denominator(100)
  if abs(float(fraction) - value) < 1e-8:
    return fraction
  return None


def _factor_quadratic(coefficients: List[float], variable: str) -> Optional[List[Node]]:
  c, b, a = coefficients
  eps = get_config().epsilon
  discriminant = b * b - 4 * a * c
  if discriminant < -eps:
    return None

  if abs(discriminant) < eps:
    root = _as_rational(-b / (2 * a))
    if root is None:
      return None
    square = BinaryOpNode(BinaryOperator.POWER, _linear_factor(root, variable), ConstantNode(2.0))
    return [ConstantNode(a / root.denominator ** 2), square]

  sqrt_disc = math.sqrt(discriminant)
  roots = [_as_rational((-b + sqrt_disc) / (2 * a)), _as_rational((-b - sqrt_disc) / (2 * a))]
  if None in roots:
    return None
  roots.sort(reverse=True)
  scale = a / (roots[0].denominator * roots[1].denominator)
  return [ConstantNode(scale)] + [_linear_factor(root, variable) for root in roots]


def _factor_difference_of_squares(coefficients: List[float], variable: str) -> Optional[List[Node]]:
  """a*x^(2k) + c with a*c < 0 and both square integers"""
  degree = len(coefficients) - 1
  eps = get_config().epsilon
  a, c = coefficients[-1], coefficients[0]
  if degree % 2 or any(abs(value) >= eps for value in coefficients[1:-1]) or a * c >= 0:
    return None

  root_a, root_c = math.sqrt(abs(a)), math.sqrt(abs(c))
  if abs(root_a - round(root_a)) > 1e-9 or abs(root_c - round(root_c)) > 1e-9:
    return None

  half = degree // 2
  difference = [-round(root_c)] + [0.0] * (half - 1) + [round(root_a)]
  total = [round(root_c)] + [0.0] * (half - 1) + [round(root_a)]
  sign = [ConstantNode(-1.0)] if a < 0 else []
  return sign + _factor_or_keep(difference, variable) + _factor_or_keep(total, variable)


def _deflate(coefficients: List[float], root: float) -> List[float]:
  """Quotient of the polynomial by (x - root)"""
  quotient = [0.0] * (len(coefficients) - 1)
  carry = 0.0
  for i in range(len(coefficients) - 1, 0, -1):
    carry = coefficients[i] + root * carry
    quotient[i - 1] = carry
  return quotient


def _factor_by_rational_root(coefficients: List[float], variable: str) -> Optional[List[Node]]:
  tolerance = 1e-9 * max(1.0, max(abs(c) for c in coefficients))
  for root in _ROOT_CANDIDATES:
    value = float(root)
    if abs(sum(c * value ** i for i, c in enumerate(coefficients))) >= tolerance:
      continue
    # (x - p/q) * Q = (q*x - p) * Q/q
    rest = [c / root.denominator for c in _deflate(coefficients, value)]
    return [_linear_factor(root, variable)] + _factor_or_keep(rest, variable)
  return None


def _factor_polynomial(coefficients: List[float], variable: str) -> Optional[List[Node]]:
  degree = len(coefficients) - 1
  if degree == 2:
    return _factor_quadratic(coefficients, variable)
  if degree >= 3:
    return (_factor_difference_of_squares(coefficients, variable)
            or _factor_by_rational_root(coefficients, variable))
  return None


def _factor_or_keep(coefficients: List[float], variable: str) -> List[Node]:
  factors = _factor_polynomial(coefficients, variable)
  if factors is None:
    return [_polynomial_node(coefficients, variable)]
  return factors


def factor(node: Node, variable: Optional[str] = None) -> Node:
  """
  Factor a sum of monomials.

  A common factor (integer gcd of the coefficients times the lowest shared
  power of each variable) is pulled out first. What remains is factored as a
  polynomial in variable, or in its only variable when none is given, using
  rational quadratic roots, differences of squares and rational roots of
  higher-degree polynomials. Input that is not a sum of monomials comes back
  simplified but otherwise unchanged.
  """
  log_info(f"Factoring {node.to_string()}", LogLevel.VERBOSE)
  simplified = simplify(node)
  monomials = _monomials(simplified)
  if monomials is None or len(monomials) < 2:
    log_fallback('factor', f"nothing to factor in {simplified.to_string()}")
    return simplified

  factors: List[Node] = []
  g, common = _common_factor(monomials)
  if abs(g - 1.0) >= get_config().epsilon or common:
    factors.append(ConstantNode(g))
    factors.extend(_power_node(name, power) for name, power in common.items())
    monomials = [
      (c / g, {name: p - common.get(name, 0) for name, p in powers.items() if p > common.get(name, 0)})
      for c, powers in monomials
    ]

  remaining_variables = {name for _, powers in monomials for name in powers}
  if variable is None and len(remaining_variables) == 1:
    variable = next(iter(remaining_variables))
  coefficients = _coefficients(monomials, variable) if variable is not None else None
  polynomial_factors = _factor_polynomial(coefficients, variable) if coefficients else None

  if polynomial_factors is None:
    if not factors:
      log_fallback('factor', f"no factorization found for {simplified.to_string()}")
      return simplified
    polynomial_factors = [_sum_of_monomials(monomials)]
  return _product(factors + polynomial_factors)
