import sympy as sp
from typing import Callable, Dict

from ..core.operators import BinaryOperator, UnaryOperator

SYMPY_UNARY: Dict[UnaryOperator, Callable[[sp.Expr], sp.Expr]] = {
  UnaryOperator.NEGATE: lambda a: -a,
  UnaryOperator.SIN: sp.sin,
  UnaryOperator.COS: sp.cos,
  UnaryOperator.TAN: sp.tan,
  UnaryOperator.ASIN: sp.asin,
  UnaryOperator.ACOS: sp.acos,
  UnaryOperator.ATAN: sp.atan,
  UnaryOperator.SINH: sp.sinh,
  UnaryOperator.COSH: sp.cosh,
  UnaryOperator.TANH: sp.tanh,
  UnaryOperator.EXP: sp.exp,
  UnaryOperator.LN: sp.log,
  UnaryOperator.LOG10: lambda a: sp.log(a, 10),
  UnaryOperator.SQRT: sp.sqrt,
  UnaryOperator.ABS: sp.Abs,
  UnaryOperator.FLOOR: sp.floor,
  UnaryOperator.CEILING: sp.ceiling,
  UnaryOperator.ROUND: sp.Function('round'),
  UnaryOperator.SIGN: sp.sign,
  UnaryOperator.FACTORIAL: sp.factorial,
}

SYMPY_BINARY: Dict[BinaryOperator, Callable[[sp.Expr, sp.Expr], sp.Expr]] = {
  BinaryOperator.ADD: lambda a, b: sp.Add(a, b),
  BinaryOperator.SUBTRACT: lambda a, b: sp.Add(a, sp.Mul(-1, b)),
  BinaryOperator.MULTIPLY: lambda a, b: sp.Mul(a, b),
  BinaryOperator.DIVIDE: lambda a, b: sp.Mul(a, sp.Pow(b, -1)),
  BinaryOperator.POWER: lambda a, b: sp.Pow(a, b),
  # sympy's Mod follows the divisor's sign; numeric evaluation uses fmod
  BinaryOperator.MODULO: lambda a, b: sp.Mod(a, b),
  BinaryOperator.LOG_BASE: lambda a, b: sp.log(a, b),
}

SYMPY_FUNCTIONS: Dict[str, Callable[..., sp.Expr]] = {
  'sin': sp.sin, 'cos': sp.cos, 'tan': sp.tan,
  'asin': sp.asin, 'acos': sp.acos, 'atan': sp.atan,
  'sec': sp.sec, 'csc': sp.csc, 'cot': sp.cot,
  'sinh': sp.sinh, 'cosh': sp.cosh, 'tanh': sp.tanh,
  'exp': sp.exp, 'ln': sp.log, 'log': sp.log,
  'log10': lambda a: sp.log(a, 10), 'log2': lambda a: sp.log(a, 2),
  'sqrt': sp.sqrt, 'abs': sp.Abs, 'sign': sp.sign,
  'floor': sp.floor, 'ceil': sp.ceiling, 'ceiling': sp.ceiling,
  'min': sp.Min, 'max': sp.Max, 'atan2': sp.atan2,
  'hypot': lambda a, b: sp.sqrt(a**2 + b**2),
  'mod': sp.Mod, 'pow': sp.Pow,
  'factorial': sp.factorial,
  'binomial': sp.binomial, 'ncr': sp.binomial, 'choose': sp.binomial,
  'permutation': sp.ff, 'perm': sp.ff, 'npr': sp.ff,
}


def sympy_function(name: str) -> Callable[..., sp.Expr]:
  """Known functions map to sympy's; anything else becomes an undefined Function"""
  return SYMPY_FUNCTIONS.get(name.lower(), sp.Function(name))


class SymPyChecker:
  """Cross-checks trees against sympy's own algebra"""

  def __init__(self, simplify_difference: bool = True):
    self.simplify_difference = simplify_difference

  def are_equivalent(self, first, second) -> bool:
    """True when sympy proves first - second == 0"""
    difference = first.to_sympy() - second.to_sympy()
    if self.simplify_difference:
      difference = sp.simplify(difference)
    return difference == 0

  def derivative(self, node, variable: str) -> sp.Expr:
    return sp.diff(node.to_sympy(), sp.Symbol(variable))

  def latex_representation(self, node) -> str:
    return sp.latex(node.to_sympy())
