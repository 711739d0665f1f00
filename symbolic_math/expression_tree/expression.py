import numpy as np
import sympy as sp
from typing import Callable, Optional, Sequence, Set, Union

from .core.node import Node, as_node
from .core.node import Bindings, ArrayBindings
from .core.functions import FunctionEnvironment
from .utils.simplifier import simplify
from .utils.tree_utils import calculate_tree_depth
from ..calculus.differentiation import differentiate
from ..calculus.integration import integrate, is_unsupported
from ..calculus.manipulation import expand, factor
from ..logging_system import log_info, LogLevel

Replacement = Union['Expression', Node, str, int, float]


class Expression:
  """Public wrapper around an immutable expression tree"""

  __slots__ = ('root', '_string_cache')

  def __init__(self, root: Node):
    if not isinstance(root, Node):
      raise TypeError(f"Expression root must be a Node, got {type(root).__name__}")
    self.root = root
    self._string_cache: Optional[str] = None

  @classmethod
  def parse(cls, text: str) -> 'Expression':
    from ..parsing.parser import parse_expression
    log_info(f"Parsing '{text}'", LogLevel.VERBOSE)
    return cls(parse_expression(text))

  from_string = parse

  @staticmethod
  def _to_node(value: Replacement) -> Node:
    if isinstance(value, Expression):
      return value.root
    if isinstance(value, str):
      return Expression.parse(value).root
    return as_node(value)

  def evaluate(self, bindings: Optional[Bindings] = None,
               functions: Optional[FunctionEnvironment] = None) -> float:
    return self.root.evaluate(bindings or {}, functions)

  def evaluate_vectorized(self, bindings: Optional[ArrayBindings] = None,
                          functions: Optional[FunctionEnvironment] = None) -> np.ndarray:
    """Evaluate over numpy arrays; scalars broadcast against arrays"""
    return np.asarray(self.root.evaluate_vectorized(bindings or {}, functions), dtype=np.float64)

  def get_variables(self) -> Set[str]:
    return self.root.get_variables()

  def is_constant(self) -> bool:
    return self.root.is_constant()

  def simplify(self) -> 'Expression':
    return Expression(simplify(self.root))

  def differentiate(self, variable: str) -> 'Expression':
    return Expression(differentiate(self.root, variable))

  def integrate(self, variable: str) -> 'Expression':
    return Expression(integrate(self.root, variable))

  def is_unsupported(self) -> bool:
    return is_unsupported(self.root)

  def substitute(self, variable: str, replacement: Replacement) -> 'Expression':
    return Expression(self.root.substitute(variable, self._to_node(replacement)))

  def expand(self) -> 'Expression':
    return Expression(expand(self.root))

  def factor(self, variable: Optional[str] = None) -> 'Expression':
    return Expression(factor(self.root, variable))

  def to_string(self) -> str:
    if self._string_cache is None:
      self._string_cache = self.root.to_string()
    return self._string_cache

  def size(self) -> int:
    """Node count"""
    return self.root.size()

  def depth(self) -> int:
    return calculate_tree_depth(self.root)

  def to_sympy(self) -> sp.Expr:
    return self.root.to_sympy()

  def lambdify(self, variables: Optional[Sequence[str]] = None) -> Callable:
    """
    Compile to a numpy callable through sympy.

    Arguments follow the order of `variables`, defaulting to the sorted
    variable names.
    """
    names = list(variables) if variables is not None else sorted(self.get_variables())
    return sp.lambdify([sp.Symbol(name) for name in names], self.to_sympy(), modules='numpy')

  def __str__(self) -> str:
    return self.to_string()

  def __repr__(self) -> str:
    return f"Expression({self.to_string()!r})"

  def __hash__(self) -> int:
    return hash(self.root)

  def __eq__(self, other) -> bool:
    if not isinstance(other, Expression):
      return NotImplemented
    return self.root == other.root

  def __add__(self, other: Replacement) -> 'Expression':
    return Expression(self.root + self._to_node(other))

  def __sub__(self, other: Replacement) -> 'Expression':
    return Expression(self.root - self._to_node(other))

  def __mul__(self, other: Replacement) -> 'Expression':
    return Expression(self.root * self._to_node(other))

  def __truediv__(self, other: Replacement) -> 'Expression':
    return Expression(self.root / self._to_node(other))

  def __pow__(self, other: Replacement) -> 'Expression':
    return Expression(self.root ** self._to_node(other))

  def __neg__(self) -> 'Expression':
    return Expression(-self.root)
