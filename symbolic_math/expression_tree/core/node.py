import numpy as np
import sympy as sp
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from .operators import (
  NodeType, BinaryOperator, UnaryOperator,
  BINARY_OP_MAP, BINARY_SYMBOLS, UNARY_OP_MAP, UNARY_NAMES, BINARY_PRECEDENCE,
  PREC_UNARY, PREC_POWER, PREC_POSTFIX, PREC_ATOM,
  evaluate_binary_op, evaluate_unary_op,
  evaluate_binary_op_vectorized, evaluate_unary_op_vectorized
)
from .functions import FunctionEnvironment, call_function
from ...config import get_config
from ...errors import EvaluationError, UndefinedVariableError
from ...logging_system import log_warning

Bindings = Mapping[str, float]
ArrayBindings = Mapping[str, Union[float, np.ndarray]]


def format_number(value: float) -> str:
  """Render a float so that the parser reads it back to the same value"""
  if np.isnan(value):
    return "(0/0)"
  if np.isinf(value):
    return "(1/0)" if value > 0 else "(-1/0)"
  if value == 0 and np.signbit(value):
    return "(-0)"
  eps = get_config().epsilon
  if abs(value - np.pi) < eps:
    return "pi"
  if abs(value - np.e) < eps:
    return "e"
  if value == int(value) and abs(value) < 1e16:
    return str(int(value))
  return repr(float(value))


def as_node(value) -> 'Node':
  if isinstance(value, Node):
    return value
  if isinstance(value, (int, float, np.floating, np.integer)) and not isinstance(value, bool):
    return ConstantNode(value)
  raise TypeError(f"Cannot convert {type(value).__name__} to an expression node")


def _apply_elementwise(func: Callable[..., float], arrays: Sequence[np.ndarray]) -> np.ndarray:
  """Scalar fallback for operations without a vectorized kernel"""
  broadcast = np.broadcast_arrays(*arrays)
  out = np.empty(broadcast[0].shape, dtype=np.float64)
  for index in np.ndindex(out.shape):
    out[index] = func(*[float(a[index]) for a in broadcast])
  return out


def _as_kernel_input(value: np.ndarray) -> np.ndarray:
  return np.ascontiguousarray(value, dtype=np.float64).ravel()


class Node(ABC):
  """Immutable expression tree node with structural equality"""

  __slots__ = ('_hash_cache', '_size_cache')

  def __init__(self):
    object.__setattr__(self, '_hash_cache', None)
    object.__setattr__(self, '_size_cache', None)

  def __setattr__(self, name, value):
    raise AttributeError(f"{type(self).__name__} is immutable")

  def __delattr__(self, name):
    raise AttributeError(f"{type(self).__name__} is immutable")

  @abstractmethod
  def evaluate(self, bindings: Optional[Bindings] = None,
               functions: Optional[FunctionEnvironment] = None) -> float:
    pass

  @abstractmethod
  def evaluate_vectorized(self, bindings: Optional[ArrayBindings] = None,
                          functions: Optional[FunctionEnvironment] = None) -> np.ndarray:
    pass

  @abstractmethod
  def get_variables(self) -> Set[str]:
    pass

  @abstractmethod
  def substitute(self, variable: str, replacement: 'Node') -> 'Node':
    pass

  @abstractmethod
  def to_string(self) -> str:
    pass

  @abstractmethod
  def to_sympy(self) -> sp.Expr:
    pass

  @abstractmethod
  def children(self) -> Tuple['Node', ...]:
    pass

  @property
  def precedence(self) -> int:
    return PREC_ATOM

  def is_constant(self) -> bool:
    return not self.get_variables()

  def contains_variable(self, variable: str) -> bool:
    return variable in self.get_variables()

  def simplify(self) -> 'Node':
    from ..utils.simplifier import ExpressionSimplifier
    return ExpressionSimplifier.simplify(self)

  def differentiate(self, variable: str) -> 'Node':
    from ...calculus.differentiation import differentiate
    return differentiate(self, variable)

  def integrate(self, variable: str) -> 'Node':
    from ...calculus.integration import integrate
    return integrate(self, variable)

  def size(self) -> int:
    """Node count"""
    if self._size_cache is None:
      object.__setattr__(self, '_size_cache', 1 + sum(child.size() for child in self.children()))
    return self._size_cache

  def __hash__(self) -> int:
    if self._hash_cache is None:
      object.__setattr__(self, '_hash_cache', self._compute_hash())
    return self._hash_cache

  @abstractmethod
  def _compute_hash(self) -> int:
    pass

  def __eq__(self, other) -> bool:
    if self is other:
      return True
    if not isinstance(other, Node):
      return NotImplemented
    if type(self) is not type(other) or hash(self) != hash(other):
      return False
    return self._equals(other)

  def __ne__(self, other) -> bool:
    result = self.__eq__(other)
    if result is NotImplemented:
      return result
    return not result

  @abstractmethod
  def _equals(self, other: 'Node') -> bool:
    pass

  def __str__(self) -> str:
    return self.to_string()

  def __repr__(self) -> str:
    return f"{type(self).__name__}({self.to_string()!r})"

  # Builder operators; they construct raw nodes without simplifying
  def __add__(self, other):
    return BinaryOpNode(BinaryOperator.ADD, self, as_node(other))

  def __radd__(self, other):
    return BinaryOpNode(BinaryOperator.ADD, as_node(other), self)

  def __sub__(self, other):
    return BinaryOpNode(BinaryOperator.SUBTRACT, self, as_node(other))

  def __rsub__(self, other):
    return BinaryOpNode(BinaryOperator.SUBTRACT, as_node(other), self)

  def __mul__(self, other):
    return BinaryOpNode(BinaryOperator.MULTIPLY, self, as_node(other))

  def __rmul__(self, other):
    return BinaryOpNode(BinaryOperator.MULTIPLY, as_node(other), self)

  def __truediv__(self, other):
    return BinaryOpNode(BinaryOperator.DIVIDE, self, as_node(other))

  def __rtruediv__(self, other):
    return BinaryOpNode(BinaryOperator.DIVIDE, as_node(other), self)

  def __pow__(self, other):
    return BinaryOpNode(BinaryOperator.POWER, self, as_node(other))

  def __rpow__(self, other):
    return BinaryOpNode(BinaryOperator.POWER, as_node(other), self)

  def __neg__(self):
    return UnaryOpNode(UnaryOperator.NEGATE, self)


class ConstantNode(Node):
  __slots__ = ('value',)

  def __init__(self, value: float):
    super().__init__()
    object.__setattr__(self, 'value', float(value))

  def evaluate(self, bindings=None, functions=None) -> float:
    return self.value

  def evaluate_vectorized(self, bindings=None, functions=None) -> np.ndarray:
    return np.asarray(self.value, dtype=np.float64)

  def get_variables(self) -> Set[str]:
    return set()

  def is_constant(self) -> bool:
    return True

  def substitute(self, variable, replacement):
    return self

  @property
  def precedence(self) -> int:
    if np.isfinite(self.value) and self.value < 0:
      return PREC_UNARY
    return PREC_ATOM

  def to_string(self) -> str:
    return format_number(self.value)

  def to_sympy(self):
    eps = get_config().epsilon
    if abs(self.value - np.pi) < eps:
      return sp.pi
    if abs(self.value - np.e) < eps:
      return sp.E
    if np.isfinite(self.value) and self.value == int(self.value):
      return sp.Integer(int(self.value))
    return sp.Float(self.value)

  def children(self):
    return ()

  def is_zero(self) -> bool:
    return abs(self.value) < get_config().epsilon

  def is_one(self) -> bool:
    return abs(self.value - 1.0) < get_config().epsilon

  def _compute_hash(self) -> int:
    # tolerance-based equality admits no finer hash
    return hash(NodeType.CONSTANT)

  def _equals(self, other) -> bool:
    if np.isnan(self.value) or np.isnan(other.value):
      return bool(np.isnan(self.value) and np.isnan(other.value))
    if self.value == other.value:
      return True
    return abs(self.value - other.value) < get_config().epsilon


class VariableNode(Node):
  __slots__ = ('name',)

  def __init__(self, name: str):
    super().__init__()
    if not name:
      raise ValueError("Variable name cannot be empty")
    object.__setattr__(self, 'name', name)

  def evaluate(self, bindings=None, functions=None) -> float:
    if bindings is None or self.name not in bindings:
      raise UndefinedVariableError(self.name)
    return float(bindings[self.name])

  def evaluate_vectorized(self, bindings=None, functions=None) -> np.ndarray:
    if bindings is None or self.name not in bindings:
      raise UndefinedVariableError(self.name)
    return np.asarray(bindings[self.name], dtype=np.float64)

  def get_variables(self) -> Set[str]:
    return {self.name}

  def substitute(self, variable, replacement):
    return replacement if self.name == variable else self

  def to_string(self) -> str:
    return self.name

  def to_sympy(self):
    return sp.Symbol(self.name)

  def children(self):
    return ()

  def _compute_hash(self) -> int:
    return hash((NodeType.VARIABLE, self.name))

  def _equals(self, other) -> bool:
    return self.name == other.name


class UnaryOpNode(Node):
  __slots__ = ('operator', 'operand')

  def __init__(self, operator: Union[UnaryOperator, str], operand: Node):
    super().__init__()
    if isinstance(operator, str):
      if operator not in UNARY_OP_MAP:
        raise ValueError(f"Unknown unary operator: {operator}")
      operator = UNARY_OP_MAP[operator]
    object.__setattr__(self, 'operator', UnaryOperator(operator))
    object.__setattr__(self, 'operand', operand)

  def evaluate(self, bindings=None, functions=None) -> float:
    return evaluate_unary_op(self.operand.evaluate(bindings, functions), self.operator)

  def evaluate_vectorized(self, bindings=None, functions=None) -> np.ndarray:
    operand_val = self.operand.evaluate_vectorized(bindings, functions)
    if self.operator == UnaryOperator.FACTORIAL:
      return _apply_elementwise(lambda v: evaluate_unary_op(v, self.operator), [operand_val])
    shape = np.shape(operand_val)
    result = evaluate_unary_op_vectorized(_as_kernel_input(operand_val), int(self.operator))
    return result.reshape(shape)

  def get_variables(self) -> Set[str]:
    return self.operand.get_variables()

  def substitute(self, variable, replacement):
    operand = self.operand.substitute(variable, replacement)
    if operand is self.operand:
      return self
    return UnaryOpNode(self.operator, operand)

  @property
  def precedence(self) -> int:
    if self.operator == UnaryOperator.NEGATE:
      return PREC_UNARY
    if self.operator == UnaryOperator.FACTORIAL:
      return PREC_POSTFIX
    return PREC_ATOM

  def to_string(self) -> str:
    operand_str = self.operand.to_string()
    if self.operator == UnaryOperator.NEGATE:
      if self.operand.precedence <= PREC_UNARY:
        operand_str = f"({operand_str})"
      return f"-{operand_str}"
    if self.operator == UnaryOperator.FACTORIAL:
      if self.operand.precedence < PREC_ATOM:
        operand_str = f"({operand_str})"
      return f"{operand_str}!"
    return f"{UNARY_NAMES[self.operator]}({operand_str})"

  def to_sympy(self):
    from ..utils.sympy_utils import SYMPY_UNARY
    return SYMPY_UNARY[self.operator](self.operand.to_sympy())

  def children(self):
    return (self.operand,)

  def _compute_hash(self) -> int:
    return hash((NodeType.UNARY_OP, self.operator, hash(self.operand)))

  def _equals(self, other) -> bool:
    return self.operator == other.operator and self.operand == other.operand


class BinaryOpNode(Node):
  __slots__ = ('operator', 'left', 'right')

  def __init__(self, operator: Union[BinaryOperator, str], left: Node, right: Node):
    super().__init__()
    if isinstance(operator, str):
      if operator not in BINARY_OP_MAP:
        raise ValueError(f"Unknown binary operator: {operator}")
      operator = BINARY_OP_MAP[operator]
    object.__setattr__(self, 'operator', BinaryOperator(operator))
    object.__setattr__(self, 'left', left)
    object.__setattr__(self, 'right', right)

  def evaluate(self, bindings=None, functions=None) -> float:
    left_val = self.left.evaluate(bindings, functions)
    right_val = self.right.evaluate(bindings, functions)
    return evaluate_binary_op(left_val, right_val, self.operator)

  def evaluate_vectorized(self, bindings=None, functions=None) -> np.ndarray:
    left_val, right_val = np.broadcast_arrays(
      self.left.evaluate_vectorized(bindings, functions),
      self.right.evaluate_vectorized(bindings, functions)
    )
    shape = left_val.shape
    result = evaluate_binary_op_vectorized(
      _as_kernel_input(left_val), _as_kernel_input(right_val), int(self.operator)
    )
    return result.reshape(shape)

  def get_variables(self) -> Set[str]:
    return self.left.get_variables() | self.right.get_variables()

  def substitute(self, variable, replacement):
    left = self.left.substitute(variable, replacement)
    right = self.right.substitute(variable, replacement)
    if left is self.left and right is self.right:
      return self
    return BinaryOpNode(self.operator, left, right)

  @property
  def precedence(self) -> int:
    return BINARY_PRECEDENCE[self.operator]

  def to_string(self) -> str:
    if self.operator == BinaryOperator.LOG_BASE:
      return f"log({self.left.to_string()}, {self.right.to_string()})"

    p = self.precedence
    is_power = self.operator == BinaryOperator.POWER

    left_str = self.left.to_string()
    left_prec = self.left.precedence
    if left_prec < p or (is_power and left_prec <= p):
      left_str = f"({left_str})"

    right_str = self.right.to_string()
    right_prec = self.right.precedence
    if right_prec < p or (right_prec == p and not is_power):
      right_str = f"({right_str})"

    if is_power:
      return f"{left_str}^{right_str}"
    return f"{left_str} {BINARY_SYMBOLS[self.operator]} {right_str}"

  def to_sympy(self):
    from ..utils.sympy_utils import SYMPY_BINARY
    return SYMPY_BINARY[self.operator](self.left.to_sympy(), self.right.to_sympy())

  def children(self):
    return (self.left, self.right)

  def _compute_hash(self) -> int:
    return hash((NodeType.BINARY_OP, self.operator, hash(self.left), hash(self.right)))

  def _equals(self, other) -> bool:
    return (self.operator == other.operator
            and self.left == other.left
            and self.right == other.right)


class FunctionNode(Node):
  """Named function call resolved at evaluation time"""

  __slots__ = ('name', 'args')

  def __init__(self, name: str, args: Sequence[Node]):
    super().__init__()
    if not args:
      raise ValueError(f"Function '{name}' requires at least one argument")
    object.__setattr__(self, 'name', name.lower())
    object.__setattr__(self, 'args', tuple(args))

  def evaluate(self, bindings=None, functions=None) -> float:
    values = [arg.evaluate(bindings, functions) for arg in self.args]
    return call_function(self.name, values, functions)

  def evaluate_vectorized(self, bindings=None, functions=None) -> np.ndarray:
    values = [arg.evaluate_vectorized(bindings, functions) for arg in self.args]
    return _apply_elementwise(lambda *v: call_function(self.name, v, functions), values)

  def get_variables(self) -> Set[str]:
    variables = set()
    for arg in self.args:
      variables |= arg.get_variables()
    return variables

  def substitute(self, variable, replacement):
    args = [arg.substitute(variable, replacement) for arg in self.args]
    if all(new is old for new, old in zip(args, self.args)):
      return self
    return FunctionNode(self.name, args)

  def to_string(self) -> str:
    return f"{self.name}({', '.join(arg.to_string() for arg in self.args)})"

  def to_sympy(self):
    from ..utils.sympy_utils import sympy_function
    return sympy_function(self.name)(*[arg.to_sympy() for arg in self.args])

  def children(self):
    return self.args

  def _compute_hash(self) -> int:
    return hash((NodeType.FUNCTION, self.name, tuple(hash(arg) for arg in self.args)))

  def _equals(self, other) -> bool:
    return self.name == other.name and self.args == other.args


class UnsupportedIntegralNode(Node):
  """
  Marks an antiderivative the integrator could not find.

  It prints as integral(f, x), which parses back to the same node, and it can
  be differentiated, but never evaluated.
  """

  __slots__ = ('integrand', 'variable')

  def __init__(self, integrand: Node, variable: str):
    super().__init__()
    object.__setattr__(self, 'integrand', integrand)
    object.__setattr__(self, 'variable', variable)

  def evaluate(self, bindings=None, functions=None) -> float:
    raise EvaluationError(f"Cannot evaluate unsupported integral of {self.integrand.to_string()}")

  def evaluate_vectorized(self, bindings=None, functions=None) -> np.ndarray:
    raise EvaluationError(f"Cannot evaluate unsupported integral of {self.integrand.to_string()}")

  def get_variables(self) -> Set[str]:
    return self.integrand.get_variables() | {self.variable}

  def substitute(self, variable, replacement):
    if variable == self.variable:
      if isinstance(replacement, VariableNode):
        return UnsupportedIntegralNode(self.integrand.substitute(variable, replacement), replacement.name)
      # the integrand still takes the value; the marker keeps its variable
      log_warning(
        f"Substituting {replacement.to_string()} for integration variable '{variable}' of an unsupported integral"
      )
      return UnsupportedIntegralNode(self.integrand.substitute(variable, replacement), self.variable)
    integrand = self.integrand.substitute(variable, replacement)
    if integrand is self.integrand:
      return self
    return UnsupportedIntegralNode(integrand, self.variable)

  def to_string(self) -> str:
    return f"integral({self.integrand.to_string()}, {self.variable})"

  def to_sympy(self):
    return sp.Integral(self.integrand.to_sympy(), sp.Symbol(self.variable))

  def children(self):
    return (self.integrand,)

  def _compute_hash(self) -> int:
    return hash((NodeType.UNSUPPORTED_INTEGRAL, self.variable, hash(self.integrand)))

  def _equals(self, other) -> bool:
    return self.variable == other.variable and self.integrand == other.integrand
