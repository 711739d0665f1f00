"""
Named function table and integer-only combinatorics.

Function nodes are resolved by name at evaluation time: first against the
builtin table below, then against the caller-supplied function environment.
"""

import math
import sys
import numpy as np
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from ...config import get_config
from ...errors import InvalidArgumentError, ResultOverflowError, UndefinedFunctionError

FunctionEnvironment = Mapping[str, Callable[..., float]]

_LOG_FLOAT_MAX = math.log(sys.float_info.max)


def as_non_negative_integer(value: float, function_name: str) -> int:
  """Accept values within epsilon of a non-negative integer"""
  eps = get_config().epsilon
  if not np.isfinite(value):
    raise InvalidArgumentError(f"{function_name} is only defined for non-negative integers, got {value}")
  nearest = round(value)
  if nearest < 0 or abs(value - nearest) > eps:
    raise InvalidArgumentError(f"{function_name} is only defined for non-negative integers, got {value}")
  return int(nearest)


def _checked_result(exact: int, function_name: str) -> float:
  if exact > sys.float_info.max:
    raise ResultOverflowError(f"{function_name} result exceeds the float64 range")
  return float(exact)


def _unchecked_result(value: float, function_name: str) -> float:
  if math.isinf(value):
    raise ResultOverflowError(f"{function_name} result exceeds the float64 range")
  return value


def factorial(n: float) -> float:
  k = as_non_negative_integer(n, 'factorial')
  config = get_config()

  if config.checked_combinatorics:
    if math.lgamma(k + 1) > _LOG_FLOAT_MAX + 1.0:
      raise ResultOverflowError("factorial result exceeds the float64 range")
    return _checked_result(math.factorial(k), 'factorial')

  if k > config.factorial_limit:
    raise ResultOverflowError(f"factorial argument {k} exceeds {config.factorial_limit}")
  result = 1.0
  for i in range(2, k + 1):
    result *= i
  return result


def binomial(n: float, k: float) -> float:
  n_int = as_non_negative_integer(n, 'binomial')
  k_int = as_non_negative_integer(k, 'binomial')
  if k_int > n_int:
    return 0.0
  k_int = min(k_int, n_int - k_int)

  # C(n, k) >= (n/k)^k; passing this bound also caps k near a thousand
  if k_int > 0 and k_int * math.log(n_int / k_int) > _LOG_FLOAT_MAX + 1.0:
    raise ResultOverflowError("binomial result exceeds the float64 range")

  if get_config().checked_combinatorics:
    return _checked_result(math.comb(n_int, k_int), 'binomial')

  result = 1.0
  for i in range(1, k_int + 1):
    result *= n_int - (k_int - i)
    result /= i
  return _unchecked_result(result, 'binomial')


def permutation(n: float, k: float) -> float:
  n_int = as_non_negative_integer(n, 'permutation')
  k_int = as_non_negative_integer(k, 'permutation')
  if k_int > n_int:
    raise InvalidArgumentError("permutation requires k <= n")

  # P(n, k) is at least (n - k + 1)^k and at least k!
  log_bound = max(k_int * math.log(n_int - k_int + 1), math.lgamma(k_int + 1))
  if log_bound > _LOG_FLOAT_MAX + 1.0:
    raise ResultOverflowError("permutation result exceeds the float64 range")

  if get_config().checked_combinatorics:
    return _checked_result(math.perm(n_int, k_int), 'permutation')

  result = 1.0
  for i in range(k_int):
    result *= n_int - i
  return _unchecked_result(result, 'permutation')


def gcd(a: float, b: float) -> float:
  return float(math.gcd(as_non_negative_integer(a, 'gcd'), as_non_negative_integer(b, 'gcd')))


def lcm(a: float, b: float) -> float:
  a_int = as_non_negative_integer(a, 'lcm')
  b_int = as_non_negative_integer(b, 'lcm')
  if a_int == 0 or b_int == 0:
    return 0.0
  return _checked_result(a_int * b_int // math.gcd(a_int, b_int), 'lcm')


# name -> (arity, implementation); implementations receive float64 scalars
BUILTIN_FUNCTIONS: Dict[str, Tuple[int, Callable[..., float]]] = {
  # Trigonometric
  'sin': (1, np.sin),
  'cos': (1, np.cos),
  'tan': (1, np.tan),
  'asin': (1, np.arcsin),
  'acos': (1, np.arccos),
  'atan': (1, np.arctan),
  'sec': (1, lambda x: 1.0 / np.cos(x)),
  'csc': (1, lambda x: 1.0 / np.sin(x)),
  'cot': (1, lambda x: 1.0 / np.tan(x)),

  # Hyperbolic
  'sinh': (1, np.sinh),
  'cosh': (1, np.cosh),
  'tanh': (1, np.tanh),

  # Exponential and logarithmic
  'exp': (1, np.exp),
  'ln': (1, np.log),
  'log': (1, np.log),
  'log10': (1, np.log10),
  'log2': (1, np.log2),

  # Rounding and magnitude
  'sqrt': (1, np.sqrt),
  'abs': (1, np.abs),
  'sign': (1, np.sign),
  'floor': (1, np.floor),
  'ceil': (1, np.ceil),
  'ceiling': (1, np.ceil),
  'round': (1, np.rint),

  # Multi-argument
  'min': (2, np.minimum),
  'max': (2, np.maximum),
  'atan2': (2, np.arctan2),
  'hypot': (2, np.hypot),
  'mod': (2, np.fmod),
  'pow': (2, np.power),

  # Integer-only
  'factorial': (1, factorial),
  'gcd': (2, gcd),
  'lcm': (2, lcm),
  'binomial': (2, binomial),
  'ncr': (2, binomial),
  'choose': (2, binomial),
  'permutation': (2, permutation),
  'perm': (2, permutation),
  'npr': (2, permutation),
}


def _lookup_custom(name: str, functions: Optional[FunctionEnvironment]) -> Optional[Callable[..., float]]:
  if not functions:
    return None
  if name in functions:
    return functions[name]
  lowered = name.lower()
  for key, func in functions.items():
    if key.lower() == lowered:
      return func
  return None


def call_function(name: str, args: Sequence[float],
                  functions: Optional[FunctionEnvironment] = None) -> float:
  """Evaluate a named function on already-evaluated arguments"""
  entry = BUILTIN_FUNCTIONS.get(name.lower())
  if entry is not None:
    arity, implementation = entry
    if len(args) != arity:
      raise InvalidArgumentError(f"Function '{name}' expects {arity} argument(s), got {len(args)}")
    with np.errstate(all='ignore'):
      return float(implementation(*[np.float64(a) for a in args]))

  custom = _lookup_custom(name, functions)
  if custom is None:
    raise UndefinedFunctionError(name)
  return float(custom(*args))
