import numpy as np
import numba
from enum import IntEnum

from .functions import factorial


class NodeType(IntEnum):
  CONSTANT = 0
  VARIABLE = 1
  UNARY_OP = 2
  BINARY_OP = 3
  FUNCTION = 4
  UNSUPPORTED_INTEGRAL = 5


class BinaryOperator(IntEnum):
  ADD = 0
  SUBTRACT = 1
  MULTIPLY = 2
  DIVIDE = 3
  POWER = 4
  MODULO = 5
  LOG_BASE = 6


class UnaryOperator(IntEnum):
  NEGATE = 0
  SIN = 1
  COS = 2
  TAN = 3
  ASIN = 4
  ACOS = 5
  ATAN = 6
  SINH = 7
  COSH = 8
  TANH = 9
  EXP = 10
  LN = 11
  LOG10 = 12
  SQRT = 13
  ABS = 14
  FLOOR = 15
  CEILING = 16
  ROUND = 17
  SIGN = 18
  FACTORIAL = 19


# Mapping dictionaries
BINARY_OP_MAP = {
  '+': BinaryOperator.ADD, '-': BinaryOperator.SUBTRACT,
  '*': BinaryOperator.MULTIPLY, '/': BinaryOperator.DIVIDE,
  '^': BinaryOperator.POWER, '%': BinaryOperator.MODULO,
}
BINARY_SYMBOLS = {op: symbol for symbol, op in BINARY_OP_MAP.items()}

UNARY_OP_MAP = {
  'neg': UnaryOperator.NEGATE,
  'sin': UnaryOperator.SIN, 'cos': UnaryOperator.COS, 'tan': UnaryOperator.TAN,
  'asin': UnaryOperator.ASIN, 'arcsin': UnaryOperator.ASIN,
  'acos': UnaryOperator.ACOS, 'arccos': UnaryOperator.ACOS,
  'atan': UnaryOperator.ATAN, 'arctan': UnaryOperator.ATAN,
  'sinh': UnaryOperator.SINH, 'cosh': UnaryOperator.COSH, 'tanh': UnaryOperator.TANH,
  'exp': UnaryOperator.EXP, 'ln': UnaryOperator.LN, 'log10': UnaryOperator.LOG10,
  'sqrt': UnaryOperator.SQRT, 'abs': UnaryOperator.ABS,
  'floor': UnaryOperator.FLOOR, 'ceil': UnaryOperator.CEILING, 'ceiling': UnaryOperator.CEILING,
  'round': UnaryOperator.ROUND, 'sign': UnaryOperator.SIGN,
  'factorial': UnaryOperator.FACTORIAL,
}

# Canonical printed name for every unary function operator
UNARY_NAMES = {
  UnaryOperator.SIN: 'sin', UnaryOperator.COS: 'cos', UnaryOperator.TAN: 'tan',
  UnaryOperator.ASIN: 'asin', UnaryOperator.ACOS: 'acos', UnaryOperator.ATAN: 'atan',
  UnaryOperator.SINH: 'sinh', UnaryOperator.COSH: 'cosh', UnaryOperator.TANH: 'tanh',
  UnaryOperator.EXP: 'exp', UnaryOperator.LN: 'ln', UnaryOperator.LOG10: 'log10',
  UnaryOperator.SQRT: 'sqrt', UnaryOperator.ABS: 'abs',
  UnaryOperator.FLOOR: 'floor', UnaryOperator.CEILING: 'ceil',
  UnaryOperator.ROUND: 'round', UnaryOperator.SIGN: 'sign',
}

# Printing precedence, higher binds tighter
PREC_ADDITIVE = 1
PREC_MULTIPLICATIVE = 2
PREC_UNARY = 3
PREC_POWER = 4
PREC_POSTFIX = 5
PREC_ATOM = 6

BINARY_PRECEDENCE = {
  BinaryOperator.ADD: PREC_ADDITIVE,
  BinaryOperator.SUBTRACT: PREC_ADDITIVE,
  BinaryOperator.MULTIPLY: PREC_MULTIPLICATIVE,
  BinaryOperator.DIVIDE: PREC_MULTIPLICATIVE,
  BinaryOperator.MODULO: PREC_MULTIPLICATIVE,
  BinaryOperator.POWER: PREC_POWER,
  BinaryOperator.LOG_BASE: PREC_ATOM,
}


def evaluate_binary_op(left: float, right: float, op: BinaryOperator) -> float:
  """IEEE-754 double arithmetic: division by zero gives inf/nan, never raises"""
  with np.errstate(all='ignore'):
    a = np.float64(left)
    b = np.float64(right)
    if op == BinaryOperator.ADD:
      result = a + b
    elif op == BinaryOperator.SUBTRACT:
      result = a - b
    elif op == BinaryOperator.MULTIPLY:
      result = a * b
    elif op == BinaryOperator.DIVIDE:
      result = np.divide(a, b)
    elif op == BinaryOperator.POWER:
      result = np.power(a, b)
    elif op == BinaryOperator.MODULO:
      result = np.fmod(a, b)
    elif op == BinaryOperator.LOG_BASE:
      result = np.log(a) / np.log(b)
    else:
      raise ValueError(f"Unknown binary operator: {op}")
  return float(result)


def evaluate_unary_op(operand: float, op: UnaryOperator) -> float:
  if op == UnaryOperator.FACTORIAL:
    return factorial(float(operand))

  with np.errstate(all='ignore'):
    a = np.float64(operand)
    if op == UnaryOperator.NEGATE:
      result = -a
    elif op == UnaryOperator.SIN:
      result = np.sin(a)
    elif op == UnaryOperator.COS:
      result = np.cos(a)
    elif op == UnaryOperator.TAN:
      result = np.tan(a)
    elif op == UnaryOperator.ASIN:
      result = np.arcsin(a)
    elif op == UnaryOperator.ACOS:
      result = np.arccos(a)
    elif op == UnaryOperator.ATAN:
      result = np.arctan(a)
    elif op == UnaryOperator.SINH:
      result = np.sinh(a)
    elif op == UnaryOperator.COSH:
      result = np.cosh(a)
    elif op == UnaryOperator.TANH:
      result = np.tanh(a)
    elif op == UnaryOperator.EXP:
      result = np.exp(a)
    elif op == UnaryOperator.LN:
      result = np.log(a)
    elif op == UnaryOperator.LOG10:
      result = np.log10(a)
    elif op == UnaryOperator.SQRT:
      result = np.sqrt(a)
    elif op == UnaryOperator.ABS:
      result = np.abs(a)
    elif op == UnaryOperator.FLOOR:
      result = np.floor(a)
    elif op == UnaryOperator.CEILING:
      result = np.ceil(a)
    elif op == UnaryOperator.ROUND:
      # half-to-even
      result = np.rint(a)
    elif op == UnaryOperator.SIGN:
      result = np.sign(a)
    else:
      raise ValueError(f"Unknown unary operator: {op}")
  return float(result)


@numba.njit(cache=True, error_model='numpy')
def evaluate_binary_op_vectorized(left_val, right_val, op_type):
  if op_type == BinaryOperator.ADD:
    return left_val + right_val
  elif op_type == BinaryOperator.SUBTRACT:
    return left_val - right_val
  elif op_type == BinaryOperator.MULTIPLY:
    return left_val * right_val
  elif op_type == BinaryOperator.DIVIDE:
    return left_val / right_val
  elif op_type == BinaryOperator.POWER:
    return np.power(left_val, right_val)
  elif op_type == BinaryOperator.MODULO:
    return np.fmod(left_val, right_val)
  elif op_type == BinaryOperator.LOG_BASE:
    return np.log(left_val) / np.log(right_val)
  return np.full_like(left_val, np.nan)


@numba.njit(cache=True, error_model='numpy')
def evaluate_unary_op_vectorized(operand_val, op_type):
  if op_type == UnaryOperator.NEGATE:
    return -operand_val
  elif op_type == UnaryOperator.SIN:
    return np.sin(operand_val)
  elif op_type == UnaryOperator.COS:
    return np.cos(operand_val)
  elif op_type == UnaryOperator.TAN:
    return np.tan(operand_val)
  elif op_type == UnaryOperator.ASIN:
    return np.arcsin(operand_val)
  elif op_type == UnaryOperator.ACOS:
    return np.arccos(operand_val)
  elif op_type == UnaryOperator.ATAN:
    return np.arctan(operand_val)
  elif op_type == UnaryOperator.SINH:
    return np.sinh(operand_val)
  elif op_type == UnaryOperator.COSH:
    return np.cosh(operand_val)
  elif op_type == UnaryOperator.TANH:
    return np.tanh(operand_val)
  elif op_type == UnaryOperator.EXP:
    return np.exp(operand_val)
  elif op_type == UnaryOperator.LN:
    return np.log(operand_val)
  elif op_type == UnaryOperator.LOG10:
    return np.log10(operand_val)
  elif op_type == UnaryOperator.SQRT:
    return np.sqrt(operand_val)
  elif op_type == UnaryOperator.ABS:
    return np.abs(operand_val)
  elif op_type == UnaryOperator.FLOOR:
    return np.floor(operand_val)
  elif op_type == UnaryOperator.CEILING:
    return np.ceil(operand_val)
  elif op_type == UnaryOperator.ROUND:
    return np.rint(operand_val)
  elif op_type == UnaryOperator.SIGN:
    return np.sign(operand_val)
  # factorial goes through the scalar path
  return np.full_like(operand_val, np.nan)
