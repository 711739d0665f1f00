"""
symbolic_math

Parses textual math expressions into immutable trees, evaluates them, and
derives new trees by simplification, differentiation, integration,
expansion and factoring.
"""

from .errors import (
    MathEngineError, LexError, ParseError, EvaluationError,
    UndefinedVariableError, UndefinedFunctionError, InvalidArgumentError,
    ResultOverflowError, NotDifferentiableError
)
from .config import EngineConfig, get_config, configure, reset_config
from .logging_system import LogLevel, configure_logging, set_log_level, get_logger
from .expression_tree import Expression
from .expression_tree.utils.simplifier import simplify
from .parsing import tokenize, parse, parse_expression
from .calculus import differentiate, integrate, is_unsupported, expand, factor

__version__ = "0.1.0"

__all__ = [
    'Expression',
    'tokenize', 'parse', 'parse_expression',
    'simplify', 'differentiate', 'integrate', 'is_unsupported', 'expand', 'factor',
    'EngineConfig', 'get_config', 'configure', 'reset_config',
    'LogLevel', 'configure_logging', 'set_log_level', 'get_logger',
    'MathEngineError', 'LexError', 'ParseError', 'EvaluationError',
    'UndefinedVariableError', 'UndefinedFunctionError', 'InvalidArgumentError',
    'ResultOverflowError', 'NotDifferentiableError',
]
