"""
Exception taxonomy for the symbolic math engine.

Lexing and parsing failures carry position context. Evaluation failures are
split so callers can tell a wrong-shaped input (undefined names, invalid
arguments) from one that is simply too large (overflow).
"""

from typing import Optional


class MathEngineError(Exception):
    """Base class for every error raised by symbolic_math"""


class LexError(MathEngineError, ValueError):
    """Raised when the input text contains an unreadable character or literal"""

    def __init__(self, message: str, text: str = "", position: int = -1):
        super().__init__(message)
        self.text = text
        self.position = position


class ParseError(MathEngineError, ValueError):
    """Raised when the token stream does not form a valid expression"""

    def __init__(self, message: str, token: Optional[object] = None, position: int = -1):
        super().__init__(message)
        self.token = token
        self.position = position


class EvaluationError(MathEngineError):
    """Base class for failures raised while computing a numeric value"""


class UndefinedVariableError(EvaluationError):
    def __init__(self, name: str):
        super().__init__(f"Variable '{name}' is not defined")
        self.name = name


class UndefinedFunctionError(EvaluationError):
    def __init__(self, name: str):
        super().__init__(f"Function '{name}' is not defined")
        self.name = name


class InvalidArgumentError(EvaluationError, ValueError):
    """Raised when a function receives an argument outside its domain"""


class ResultOverflowError(EvaluationError, OverflowError):
    """Raised when an exact integer result exceeds the float64 range"""


class NotDifferentiableError(MathEngineError):
    """Raised when a node has no symbolic derivative"""
