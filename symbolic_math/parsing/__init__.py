"""Lexing and parsing of expression text."""

from .tokens import Token, TokenType
from .lexer import Lexer, tokenize, FUNCTION_KEYWORDS, CONSTANT_VALUES
from .parser import ExpressionParser, parse, parse_expression

__all__ = [
    'Token', 'TokenType', 'Lexer', 'tokenize', 'FUNCTION_KEYWORDS', 'CONSTANT_VALUES',
    'ExpressionParser', 'parse', 'parse_expression'
]
