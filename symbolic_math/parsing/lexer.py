import numpy as np
from typing import List, Dict, Optional

from .tokens import Token, TokenType
from ..errors import LexError

# Reserved function names, matched case-insensitively
FUNCTION_KEYWORDS = frozenset({
  'sin', 'cos', 'tan',
  'asin', 'arcsin', 'acos', 'arccos', 'atan', 'arctan',
  'sinh', 'cosh', 'tanh',
  'exp', 'ln', 'log', 'log10',
  'sqrt', 'abs', 'floor', 'ceil', 'ceiling', 'round', 'sign',
  'min', 'max', 'pow', 'factorial'
})

CONSTANT_VALUES: Dict[str, float] = {
  'pi': np.pi,
  'π': np.pi,
  'e': np.e,
  'tau': 2.0 * np.pi,
  'τ': 2.0 * np.pi,
  'phi': (1.0 + np.sqrt(5.0)) / 2.0,
  'φ': (1.0 + np.sqrt(5.0)) / 2.0,
}

OPERATOR_CHARS = '+-*/^%'

SINGLE_CHAR_TOKENS: Dict[str, TokenType] = {
  '(': TokenType.LEFT_PAREN,
  ')': TokenType.RIGHT_PAREN,
  ',': TokenType.COMMA,
  '!': TokenType.FACTORIAL,
}


def _is_digit(ch: str) -> bool:
  return '0' <= ch <= '9'


def _is_identifier_start(ch: str) -> bool:
  return ch == '_' or ch.isalpha()


def _is_identifier_part(ch: str) -> bool:
  return ch == '_' or ch.isalpha() or _is_digit(ch)


class Lexer:
  """Turns expression text into a token list terminated by an END token"""

  def __init__(self, text: str):
    if text is None:
      raise LexError("Input cannot be None")
    self.text = text
    self.position = 0

  def tokenize(self) -> List[Token]:
    tokens = []
    while True:
      self._skip_whitespace()
      if self.position >= len(self.text):
        break
      tokens.append(self._next_token())
    tokens.append(Token(TokenType.END, '', self.position))
    return tokens

  def _skip_whitespace(self):
    while self.position < len(self.text) and self.text[self.position].isspace():
      self.position += 1

  def _next_token(self) -> Token:
    ch = self.text[self.position]
    start = self.position

    if _is_digit(ch) or ch == '.':
      return self._read_number()

    if _is_identifier_start(ch):
      return self._read_identifier()

    self.position += 1
    if ch in OPERATOR_CHARS:
      return Token(TokenType.OPERATOR, ch, start)
    if ch in SINGLE_CHAR_TOKENS:
      return Token(SINGLE_CHAR_TOKENS[ch], ch, start)

    raise LexError(f"Unexpected character '{ch}' at position {start}", ch, start)

  def _read_number(self) -> Token:
    start = self.position
    text = self.text
    has_decimal = False
    has_exponent = False

    while self.position < len(text):
      ch = text[self.position]
      if _is_digit(ch):
        self.position += 1
      elif ch == '.' and not has_decimal and not has_exponent:
        has_decimal = True
        self.position += 1
      elif ch in 'eE' and not has_exponent:
        has_exponent = True
        self.position += 1
        if self.position < len(text) and text[self.position] in '+-':
          self.position += 1
      else:
        break

    literal = text[start:self.position]
    if self._to_float(literal) is None:
      raise LexError(f"Invalid number format '{literal}' at position {start}", literal, start)
    return Token(TokenType.NUMBER, literal, start)

  @staticmethod
  def _to_float(literal: str) -> Optional[float]:
    try:
      return float(literal)
    except ValueError:
      return None

  def _read_identifier(self) -> Token:
    start = self.position
    while self.position < len(self.text) and _is_identifier_part(self.text[self.position]):
      self.position += 1

    identifier = self.text[start:self.position]
    lowered = identifier.lower()

    if lowered in CONSTANT_VALUES:
      return Token(TokenType.CONSTANT, lowered, start)
    if lowered in FUNCTION_KEYWORDS:
      return Token(TokenType.FUNCTION, lowered, start)
    return Token(TokenType.IDENTIFIER, identifier, start)


def tokenize(text: str) -> List[Token]:
  """Tokenize expression text"""
  return Lexer(text).tokenize()
