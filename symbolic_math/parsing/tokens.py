from dataclasses import dataclass
from enum import IntEnum


class TokenType(IntEnum):
  NUMBER = 0
  IDENTIFIER = 1
  CONSTANT = 2
  FUNCTION = 3
  OPERATOR = 4
  LEFT_PAREN = 5
  RIGHT_PAREN = 6
  COMMA = 7
  FACTORIAL = 8
  END = 9


@dataclass(frozen=True)
class Token:
  kind: TokenType
  text: str
  position: int

  def is_operator(self, *symbols: str) -> bool:
    if self.kind != TokenType.OPERATOR:
      return False
    return not symbols or self.text in symbols

  def __str__(self) -> str:
    return f"{self.kind.name}: {self.text}"
