from typing import List, Optional

from .tokens import Token, TokenType
from .lexer import CONSTANT_VALUES, tokenize
from ..errors import ParseError
from ..expression_tree.core.node import (
  Node, ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, FunctionNode,
  UnsupportedIntegralNode
)
from ..expression_tree.core.operators import BinaryOperator, UnaryOperator, UNARY_OP_MAP, BINARY_OP_MAP
from ..logging_system import log_debug

# Keyword functions that take two arguments
BINARY_KEYWORDS = {'pow', 'min', 'max'}


class ExpressionParser:
  """
  Recursive-descent parser over a token list.

  Precedence, loosest first: + -, then * / %, then prefix + -, then ^ (right
  associative, exponent may carry a sign), then postfix !, then primaries.
  Lookahead is a single token and the token list is never modified.
  """

  def __init__(self, tokens: List[Token]):
    if not tokens or tokens[-1].kind != TokenType.END:
      tokens = list(tokens) + [Token(TokenType.END, '', tokens[-1].position + 1 if tokens else 0)]
    self.tokens = tokens
    self.position = 0

  @property
  def current(self) -> Token:
    return self.tokens[self.position]

  def _peek(self, offset: int = 1) -> Token:
    index = min(self.position + offset, len(self.tokens) - 1)
    return self.tokens[index]

  def _advance(self) -> Token:
    token = self.current
    if token.kind != TokenType.END:
      self.position += 1
    return token

  def _expect(self, kind: TokenType, what: str) -> Token:
    token = self.current
    if token.kind != kind:
      raise self._error(f"Expected {what}")
    return self._advance()

  def _error(self, message: str, token: Optional[Token] = None) -> ParseError:
    token = token or self.current
    found = 'end of input' if token.kind == TokenType.END else f"'{token.text}'"
    return ParseError(f"{message} but found {found} at position {token.position}", token, token.position)

  def parse(self) -> Node:
    if self.current.kind == TokenType.END:
      raise ParseError("Empty expression", self.current, self.current.position)

    node = self._parse_additive()

    if self.current.kind != TokenType.END:
      raise self._error("Expected end of expression")
    return node

  def _check_operand_follows(self, operator: Token):
    """A binary operator must be followed by an operand or a prefix minus"""
    token = self.current
    if token.kind in (TokenType.END, TokenType.RIGHT_PAREN, TokenType.COMMA, TokenType.FACTORIAL):
      raise self._error(f"Expected operand after '{operator.text}'")
    if token.kind == TokenType.OPERATOR and token.text != '-':
      raise self._error(f"Expected operand after '{operator.text}'")

  def _parse_additive(self) -> Node:
    left = self._parse_multiplicative()
    while self.current.is_operator('+', '-'):
      operator = self._advance()
      self._check_operand_follows(operator)
      right = self._parse_multiplicative()
      left = BinaryOpNode(BINARY_OP_MAP[operator.text], left, right)
    return left

  def _parse_multiplicative(self) -> Node:
    left = self._parse_unary()
    while self.current.is_operator('*', '/', '%'):
      operator = self._advance()
      self._check_operand_follows(operator)
      right = self._parse_unary()
      left = BinaryOpNode(BINARY_OP_MAP[operator.text], left, right)
    return left

  def _parse_unary(self) -> Node:
    if self.current.is_operator('-'):
      operator = self._advance()
      self._check_operand_follows(operator)
      return UnaryOpNode(UnaryOperator.NEGATE, self._parse_unary())
    if self.current.is_operator('+'):
      operator = self._advance()
      self._check_operand_follows(operator)
      return self._parse_unary()
    return self._parse_power()

  def _parse_power(self) -> Node:
    base = self._parse_postfix()
    if self.current.is_operator('^'):
      operator = self._advance()
      self._check_operand_follows(operator)
      exponent = self._parse_unary()
      return BinaryOpNode(BinaryOperator.POWER, base, exponent)
    return base

  def _parse_postfix(self) -> Node:
    node = self._parse_primary()
    while self.current.kind == TokenType.FACTORIAL:
      self._advance()
      node = UnaryOpNode(UnaryOperator.FACTORIAL, node)
    return node

  def _parse_primary(self) -> Node:
    token = self.current

    if token.kind == TokenType.NUMBER:
      self._advance()
      return ConstantNode(float(token.text))

    if token.kind == TokenType.CONSTANT:
      self._advance()
      return ConstantNode(CONSTANT_VALUES[token.text])

    if token.kind == TokenType.FUNCTION:
      if self._peek().kind != TokenType.LEFT_PAREN:
        raise self._error(f"Expected '(' after function '{token.text}'", self._peek())
      return self._parse_keyword_call()

    if token.kind == TokenType.IDENTIFIER:
      if self._peek().kind == TokenType.LEFT_PAREN:
        return self._parse_generic_call()
      self._advance()
      return VariableNode(token.text)

    if token.kind == TokenType.LEFT_PAREN:
      self._advance()
      if self.current.kind == TokenType.RIGHT_PAREN:
        raise self._error("Expected expression inside parentheses")
      node = self._parse_additive()
      self._expect(TokenType.RIGHT_PAREN, "')'")
      return node

    if token.kind == TokenType.END:
      raise self._error("Unexpected end of expression")
    raise self._error("Unexpected token")

  def _parse_arguments(self) -> List[Node]:
    self._expect(TokenType.LEFT_PAREN, "'('")
    if self.current.kind == TokenType.RIGHT_PAREN:
      raise self._error("Function call requires at least one argument")

    args = [self._parse_additive()]
    while self.current.kind == TokenType.COMMA:
      self._advance()
      args.append(self._parse_additive())
    self._expect(TokenType.RIGHT_PAREN, "')' or ','")
    return args

  def _parse_keyword_call(self) -> Node:
    name_token = self._advance()
    name = name_token.text
    args = self._parse_arguments()

    if name == 'log':
      if len(args) == 1:
        return UnaryOpNode(UnaryOperator.LN, args[0])
      if len(args) == 2:
        return BinaryOpNode(BinaryOperator.LOG_BASE, args[0], args[1])
      raise self._arity_error(name_token, '1 or 2', len(args))

    if name in BINARY_KEYWORDS:
      if len(args) != 2:
        raise self._arity_error(name_token, '2', len(args))
      if name == 'pow':
        return BinaryOpNode(BinaryOperator.POWER, args[0], args[1])
      return FunctionNode(name, args)

    if len(args) != 1:
      raise self._arity_error(name_token, '1', len(args))
    return UnaryOpNode(UNARY_OP_MAP[name], args[0])

  def _parse_generic_call(self) -> Node:
    name_token = self._advance()
    args = self._parse_arguments()
    name = name_token.text.lower()

    if name == 'integral' and len(args) == 2 and isinstance(args[1], VariableNode):
      return UnsupportedIntegralNode(args[0], args[1].name)

    log_debug(f"Parsed call to non-keyword function '{name}' with {len(args)} argument(s)")
    return FunctionNode(name, args)

  @staticmethod
  def _arity_error(token: Token, expected: str, actual: int) -> ParseError:
    return ParseError(
      f"Function '{token.text}' expects {expected} argument(s), got {actual} at position {token.position}",
      token, token.position
    )


def parse(tokens: List[Token]) -> Node:
  """Parse a token list into an expression tree"""
  return ExpressionParser(tokens).parse()


def parse_expression(text: str) -> Node:
  """Parse expression text into an expression tree"""
  return parse(tokenize(text))
