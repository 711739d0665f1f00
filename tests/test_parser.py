import numpy as np
import pytest

from symbolic_math.errors import ParseError
from symbolic_math.parsing import parse, parse_expression, tokenize
from symbolic_math.expression_tree import (
    ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, FunctionNode,
    UnsupportedIntegralNode, BinaryOperator, UnaryOperator
)


def value(text, **bindings):
    return parse_expression(text).evaluate(bindings)


def test_precedence_and_associativity():
    assert value("2+3*4") == 14.0
    assert value("2^3^2") == 512.0
    assert value("-2^2") == -4.0
    assert value("(2+3)*4") == 20.0
    assert value("10 - 4 - 3") == 3.0
    assert value("64 / 4 / 2") == 8.0
    assert value("2^-1") == 0.5
    assert value("2 * -3") == -6.0


def test_unary_minus_binds_looser_than_power():
    tree = parse_expression("-x^2")
    assert isinstance(tree, UnaryOpNode) and tree.operator == UnaryOperator.NEGATE
    assert isinstance(tree.operand, BinaryOpNode) and tree.operand.operator == BinaryOperator.POWER


def test_unary_plus_is_dropped():
    assert parse_expression("+x") == VariableNode('x')


def test_postfix_factorial():
    assert value("3!") == 6.0
    assert value("2*3!") == 12.0
    assert value("(1+2)!") == 6.0


def test_constants_fold_at_parse_time():
    assert parse_expression("pi") == ConstantNode(np.pi)
    assert parse_expression("tau") == ConstantNode(2 * np.pi)
    assert value("phi") == pytest.approx((1 + 5 ** 0.5) / 2)
    assert value("e") == pytest.approx(np.e)


def test_keyword_functions_map_to_unary_nodes():
    assert parse_expression("arcsin(x)") == UnaryOpNode(UnaryOperator.ASIN, VariableNode('x'))
    assert parse_expression("ceiling(x)") == UnaryOpNode(UnaryOperator.CEILING, VariableNode('x'))
    assert parse_expression("log(x)") == UnaryOpNode(UnaryOperator.LN, VariableNode('x'))
    assert parse_expression("factorial(4)").evaluate() == 24.0


def test_two_argument_keywords():
    assert parse_expression("pow(x, 2)") == BinaryOpNode(BinaryOperator.POWER, VariableNode('x'), ConstantNode(2))
    assert parse_expression("log(8, 2)").operator == BinaryOperator.LOG_BASE
    assert value("log(8, 2)") == pytest.approx(3.0)
    assert isinstance(parse_expression("max(x, 1)"), FunctionNode)
    assert value("min(3, 1)") == 1.0


def test_generic_function_call_lowercases_name():
    tree = parse_expression("GCD(12, 18)")
    assert isinstance(tree, FunctionNode)
    assert tree.name == 'gcd'
    assert tree.evaluate() == 6.0


def test_identifier_without_parenthesis_is_variable():
    tree = parse_expression("f * (x)")
    assert tree.left == VariableNode('f')


def test_integral_sentinel_round_trips():
    tree = parse_expression("integral(tan(x)^2, x)")
    assert isinstance(tree, UnsupportedIntegralNode)
    assert tree.variable == 'x'
    assert parse_expression(tree.to_string()) == tree


def test_parse_accepts_token_list():
    assert parse(tokenize("1 + 1")).evaluate() == 2.0


@pytest.mark.parametrize("text", [
    "",
    "x + + 2",
    "x *",
    "(x + 1",
    "x + 1)",
    "()",
    "sin x",
    "sin()",
    "foo()",
    "2 3",
    "x, y",
    "pow(1)",
    "min(1, 2, 3)",
    "sin(1, 2)",
    "log(1, 2, 3)",
    "* 2",
    "x ^ * 2",
])
def test_invalid_input_raises_parse_error(text):
    with pytest.raises(ParseError):
        parse_expression(text)


def test_parse_error_carries_token_and_position():
    with pytest.raises(ParseError) as excinfo:
        parse_expression("x + + 2")
    assert excinfo.value.position == 4
    assert excinfo.value.token.text == '+'


@pytest.mark.parametrize("text", [
    "x^2 - 3*x + 1",
    "-(x + y) * z",
    "(x^2)^3",
    "2^3^2",
    "x^(-2)",
    "(x - 1)!",
    "sin(x)^2 + cos(x)^2",
    "log(x, 3) % 2",
    "x - (y - z)",
    "x / (y / z)",
    "-(-x)",
    "atan2(y, x) + hypot(3, 4)",
])
def test_to_string_reparses_to_same_tree(text):
    tree = parse_expression(text)
    assert parse_expression(tree.to_string()) == tree
