import math

import pytest
import sympy as sp

from symbolic_math import Expression, differentiate
from symbolic_math.errors import NotDifferentiableError
from symbolic_math.parsing import parse_expression
from symbolic_math.expression_tree import ConstantNode, UnsupportedIntegralNode
from symbolic_math.expression_tree.utils.sympy_utils import SymPyChecker


def derivative(text, variable='x'):
    return differentiate(parse_expression(text), variable)


def test_polynomial_derivative():
    d = derivative("x^3-2*x^2+x-1")
    reference = parse_expression("3*x^2-4*x+1")
    assert d.evaluate({'x': 2.0}) == pytest.approx(5.0)
    for x in (-1.5, 0.0, 0.5, 3.0):
        assert d.evaluate({'x': x}) == pytest.approx(reference.evaluate({'x': x}))


@pytest.mark.parametrize("text, expected", [
    ("x", "1"),
    ("5", "0"),
    ("y^2", "0"),
    ("sin(x)", "cos(x)"),
    ("cos(x)", "-sin(x)"),
    ("x^2", "2 * x"),
    ("ln(x)", "1 / x"),
    ("exp(x)", "exp(x)"),
    ("abs(x)", "sign(x)"),
    ("sinh(x)", "cosh(x)"),
    ("-x", "-1"),
    ("3*x", "3"),
])
def test_closed_form_results(text, expected):
    assert derivative(text).to_string() == expected


def test_variable_free_subtree_is_zero_without_inspection():
    assert derivative("floor(y) + foo(y, 2)") == ConstantNode(0)
    assert derivative("x + floor(2)").to_string() == "1"


@pytest.mark.parametrize("text", [
    "sin(x)*cos(x)",
    "x^3/(1+x^2)",
    "exp(-x^2)",
    "ln(x^2 + 1)",
    "sqrt(x)*tan(x)",
    "asin(x/2)",
    "acos(x/2)",
    "atan(3*x)",
    "sinh(x)*cosh(x) - tanh(x)",
    "log10(x)",
    "log2(x)",
    "sec(x) + csc(x) + cot(x)",
    "x^x",
    "2^x",
    "log(x, 3)",
    "exp(sin(x))^2",
])
def test_matches_sympy_derivative(text):
    tree = parse_expression(text)
    d = differentiate(tree, 'x')
    reference = SymPyChecker().derivative(tree, 'x')
    symbol = sp.Symbol('x')
    for x in (0.3, 0.7, 1.3):
        expected = float(reference.subs(symbol, x).evalf())
        assert d.evaluate({'x': x}) == pytest.approx(expected, rel=1e-9)


def test_partial_derivatives():
    expr = parse_expression("x^2*y + y^3")
    assert differentiate(expr, 'x').evaluate({'x': 2.0, 'y': 3.0}) == pytest.approx(12.0)
    assert differentiate(expr, 'y').evaluate({'x': 2.0, 'y': 3.0}) == pytest.approx(31.0)


@pytest.mark.parametrize("text", [
    "floor(x)",
    "ceil(x)",
    "round(x)",
    "sign(x)",
    "x!",
    "x % 2",
    "max(x, 1)",
    "min(x, 1)",
    "foo(x)",
    "atan2(x, 1)",
])
def test_not_differentiable(text):
    with pytest.raises(NotDifferentiableError):
        derivative(text)


def test_unsupported_integral_fundamental_theorem():
    assert derivative("integral(tan(x)^2, x)").to_string() == "tan(x)^2"


def test_unsupported_integral_leibniz_rule():
    d = derivative("integral(x*y, x)", 'y')
    assert isinstance(d, UnsupportedIntegralNode)
    assert d.to_string() == "integral(x, x)"


def test_result_is_simplified():
    assert derivative("x*x + 0*x").to_string() == "2 * x"


def test_expression_wrapper_differentiate():
    d = Expression.parse("sin(2*x)").differentiate('x')
    assert d.evaluate({'x': 0.25}) == pytest.approx(2 * math.cos(0.5))
