import numpy as np
import pytest
import sympy as sp

from symbolic_math import Expression, expand, parse_expression
from symbolic_math.expression_tree import (
    ConstantNode, VariableNode, BinaryOpNode, UnaryOpNode, FunctionNode,
    UnsupportedIntegralNode, BinaryOperator, UnaryOperator, SymPyChecker
)
from symbolic_math.expression_tree.utils.tree_utils import (
    get_all_nodes, calculate_tree_depth, find_nodes_by_type, find_nodes_by_operator,
    find_functions_by_name, get_variable_usage_counts, get_constants, contains_node_type
)


def test_parse_and_from_string_agree():
    assert Expression.parse("x + 1") == Expression.from_string("x + 1")
    assert str(Expression.parse("x+1")) == "x + 1"
    assert repr(Expression.parse("x+1")) == "Expression('x + 1')"


def test_root_must_be_a_node():
    with pytest.raises(TypeError):
        Expression("x + 1")


def test_nodes_are_immutable():
    node = parse_expression("x + 2")
    with pytest.raises(AttributeError):
        node.left = VariableNode('y')
    with pytest.raises(AttributeError):
        del node.operator
    with pytest.raises(AttributeError):
        ConstantNode(1.0).value = 2.0


def test_structural_equality_and_hash():
    first = parse_expression("sin(x) * (y + 2)")
    second = parse_expression("sin( x )*(y+2)")
    assert first == second
    assert hash(first) == hash(second)
    assert first != parse_expression("sin(x) * (2 + y)")
    assert len({first, second}) == 1


def test_constant_equality_uses_tolerance():
    assert ConstantNode(1.0) == ConstantNode(1.0 + 1e-12)
    assert hash(ConstantNode(1.0)) == hash(ConstantNode(5.0))
    assert ConstantNode(1.0) != ConstantNode(1.001)
    assert ConstantNode(float('nan')) == ConstantNode(float('nan'))


def test_different_node_kinds_are_not_equal():
    assert VariableNode('x') != ConstantNode(0.0)
    assert (UnaryOpNode(UnaryOperator.NEGATE, VariableNode('x'))
            != BinaryOpNode(BinaryOperator.SUBTRACT, ConstantNode(0.0), VariableNode('x')))


def test_string_operator_names():
    assert UnaryOpNode('sin', VariableNode('x')) == parse_expression("sin(x)")
    assert BinaryOpNode('+', VariableNode('x'), ConstantNode(1.0)) == parse_expression("x + 1")


def test_function_node_requires_arguments():
    with pytest.raises(ValueError):
        FunctionNode('f', [])
    assert FunctionNode('F', [VariableNode('x')]).name == 'f'


def test_builder_operators():
    x = VariableNode('x')
    built = (x + 1) * x ** 2 - 3 / x
    assert built == parse_expression("(x + 1) * x^2 - 3 / x")
    assert (-x).to_string() == "-x"


def test_get_variables_and_is_constant():
    expr = Expression.parse("a*x^2 + b*x + c")
    assert expr.get_variables() == {'a', 'b', 'c', 'x'}
    assert not expr.is_constant()
    assert Expression.parse("2*pi").is_constant()


def test_sentinel_variables_include_integration_variable():
    node = UnsupportedIntegralNode(parse_expression("y"), 'x')
    assert node.get_variables() == {'x', 'y'}


def test_substitute_accepts_text_numbers_and_expressions():
    expr = Expression.parse("x^2 + y")
    assert expr.substitute('x', "y + 1").evaluate({'y': 2.0}) == pytest.approx(11.0)
    assert expr.substitute('y', 3).evaluate({'x': 2.0}) == pytest.approx(7.0)
    assert expr.substitute('x', Expression.parse("2*z")).get_variables() == {'y', 'z'}
    assert expr.substitute('q', 5) == expr


def test_substitute_does_not_touch_original():
    expr = Expression.parse("x * y")
    expr.substitute('x', 2)
    assert expr.to_string() == "x * y"


def test_substitute_into_unsupported_integral():
    node = UnsupportedIntegralNode(parse_expression("x * y"), 'x')
    renamed = node.substitute('x', VariableNode('t'))
    assert renamed.to_string() == "integral(t * y, t)"
    assert node.substitute('y', ConstantNode(2.0)).to_string() == "integral(x * 2, x)"


def test_substituting_a_value_for_the_integration_variable_keeps_the_marker():
    node = UnsupportedIntegralNode(parse_expression("x * y"), 'x')
    replaced = node.substitute('x', ConstantNode(1.0))
    assert isinstance(replaced, UnsupportedIntegralNode)
    assert replaced.variable == 'x'
    assert replaced.integrand == parse_expression("1 * y")

    expr = Expression.parse("integral(x * y, x) + x").substitute('x', 3)
    assert expr.to_string() == "integral(3 * y, x) + 3"
    assert expr.is_unsupported()


def test_expand_squares_and_products():
    expanded = Expression.parse("(x + 1)^2").expand()
    assert not any(isinstance(n.left, BinaryOpNode)
                   for n in find_nodes_by_operator(expanded.root, BinaryOperator.POWER))
    for x in (-2.0, 0.5, 3.0):
        assert expanded.evaluate({'x': x}) == pytest.approx((x + 1) ** 2)

    product = expand(parse_expression("(x - y) * (x + y)"))
    assert not find_nodes_by_operator(product, BinaryOperator.POWER)
    assert product.evaluate({'x': 3.0, 'y': 2.0}) == pytest.approx(5.0)


def test_expand_leaves_atoms_alone():
    assert expand(parse_expression("sin(x)")) == parse_expression("sin(x)")
    assert expand(parse_expression("x^3")) == parse_expression("x^3")


def test_arithmetic_on_expressions():
    x = Expression.parse("x")
    combined = (x + 1) * (x - "y") / 2
    assert isinstance(combined, Expression)
    assert combined.evaluate({'x': 1.0, 'y': 3.0}) == pytest.approx(-2.0)
    assert (-x).evaluate({'x': 4.0}) == -4.0


def test_size_and_depth():
    expr = Expression.parse("sin(x) + 2*y")
    assert expr.size() == 6
    assert expr.depth() == 3
    assert calculate_tree_depth(ConstantNode(1.0)) == 1


def test_tree_utils_queries():
    node = parse_expression("f(x, y) + x*sin(x) - 2.5")
    assert get_variable_usage_counts(node) == {'x': 3, 'y': 1}
    assert get_constants(node) == [2.5]
    assert len(find_functions_by_name(node, 'F')) == 1
    assert len(find_nodes_by_type(node, VariableNode)) == 4
    assert len(find_nodes_by_operator(node, UnaryOperator.SIN)) == 1
    assert contains_node_type(node, FunctionNode)
    assert not contains_node_type(node, UnsupportedIntegralNode)
    assert get_all_nodes(node)[0] is node
    assert len(get_all_nodes(node, 'depth_first')) == len(get_all_nodes(node))
    with pytest.raises(ValueError):
        get_all_nodes(node, 'sideways')


def test_to_sympy():
    expr = Expression.parse("sin(x)^2 + cos(x)^2")
    assert sp.simplify(expr.to_sympy()) == 1
    assert Expression.parse("pi").to_sympy() == sp.pi
    assert Expression.parse("log(x, 2)").to_sympy() == sp.log(sp.Symbol('x'), 2)


def test_sympy_checker():
    checker = SymPyChecker()
    assert checker.are_equivalent(parse_expression("(x+1)^2"), parse_expression("x^2 + 2*x + 1"))
    assert not checker.are_equivalent(parse_expression("x"), parse_expression("x + 1"))
    assert checker.latex_representation(parse_expression("sqrt(x)")) == r"\sqrt{x}"


def test_lambdify():
    f = Expression.parse("x*y + 1").lambdify(['x', 'y'])
    np.testing.assert_allclose(f(np.array([1.0, 2.0]), 3.0), [4.0, 7.0])
    g = Expression.parse("b - a").lambdify()
    assert g(1.0, 5.0) == pytest.approx(4.0)


def test_negative_zero_keeps_its_sign_when_printed():
    assert ConstantNode(-0.0).to_string() == "(-0)"
    assert ConstantNode(0.0).to_string() == "0"

    node = BinaryOpNode(BinaryOperator.DIVIDE, ConstantNode(1.0), ConstantNode(-0.0))
    assert node.to_string() == "1 / (-0)"
    reparsed = parse_expression(node.to_string())
    assert np.isneginf(reparsed.evaluate({}))
    assert np.isneginf(node.evaluate({}))
