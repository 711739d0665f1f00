import pytest

from symbolic_math import (
    Expression, EngineConfig, LogLevel, configure, configure_logging,
    get_config, get_logger, reset_config, set_log_level
)
from symbolic_math.errors import NotDifferentiableError, ResultOverflowError
from symbolic_math.expression_tree import ConstantNode


def test_default_config():
    config = get_config()
    assert config == EngineConfig()
    assert config.epsilon == 1e-10
    assert config.factorial_limit == 170
    assert config.checked_combinatorics


def test_configure_replaces_selected_fields():
    configure(epsilon=1e-3)
    assert get_config().epsilon == 1e-3
    assert get_config().checked_combinatorics
    reset_config()
    assert get_config().epsilon == 1e-10


def test_configure_rejects_unknown_fields():
    with pytest.raises(TypeError):
        configure(tolerance=0.1)


def test_epsilon_controls_constant_equality():
    assert ConstantNode(1.0) != ConstantNode(1.0001)
    configure(epsilon=1e-3)
    assert ConstantNode(1.0) == ConstantNode(1.0001)


def test_unchecked_factorial_limit():
    configure(checked_combinatorics=False, factorial_limit=10)
    assert Expression.parse("x!").evaluate({'x': 10}) == 3628800.0
    with pytest.raises(ResultOverflowError):
        Expression.parse("x!").evaluate({'x': 11})


def read_log(tmp_path, level, action):
    path = tmp_path / "engine.log"
    configure_logging(level, log_to_file=True, log_file_path=str(path))
    action()
    for handler in get_logger().logger.handlers:
        handler.flush()
    return path.read_text()


def test_integration_fallbacks_are_logged_at_detailed(tmp_path):
    text = read_log(tmp_path, LogLevel.DETAILED,
                    lambda: Expression.parse("x + tan(x)^2").integrate('x'))
    assert "INTEGRATE: tan(x)^2 dx" in text
    assert "Integrating" not in text


def test_entry_points_are_logged_at_verbose(tmp_path):
    text = read_log(tmp_path, LogLevel.VERBOSE,
                    lambda: Expression.parse("x^2").differentiate('x'))
    assert "Parsing 'x^2'" in text
    assert "Differentiating x^2 w.r.t. x" in text


def test_refused_derivative_is_logged_at_verbose(tmp_path):
    def action():
        with pytest.raises(NotDifferentiableError):
            Expression.parse("floor(x)").differentiate('x')

    text = read_log(tmp_path, LogLevel.VERBOSE, action)
    assert "DEBUG: Differentiation w.r.t. x refused" in text


def test_quiet_levels_write_nothing(tmp_path):
    text = read_log(tmp_path, LogLevel.MINIMAL,
                    lambda: Expression.parse("tan(x)^2").integrate('x'))
    assert text == ""


def test_set_log_level():
    set_log_level(LogLevel.DETAILED)
    logger = get_logger()
    assert logger.log_level == LogLevel.DETAILED
    set_log_level(LogLevel.VERBOSE)
    assert get_logger() is logger
    assert logger.log_level == LogLevel.VERBOSE


def test_substituting_into_an_unsupported_integral_warns(tmp_path):
    text = read_log(tmp_path, LogLevel.MINIMAL,
                    lambda: Expression.parse("integral(x * y, x)").substitute('x', 2))
    assert "Substituting 2 for integration variable 'x'" in text


@pytest.mark.parametrize("checked", [True, False])
def test_huge_binomial_overflows_without_looping(checked):
    configure(checked_combinatorics=checked)
    with pytest.raises(ResultOverflowError):
        Expression.parse("binomial(n, k)").evaluate({'n': 1e18, 'k': 1e17})
    with pytest.raises(ResultOverflowError):
        Expression.parse("perm(n, k)").evaluate({'n': 1e18, 'k': 1e17})
    assert Expression.parse("binomial(n, 1)").evaluate({'n': 1e15}) == 1e15
    assert Expression.parse("binomial(n, 2)").evaluate({'n': 1e6}) == pytest.approx(499999500000.0)
