"""Symbolic calculus over expression trees."""

from .differentiation import Differentiator, differentiate
from .integration import Integrator, IntegrationResult, integrate, integrate_with_result, is_unsupported
from .manipulation import expand, distribute, factor

__all__ = [
    'Differentiator', 'differentiate',
    'Integrator', 'IntegrationResult', 'integrate', 'integrate_with_result', 'is_unsupported',
    'expand', 'distribute', 'factor'
]
