"""
Engine configuration.

A single process-wide EngineConfig holds the numeric tolerances and selects
between the checked and unchecked combinatorics bindings.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class EngineConfig:
    epsilon: float = 1e-10            # absolute tolerance for zero/one/equality checks
    factorial_limit: int = 170        # largest n with n! representable as float64
    checked_combinatorics: bool = True


_global_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get or create the global configuration"""
    global _global_config
    if _global_config is None:
        _global_config = EngineConfig()
    return _global_config


def configure(**overrides) -> EngineConfig:
    """Replace selected fields of the global configuration"""
    global _global_config
    _global_config = replace(get_config(), **overrides)
    return _global_config


def reset_config() -> EngineConfig:
    """Restore the default configuration"""
    global _global_config
    _global_config = EngineConfig()
    return _global_config
