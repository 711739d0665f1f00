import pytest

from symbolic_math.config import reset_config
from symbolic_math.logging_system import LogLevel, configure_logging


@pytest.fixture(autouse=True)
def default_engine_state():
    """Each test starts from the default configuration and a silent logger"""
    reset_config()
    configure_logging(LogLevel.SILENT)
    yield
    reset_config()
    configure_logging(LogLevel.SILENT)
