"""
Root conftest for tests.

Resets process-wide state between tests:
1. The request trace ID bound in the logging context
2. The cached Settings instance
"""

import pytest

from config.settings import get_settings
from libs.common.logging.context import clear_trace_id


@pytest.fixture(autouse=True)
def _reset_global_state():
    clear_trace_id()
    get_settings.cache_clear()
    yield
    clear_trace_id()
    get_settings.cache_clear()
