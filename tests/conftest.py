"""
Shared fixtures.
"""
import logging

import pytest


@pytest.fixture(autouse=True)
def reset_winescope_logger():
    """Undo setup_logging so caplog keeps seeing winescope records."""
    yield
    logger = logging.getLogger("winescope")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
