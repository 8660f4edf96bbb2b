"""
Shared fixtures for SSL Certificate Notifier tests.
"""

import pytest

from tests.helpers import FIXED_NOW


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed point in time."""
    return lambda: FIXED_NOW
