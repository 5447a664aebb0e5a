# tests/property/settings.py
"""Hypothesis settings tiers for property tests.

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(...)
    @STANDARD_SETTINGS
    def test_something(...):
        ...
"""

from hypothesis import settings

# Pure arithmetic, cheap per example
STANDARD_SETTINGS = settings(max_examples=100)

# Real SQLite database per example
SLOW_SETTINGS = settings(max_examples=30)
