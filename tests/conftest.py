# tests/conftest.py
"""Shared test configuration.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterator
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from batchscrub.contracts import ProgressRecord, ScrubCompleted, ScrubFailed, ScrubStarted
from batchscrub.core.events import EventBus
from batchscrub.core.store import StoreDB
from tests.fixtures.store import make_users_db


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture(autouse=True)
def _isolate_batchscrub_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shell overrides out of config and CLI tests."""
    for name in list(os.environ):
        if name.startswith("BATCHSCRUB_"):
            monkeypatch.delenv(name)


@pytest.fixture
def users_db() -> Iterator[StoreDB]:
    """Function-scoped in-memory users table, fresh per test."""
    db = make_users_db()
    yield db
    db.close()


@pytest.fixture
def collected() -> tuple[EventBus, list[Any]]:
    """EventBus that records every scrub event it sees, in order."""
    bus = EventBus()
    events: list[Any] = []
    for event_type in (ScrubStarted, ProgressRecord, ScrubCompleted, ScrubFailed):
        bus.subscribe(event_type, events.append)
    return bus, events


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo configure_logging() so handlers never outlive captured streams."""
    yield
    import logging

    import structlog

    logging.getLogger().handlers = []
    structlog.reset_defaults()
