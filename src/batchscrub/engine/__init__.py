"""Batch window engine: the controller and its window arithmetic."""

from batchscrub.engine.controller import BatchWindowController
from batchscrub.engine.windows import (
    DEFAULT_ADVANCE_POLICY,
    WINDOW_ADVANCE_GAP,
    make_window,
    next_lower_bound,
    plan_windows,
    skipped_identifiers,
    validate_batch_size,
)

__all__ = [
    "DEFAULT_ADVANCE_POLICY",
    "WINDOW_ADVANCE_GAP",
    "BatchWindowController",
    "make_window",
    "next_lower_bound",
    "plan_windows",
    "skipped_identifiers",
    "validate_batch_size",
]
