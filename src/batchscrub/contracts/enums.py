"""Status codes, modes, and policies used across subsystem boundaries."""

from enum import StrEnum


class ControllerState(StrEnum):
    """Logical state of the batch window controller.

    SCANNING covers range discovery and every evaluation of the loop
    condition. PROCESSING_WINDOW covers update, checkpoint, and report
    for one window. DONE is terminal.
    """

    SCANNING = "scanning"
    PROCESSING_WINDOW = "processing_window"
    DONE = "done"


class AdvancePolicy(StrEnum):
    """How the cursor moves from one window to the next.

    SKIP_BOUNDARY advances to ``lo + batch_size + 1`` and never visits the
    identifier equal to each window's exclusive upper bound. CONTIGUOUS
    advances to ``lo + batch_size`` and partitions the range exactly.
    """

    SKIP_BOUNDARY = "skip_boundary"
    CONTIGUOUS = "contiguous"


class RangeMode(StrEnum):
    """Whether the upper identifier bound is fixed at start or re-queried.

    SNAPSHOT computes max(id) once; rows inserted above it mid-run are not
    visited. LIVE re-queries max(id) after every checkpoint.
    """

    SNAPSHOT = "snapshot"
    LIVE = "live"


class ScrubStatus(StrEnum):
    """Final status of a scrub run."""

    COMPLETED = "completed"
    FAILED = "failed"
