"""Observability events for scrub runs.

Emitted by the controller on an event bus and consumed by CLI formatters.
ProgressRecord (see contracts.windows) is the per-window event; the types
here bracket the run.
"""

from dataclasses import dataclass

from batchscrub.contracts.enums import AdvancePolicy, RangeMode, ScrubStatus
from batchscrub.contracts.windows import IdentifierRange


@dataclass(frozen=True, slots=True)
class ScrubStarted:
    """Emitted once the identifier range has been computed.

    Attributes:
        transformer: Name of the value transformer being applied
        id_range: Range snapshot, or None for an empty table
        batch_size: Identifiers per window
        advance_policy: Cursor advance policy in effect
        range_mode: Snapshot or live upper bound
    """

    transformer: str
    id_range: IdentifierRange | None
    batch_size: int
    advance_policy: AdvancePolicy
    range_mode: RangeMode


@dataclass(frozen=True, slots=True)
class ScrubCompleted:
    """Emitted when the loop condition turns false."""

    status: ScrubStatus
    windows_processed: int
    rows_affected: int
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class ScrubFailed:
    """Emitted when a run aborts.

    Attributes:
        status: Always FAILED
        window_lower_bound: Lower bound of the failing window, or None if
            the failure happened before the first window
        windows_committed: Windows checkpointed before the failure
        rows_affected: Rows changed by those committed windows
        error_type: Exception class name
        error_message: Exception message
    """

    status: ScrubStatus
    window_lower_bound: int | None
    windows_committed: int
    rows_affected: int
    error_type: str
    error_message: str
