"""Identifier ranges, batch windows, and per-window progress records."""

from dataclasses import dataclass

from batchscrub.contracts.enums import ControllerState, ScrubStatus


@dataclass(frozen=True, slots=True)
class IdentifierRange:
    """Inclusive ``[min_id, max_id]`` extent of the identifier column.

    An empty table has no range; stores return None instead.
    """

    min_id: int
    max_id: int

    def __post_init__(self) -> None:
        if self.min_id > self.max_id:
            raise ValueError(f"min_id ({self.min_id}) must not exceed max_id ({self.max_id})")

    def contains(self, identifier: int) -> bool:
        return self.min_id <= identifier <= self.max_id


@dataclass(frozen=True, slots=True)
class BatchWindow:
    """Half-open ``[lower, upper)`` slice of the identifier space.

    Attributes:
        index: Zero-based position of the window within its run
        lower: Inclusive lower bound
        upper: Exclusive upper bound
    """

    index: int
    lower: int
    upper: int

    def __post_init__(self) -> None:
        if self.upper <= self.lower:
            raise ValueError(f"window upper bound ({self.upper}) must exceed lower bound ({self.lower})")

    @property
    def size(self) -> int:
        return self.upper - self.lower

    def contains(self, identifier: int) -> bool:
        return self.lower <= identifier < self.upper


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    """Emitted once per window, after its checkpoint.

    Purely observational: the controller never reads these back.

    Attributes:
        window_lower_bound: Inclusive lower bound of the committed window
        rows_affected: Rows the window's update actually touched (0 for gaps)
        window_upper_bound: Exclusive upper bound of the committed window
        window_index: Zero-based window position within the run
        duration_seconds: Wall time for update plus checkpoint
    """

    window_lower_bound: int
    rows_affected: int
    window_upper_bound: int
    window_index: int
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class ScrubResult:
    """Outcome of a successful run."""

    status: ScrubStatus
    id_range: IdentifierRange | None
    windows_processed: int
    rows_affected: int
    duration_seconds: float
    final_state: ControllerState
