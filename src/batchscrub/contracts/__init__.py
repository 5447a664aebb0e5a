"""Shared contracts for cross-boundary data types.

Leaf package: nothing here imports from core, engine, or transformers.
"""

from batchscrub.contracts.enums import (
    AdvancePolicy,
    ControllerState,
    RangeMode,
    ScrubStatus,
)
from batchscrub.contracts.errors import (
    AnnotationUnsupportedError,
    CheckpointError,
    RangeComputationError,
    ScrubError,
    TargetNotFoundError,
    TransformerContractError,
    WindowUpdateError,
)
from batchscrub.contracts.events import ScrubCompleted, ScrubFailed, ScrubStarted
from batchscrub.contracts.windows import (
    BatchWindow,
    IdentifierRange,
    ProgressRecord,
    ScrubResult,
)

__all__ = [
    "AdvancePolicy",
    "AnnotationUnsupportedError",
    "BatchWindow",
    "CheckpointError",
    "ControllerState",
    "IdentifierRange",
    "ProgressRecord",
    "RangeComputationError",
    "RangeMode",
    "ScrubCompleted",
    "ScrubError",
    "ScrubFailed",
    "ScrubResult",
    "ScrubStarted",
    "ScrubStatus",
    "TargetNotFoundError",
    "TransformerContractError",
    "WindowUpdateError",
]
