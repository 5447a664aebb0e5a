"""Exception taxonomy for scrub runs.

Every failure is fatal to the run. Windows committed before the failure
stay committed; the failing window and everything after it are untouched.
"""

from batchscrub.contracts.windows import BatchWindow


class ScrubError(Exception):
    """Base class for all batchscrub failures."""

    pass


class RangeComputationError(ScrubError):
    """Raised when the initial min/max identifier query fails.

    No window has been processed when this is raised.
    """

    pass


class WindowUpdateError(ScrubError):
    """Raised when the bulk update for a window fails.

    Covers constraint violations, connectivity loss mid-statement, and
    transformer exceptions. The store rolls the window back before this
    propagates, so none of its rows are observably changed.
    """

    def __init__(self, window: BatchWindow, message: str) -> None:
        self.window = window
        super().__init__(f"window [{window.lower}, {window.upper}): {message}")


class CheckpointError(ScrubError):
    """Raised when committing an otherwise successful window update fails."""

    def __init__(self, window: BatchWindow | None, message: str) -> None:
        self.window = window
        if window is None:
            super().__init__(message)
        else:
            super().__init__(f"window [{window.lower}, {window.upper}): {message}")


class TargetNotFoundError(ScrubError):
    """Raised when the target table or one of its columns does not exist."""

    pass


class TransformerContractError(ScrubError):
    """Raised when a transformer cannot honour the contract it is used under.

    Either an idempotent transformer is required and this one does not
    declare the capability, or a server-side-only transformer was asked to
    transform a value in Python.
    """

    pass


class AnnotationUnsupportedError(ScrubError):
    """Raised when the database dialect cannot store column comments."""

    pass
