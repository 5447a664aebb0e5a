"""Row store contracts consumed by the batch window controller.

A row store holds records keyed by a totally ordered integer identifier
and offers three things: the identifier extrema, a bounded-window bulk
update returning the affected-row count, and an atomic checkpoint of that
update.
"""

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Protocol

from batchscrub.contracts.windows import BatchWindow, IdentifierRange

if TYPE_CHECKING:
    from batchscrub.transformers.base import ValueTransformer


class WindowTransaction(Protocol):
    """One window's unit of work.

    Nothing done through it is observable until the enclosing
    ``window_transaction()`` block exits cleanly, which is the checkpoint.
    """

    def update_window(self, window: BatchWindow, transformer: "ValueTransformer") -> int:
        """Transform every record with identifier in ``[window.lower, window.upper)``.

        Returns:
            Number of records the update touched (0 across identifier gaps)

        Raises:
            WindowUpdateError: If the statement or the transformer fails
        """
        ...


class RowStore(Protocol):
    """Storage the controller drives."""

    def identifier_range(self) -> IdentifierRange | None:
        """Current ``[min(id), max(id)]``, or None if there are no records.

        Raises:
            RangeComputationError: If the query fails
        """
        ...

    def max_identifier(self) -> int | None:
        """Current max(id), or None if there are no records.

        Raises:
            RangeComputationError: If the query fails
        """
        ...

    def window_transaction(self) -> AbstractContextManager[WindowTransaction]:
        """Open a transaction for one window.

        Clean exit commits (the checkpoint); an exception inside the block
        rolls back and propagates.

        Raises:
            CheckpointError: If the commit fails
        """
        ...
