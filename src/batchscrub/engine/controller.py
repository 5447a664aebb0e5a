# src/batchscrub/engine/controller.py
"""Batch window controller.

Drives an entire table through a value transformer in bounded,
checkpointed identifier windows:

    SCANNING ──(lo <= hi)──> PROCESSING_WINDOW ──(checkpoint)──> SCANNING
        └──────────(lo > hi)──────────> DONE

PROCESSING_WINDOW is update, checkpoint (commit), and progress report
for exactly one window. Window N+1 never starts before window N is
committed, so at most one window's rows and locks are in flight.

Failures are fatal. Windows committed before the failure stay
committed, the failing window is rolled back by the store, and later
windows are never attempted. Re-running recomputes the range from the
current data.
"""

from time import perf_counter

import structlog

from batchscrub.contracts.enums import AdvancePolicy, ControllerState, RangeMode, ScrubStatus
from batchscrub.contracts.errors import CheckpointError, ScrubError, TransformerContractError
from batchscrub.contracts.events import ScrubCompleted, ScrubFailed, ScrubStarted
from batchscrub.contracts.windows import BatchWindow, IdentifierRange, ProgressRecord, ScrubResult
from batchscrub.core.events import EventBusProtocol, NullEventBus
from batchscrub.core.store.protocols import RowStore
from batchscrub.engine.windows import (
    DEFAULT_ADVANCE_POLICY,
    make_window,
    next_lower_bound,
    validate_batch_size,
)
from batchscrub.transformers.base import ValueTransformer

slog = structlog.get_logger(__name__)


class BatchWindowController:
    """Applies a transformer to every row of a store, one window at a time.

    Example:
        controller = BatchWindowController(store, ScrubEmailTransformer(), batch_size=1000)
        result = controller.run()
    """

    def __init__(
        self,
        store: RowStore,
        transformer: ValueTransformer,
        *,
        batch_size: int,
        advance_policy: AdvancePolicy = DEFAULT_ADVANCE_POLICY,
        range_mode: RangeMode = RangeMode.SNAPSHOT,
        require_idempotent: bool = True,
        event_bus: EventBusProtocol | None = None,
    ) -> None:
        """Validate configuration before any work is done.

        Raises:
            ValueError: If batch_size is not a positive integer
            TransformerContractError: If require_idempotent is set and the
                transformer does not declare itself idempotent
        """
        self._batch_size = validate_batch_size(batch_size)
        self._store = store
        self._transformer = transformer
        self._advance_policy = advance_policy
        self._range_mode = range_mode
        self._event_bus: EventBusProtocol = event_bus if event_bus is not None else NullEventBus()
        self._state = ControllerState.SCANNING

        if not transformer.idempotent:
            if require_idempotent:
                raise TransformerContractError(
                    f"transformer '{transformer.name}' is not declared idempotent; re-running after a "
                    "partial failure would transform committed rows twice. Set "
                    "batch.require_idempotent_transformer: false to accept that."
                )
            slog.warning(
                "non_idempotent_transformer",
                transformer=transformer.name,
                detail="re-running after a partial failure re-transforms committed windows",
            )

    @property
    def state(self) -> ControllerState:
        """Current state. Stays where it was if run() raised."""
        return self._state

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def run(self) -> ScrubResult:
        """Scrub the full record set.

        Returns:
            ScrubResult for a run that reached DONE

        Raises:
            RangeComputationError: If the initial min/max query fails
            WindowUpdateError: If a window's update fails
            CheckpointError: If a window's commit fails
        """
        started = perf_counter()
        self._state = ControllerState.SCANNING

        try:
            id_range = self._store.identifier_range()
        except ScrubError as e:
            self._report_failure(e, window=None, windows_committed=0, rows_affected=0)
            raise

        self._event_bus.emit(
            ScrubStarted(
                transformer=self._transformer.name,
                id_range=id_range,
                batch_size=self._batch_size,
                advance_policy=self._advance_policy,
                range_mode=self._range_mode,
            )
        )
        slog.info(
            "scrub_started",
            transformer=self._transformer.name,
            min_id=id_range.min_id if id_range else None,
            max_id=id_range.max_id if id_range else None,
            batch_size=self._batch_size,
            advance_policy=self._advance_policy.value,
            range_mode=self._range_mode.value,
        )

        if id_range is None:
            windows_processed, rows_affected = 0, 0
        else:
            windows_processed, rows_affected = self._process_windows(id_range.min_id, id_range.max_id, self._batch_size)

        return self._complete(id_range, windows_processed, rows_affected, perf_counter() - started)

    def _process_windows(self, lo: int, hi: int, batch_size: int) -> tuple[int, int]:
        """Window loop over an explicit cursor.

        Args:
            lo: Lower bound of the first window
            hi: Inclusive upper identifier bound (re-queried in LIVE mode)
            batch_size: Identifiers per window

        Returns:
            (windows processed, total rows affected)
        """
        index = 0
        rows_total = 0

        while lo <= hi:
            window = make_window(index, lo, batch_size)
            self._state = ControllerState.PROCESSING_WINDOW
            try:
                rows_total += self._checkpoint_window(window)
            except ScrubError as e:
                self._report_failure(e, window=window, windows_committed=index, rows_affected=rows_total)
                raise

            index += 1
            lo = next_lower_bound(lo, batch_size, self._advance_policy)
            self._state = ControllerState.SCANNING

            if self._range_mode == RangeMode.LIVE:
                try:
                    latest = self._store.max_identifier()
                except ScrubError as e:
                    self._report_failure(e, window=None, windows_committed=index, rows_affected=rows_total)
                    raise
                if latest is None:
                    break
                if latest != hi:
                    slog.debug("live_range_moved", previous_max_id=hi, max_id=latest)
                hi = latest

        return index, rows_total

    def _checkpoint_window(self, window: BatchWindow) -> int:
        """Update, commit, and report one window. Returns rows affected."""
        started = perf_counter()
        try:
            with self._store.window_transaction() as txn:
                affected = txn.update_window(window, self._transformer)
        except CheckpointError as e:
            if e.window is None:
                raise CheckpointError(window, str(e)) from e
            raise
        duration = perf_counter() - started

        self._event_bus.emit(
            ProgressRecord(
                window_lower_bound=window.lower,
                rows_affected=affected,
                window_upper_bound=window.upper,
                window_index=window.index,
                duration_seconds=duration,
            )
        )
        slog.info(
            "window_checkpointed",
            window_lower_bound=window.lower,
            window_upper_bound=window.upper,
            rows_affected=affected,
        )
        return affected

    def _complete(
        self,
        id_range: IdentifierRange | None,
        windows_processed: int,
        rows_affected: int,
        duration_seconds: float,
    ) -> ScrubResult:
        self._state = ControllerState.DONE
        self._event_bus.emit(
            ScrubCompleted(
                status=ScrubStatus.COMPLETED,
                windows_processed=windows_processed,
                rows_affected=rows_affected,
                duration_seconds=duration_seconds,
            )
        )
        slog.info(
            "scrub_completed",
            windows_processed=windows_processed,
            rows_affected=rows_affected,
            duration_seconds=round(duration_seconds, 3),
        )
        return ScrubResult(
            status=ScrubStatus.COMPLETED,
            id_range=id_range,
            windows_processed=windows_processed,
            rows_affected=rows_affected,
            duration_seconds=duration_seconds,
            final_state=self._state,
        )

    def _report_failure(
        self,
        error: ScrubError,
        *,
        window: BatchWindow | None,
        windows_committed: int,
        rows_affected: int,
    ) -> None:
        slog.error(
            "scrub_failed",
            window_lower_bound=window.lower if window else None,
            windows_committed=windows_committed,
            rows_affected=rows_affected,
            error=str(error),
            error_type=type(error).__name__,
        )
        self._event_bus.emit(
            ScrubFailed(
                status=ScrubStatus.FAILED,
                window_lower_bound=window.lower if window else None,
                windows_committed=windows_committed,
                rows_affected=rows_affected,
                error_type=type(error).__name__,
                error_message=str(error),
            )
        )
