"""Window arithmetic: batch size validation, cursor advance, planning.

The partition formula lives in exactly one place, WINDOW_ADVANCE_GAP.
Under SKIP_BOUNDARY (the default) the cursor moves to
``lo + batch_size + 1``: the window ``[lo, lo + batch_size)`` excludes its
upper bound and the next window starts one past it, so the identifier
``lo + batch_size`` is never visited. CONTIGUOUS moves to
``lo + batch_size`` and covers the range with no gaps.
"""

from collections.abc import Iterator

from batchscrub.contracts.enums import AdvancePolicy
from batchscrub.contracts.windows import BatchWindow, IdentifierRange

# Identifiers left unvisited between consecutive windows, per policy
WINDOW_ADVANCE_GAP: dict[AdvancePolicy, int] = {
    AdvancePolicy.SKIP_BOUNDARY: 1,
    AdvancePolicy.CONTIGUOUS: 0,
}

DEFAULT_ADVANCE_POLICY = AdvancePolicy.SKIP_BOUNDARY


def validate_batch_size(batch_size: int) -> int:
    """Return ``batch_size`` if it is a positive int.

    Raises:
        ValueError: On zero, negatives, bools, and non-integers
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")
    if batch_size <= 0:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size}")
    return batch_size


def make_window(index: int, lo: int, batch_size: int) -> BatchWindow:
    return BatchWindow(index=index, lower=lo, upper=lo + batch_size)


def next_lower_bound(lo: int, batch_size: int, policy: AdvancePolicy) -> int:
    return lo + batch_size + WINDOW_ADVANCE_GAP[policy]


def plan_windows(
    id_range: IdentifierRange | None,
    batch_size: int,
    policy: AdvancePolicy = DEFAULT_ADVANCE_POLICY,
) -> Iterator[BatchWindow]:
    """Yield the windows a snapshot run over ``id_range`` would process.

    Example:
        >>> [w.lower for w in plan_windows(IdentifierRange(1, 2500), 1000)]
        [1, 1002, 2003]
    """
    validate_batch_size(batch_size)
    if id_range is None:
        return
    lo = id_range.min_id
    index = 0
    while lo <= id_range.max_id:
        yield make_window(index, lo, batch_size)
        lo = next_lower_bound(lo, batch_size, policy)
        index += 1


def skipped_identifiers(
    id_range: IdentifierRange | None,
    batch_size: int,
    policy: AdvancePolicy = DEFAULT_ADVANCE_POLICY,
) -> list[int]:
    """Identifiers inside ``id_range`` that no planned window covers."""
    if id_range is None or WINDOW_ADVANCE_GAP[policy] == 0:
        return []
    skipped: list[int] = []
    for window in plan_windows(id_range, batch_size, policy):
        gap_start = window.upper
        gap_end = next_lower_bound(window.lower, batch_size, policy)
        skipped.extend(i for i in range(gap_start, gap_end) if id_range.contains(i))
    return skipped
