# tests/property/test_window_properties.py
"""Property tests for window planning."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from batchscrub.contracts import AdvancePolicy, IdentifierRange
from batchscrub.engine.windows import WINDOW_ADVANCE_GAP, plan_windows, skipped_identifiers
from tests.property.settings import STANDARD_SETTINGS

ranges = st.tuples(st.integers(-10_000, 10_000), st.integers(0, 5_000)).map(lambda t: IdentifierRange(t[0], t[0] + t[1]))
batch_sizes = st.integers(1, 2_000)
policies = st.sampled_from(list(AdvancePolicy))


@given(id_range=ranges, batch_size=batch_sizes, policy=policies)
@STANDARD_SETTINGS
def test_windows_and_skips_partition_the_range(id_range: IdentifierRange, batch_size: int, policy: AdvancePolicy) -> None:
    """Every identifier in range is either in exactly one window or skipped."""
    windows = list(plan_windows(id_range, batch_size, policy))
    skipped = set(skipped_identifiers(id_range, batch_size, policy))

    for identifier in range(id_range.min_id, id_range.max_id + 1):
        covering = sum(1 for w in windows if w.contains(identifier))
        assert covering + (identifier in skipped) == 1


@given(id_range=ranges, batch_size=batch_sizes, policy=policies)
@STANDARD_SETTINGS
def test_lower_bounds_step_by_batch_size_plus_gap(id_range: IdentifierRange, batch_size: int, policy: AdvancePolicy) -> None:
    windows = list(plan_windows(id_range, batch_size, policy))

    assert windows[0].lower == id_range.min_id
    assert windows[-1].lower <= id_range.max_id
    assert all(w.size == batch_size for w in windows)
    step = batch_size + WINDOW_ADVANCE_GAP[policy]
    assert all(b.lower - a.lower == step for a, b in zip(windows, windows[1:], strict=False))
    assert [w.index for w in windows] == list(range(len(windows)))


@given(id_range=ranges, batch_size=batch_sizes)
@STANDARD_SETTINGS
def test_contiguous_never_skips(id_range: IdentifierRange, batch_size: int) -> None:
    assert skipped_identifiers(id_range, batch_size, AdvancePolicy.CONTIGUOUS) == []
