# src/batchscrub/cli_formatters.py
"""CLI event formatter factories for scrub output.

Each factory returns a dict mapping event types to handler callables,
suitable for subscribing to an EventBus.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import typer

from batchscrub.contracts.events import ScrubCompleted, ScrubFailed, ScrubStarted
from batchscrub.contracts.windows import ProgressRecord
from batchscrub.core.events import EventBusProtocol


def _format_duration(seconds: float) -> str:
    return f"{seconds:.2f}s" if seconds < 60 else f"{seconds / 60:.1f}m"


def create_console_formatters() -> dict[type, Callable[..., None]]:
    """Create console formatters for human-readable CLI output."""

    def _format_started(event: ScrubStarted) -> None:
        if event.id_range is None:
            typer.echo(f"[SCAN] Table is empty - nothing to scrub with {event.transformer}")
            return
        typer.echo(
            f"[SCAN] ids {event.id_range.min_id:,}..{event.id_range.max_id:,} | "
            f"batch {event.batch_size:,} | {event.advance_policy.value} | {event.range_mode.value} | "
            f"transformer {event.transformer}"
        )

    def _format_progress(event: ProgressRecord) -> None:
        typer.echo(f"  current_id: {event.window_lower_bound:,} - rows updated: {event.rows_affected:,}")

    def _format_completed(event: ScrubCompleted) -> None:
        typer.echo(
            f"\n✓ Scrub {event.status.value.upper()}: "
            f"{event.windows_processed:,} windows | "
            f"{event.rows_affected:,} rows | "
            f"{_format_duration(event.duration_seconds)} total"
        )

    def _format_failed(event: ScrubFailed) -> None:
        where = f" at window {event.window_lower_bound:,}" if event.window_lower_bound is not None else ""
        typer.echo(
            f"\n✗ Scrub FAILED{where}: {event.error_type}: {event.error_message}\n"
            f"  {event.windows_committed:,} windows ({event.rows_affected:,} rows) remain committed. "
            "Re-run to continue from the current minimum identifier.",
            err=True,
        )

    return {
        ScrubStarted: _format_started,
        ProgressRecord: _format_progress,
        ScrubCompleted: _format_completed,
        ScrubFailed: _format_failed,
    }


def create_json_formatters() -> dict[type, Callable[..., None]]:
    """Create JSON formatters for structured CLI output (one object per line)."""

    def _format_started_json(event: ScrubStarted) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "scrub_started",
                    "transformer": event.transformer,
                    "min_id": event.id_range.min_id if event.id_range else None,
                    "max_id": event.id_range.max_id if event.id_range else None,
                    "batch_size": event.batch_size,
                    "advance_policy": event.advance_policy.value,
                    "range_mode": event.range_mode.value,
                }
            )
        )

    def _format_progress_json(event: ProgressRecord) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "window_checkpointed",
                    "window_lower_bound": event.window_lower_bound,
                    "window_upper_bound": event.window_upper_bound,
                    "rows_affected": event.rows_affected,
                    "duration_seconds": event.duration_seconds,
                }
            )
        )

    def _format_completed_json(event: ScrubCompleted) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "scrub_completed",
                    "status": event.status.value,
                    "windows_processed": event.windows_processed,
                    "rows_affected": event.rows_affected,
                    "duration_seconds": event.duration_seconds,
                }
            )
        )

    def _format_failed_json(event: ScrubFailed) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "scrub_failed",
                    "status": event.status.value,
                    "window_lower_bound": event.window_lower_bound,
                    "windows_committed": event.windows_committed,
                    "rows_affected": event.rows_affected,
                    "error_type": event.error_type,
                    "error": event.error_message,
                }
            ),
            err=True,
        )

    return {
        ScrubStarted: _format_started_json,
        ProgressRecord: _format_progress_json,
        ScrubCompleted: _format_completed_json,
        ScrubFailed: _format_failed_json,
    }


def subscribe_formatters(
    event_bus: EventBusProtocol,
    formatters: dict[type, Callable[..., None]],
) -> None:
    """Subscribe all formatters to the event bus."""
    for event_type, handler in formatters.items():
        event_bus.subscribe(event_type, handler)
