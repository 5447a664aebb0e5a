# src/batchscrub/cli.py
"""batchscrub Command Line Interface.

Entry point for the batchscrub CLI tool. The scrub itself takes no
arguments beyond its settings file: everything about the run (target,
transformer, batch size, advance policy, range mode) is configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

import typer
import yaml
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from batchscrub import __version__
from batchscrub.contracts.errors import ScrubError
from batchscrub.core.config import ScrubSettings, load_settings, resolve_config

if TYPE_CHECKING:
    from batchscrub.core.events import EventBusProtocol
    from batchscrub.core.store import SqlRowStore, StoreDB
    from batchscrub.engine.controller import BatchWindowController
    from batchscrub.transformers import BaseTransformer, TransformerManager

__all__ = [
    "app",
    "load_settings",  # Re-exported from config for convenience
]

# Module-level singleton for the transformer registry
_transformer_manager_cache: TransformerManager | None = None

# How many planned windows a dry run prints at each end
_PLAN_PREVIEW = 3


def _get_transformer_manager() -> TransformerManager:
    """Get initialized transformer manager (singleton)."""
    global _transformer_manager_cache

    from batchscrub.transformers import TransformerManager

    if _transformer_manager_cache is None:
        manager = TransformerManager()
        manager.register_builtin_transformers()
        manager.load_entrypoint_transformers()
        _transformer_manager_cache = manager
    return _transformer_manager_cache


app = typer.Typer(
    name="batchscrub",
    help="batchscrub: checkpointed, windowed anonymization of large tables.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"batchscrub version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """batchscrub: checkpointed, windowed anonymization of large tables."""
    from batchscrub.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")
    # Logging flags given here win over the settings file's logging section
    ctx.obj = {"logging_from_cli": verbose or json_logs}

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _load_settings_or_exit(settings: str) -> ScrubSettings:
    """Load and validate settings, turning every failure into exit code 1."""
    try:
        return load_settings(Path(settings).expanduser())
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _apply_logging_settings(ctx: typer.Context, config: ScrubSettings) -> None:
    if ctx.obj and ctx.obj.get("logging_from_cli"):
        return
    from batchscrub.core.logging import configure_logging

    configure_logging(json_output=config.logging.json_output, level=config.logging.level)


def _create_transformer_or_exit(config: ScrubSettings) -> BaseTransformer:
    try:
        return _get_transformer_manager().create(config.transformer.plugin, config.transformer.options)
    except ValueError as e:
        typer.echo(f"Error creating transformer: {e}", err=True)
        raise typer.Exit(1) from None


def _open_store_or_exit(config: ScrubSettings) -> tuple[StoreDB, SqlRowStore]:
    from sqlalchemy.exc import SQLAlchemyError

    from batchscrub.core.store import SqlRowStore, StoreDB

    db = StoreDB.from_url(config.database.url, echo=config.database.echo)
    try:
        store = SqlRowStore(
            db,
            table=config.target.table,
            column=config.target.column,
            id_column=config.target.id_column,
            schema=config.target.db_schema,
        )
    except (ScrubError, SQLAlchemyError) as e:
        db.close()
        typer.echo(f"Error opening target: {e}", err=True)
        raise typer.Exit(1) from None
    return db, store


def build_controller(
    config: ScrubSettings,
    store: SqlRowStore,
    transformer: BaseTransformer,
    event_bus: EventBusProtocol,
) -> BatchWindowController:
    """Wire a controller from validated settings."""
    from batchscrub.engine.controller import BatchWindowController

    return BatchWindowController(
        store,
        transformer,
        batch_size=config.batch.size,
        advance_policy=config.batch.advance_policy,
        range_mode=config.batch.range_mode,
        require_idempotent=config.batch.require_idempotent_transformer,
        event_bus=event_bus,
    )


@app.command()
def run(
    ctx: typer.Context,
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show the windows that would be processed without writing anything.",
    ),
    execute: bool = typer.Option(
        False,
        "--execute",
        "-x",
        help="Actually scrub the table (required: the change is irreversible).",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Scrub the configured column across the whole table.

    Requires --execute flag to actually run (safety feature).
    Use --dry-run to preview the window plan.
    """
    from batchscrub.cli_formatters import (
        create_console_formatters,
        create_json_formatters,
        subscribe_formatters,
    )
    from batchscrub.core.events import EventBus
    from batchscrub.core.logging import bound_run_context

    config = _load_settings_or_exit(settings)
    _apply_logging_settings(ctx, config)
    transformer = _create_transformer_or_exit(config)

    if dry_run:
        _show_plan(config, output_format)
        return

    if not execute:
        if output_format == "console":
            typer.echo("Scrub configuration valid.")
            typer.echo(f"  Target: {config.target.table}.{config.target.column}")
            typer.echo(f"  Transformer: {transformer.name}")
            typer.echo("")
            typer.echo("To execute, add --execute (or -x) flag:", err=True)
            typer.echo(f"  batchscrub run -s {settings} --execute", err=True)
        raise typer.Exit(1)

    event_bus = EventBus()
    formatters = create_console_formatters() if output_format == "console" else create_json_formatters()
    subscribe_formatters(event_bus, formatters)

    db, store = _open_store_or_exit(config)
    try:
        try:
            controller = build_controller(config, store, transformer, event_bus)
        except (ScrubError, ValueError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

        try:
            with bound_run_context(target=f"{config.target.table}.{config.target.column}"):
                controller.run()
        except ScrubError:
            # ScrubFailed has already been reported by the formatters
            raise typer.Exit(1) from None
    finally:
        db.close()


def _show_plan(config: ScrubSettings, output_format: str) -> None:
    """Print the window plan for the current data without writing."""
    import json

    from batchscrub.engine.windows import plan_windows, skipped_identifiers

    db, store = _open_store_or_exit(config)
    try:
        try:
            id_range = store.identifier_range()
        except ScrubError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
    finally:
        db.close()

    windows = list(plan_windows(id_range, config.batch.size, config.batch.advance_policy))
    skipped = skipped_identifiers(id_range, config.batch.size, config.batch.advance_policy)

    if output_format == "json":
        typer.echo(
            json.dumps(
                {
                    "event": "plan",
                    "min_id": id_range.min_id if id_range else None,
                    "max_id": id_range.max_id if id_range else None,
                    "batch_size": config.batch.size,
                    "advance_policy": config.batch.advance_policy.value,
                    "windows": [[w.lower, w.upper] for w in windows],
                    "skipped_identifiers": skipped,
                }
            )
        )
        return

    if id_range is None:
        typer.echo("Dry run: table is empty, no windows would be processed.")
        return

    typer.echo(f"Dry run - would scrub {config.target.table}.{config.target.column}:")
    typer.echo(f"  Range: {id_range.min_id:,}..{id_range.max_id:,} ({config.batch.range_mode.value})")
    typer.echo(f"  Windows: {len(windows):,} of {config.batch.size:,} ids ({config.batch.advance_policy.value})")
    shown = windows if len(windows) <= 2 * _PLAN_PREVIEW else windows[:_PLAN_PREVIEW] + windows[-_PLAN_PREVIEW:]
    for i, window in enumerate(shown):
        if len(shown) < len(windows) and i == _PLAN_PREVIEW:
            typer.echo("    ...")
        typer.echo(f"    [{window.lower:,}, {window.upper:,})")
    if skipped:
        typer.echo(f"  Never visited (window boundaries): {len(skipped):,} identifiers, e.g. {skipped[0]:,}")


@app.command()
def validate(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate settings and print the resolved configuration (secrets hidden)."""
    config = _load_settings_or_exit(settings)
    transformer = _create_transformer_or_exit(config)

    if not transformer.idempotent and config.batch.require_idempotent_transformer:
        typer.echo(
            f"Error: transformer '{transformer.name}' is not idempotent but "
            "batch.require_idempotent_transformer is true",
            err=True,
        )
        raise typer.Exit(1)

    typer.echo(yaml.safe_dump(resolve_config(config), sort_keys=False).rstrip())
    typer.echo("\nConfiguration valid.")


@app.command()
def transformers() -> None:
    """List registered value transformers."""
    for spec in _get_transformer_manager().get_specs():
        flag = "idempotent" if spec.idempotent else "not idempotent"
        typer.echo(f"  {spec.name:<14} v{spec.version}  [{flag}]  {spec.description}")


@app.command()
def columns(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """List columns of the target table annotated sensitive_data=true."""
    from sqlalchemy.exc import SQLAlchemyError

    from batchscrub.core.annotations import SENSITIVE_COMMENT, find_sensitive_columns
    from batchscrub.core.store import StoreDB

    config = _load_settings_or_exit(settings)
    with StoreDB.from_url(config.database.url) as db:
        try:
            names = find_sensitive_columns(db.engine, config.target.table, schema=config.target.db_schema)
        except (ScrubError, SQLAlchemyError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

    if not names:
        typer.echo(f"No columns on {config.target.table} carry '{SENSITIVE_COMMENT}'.")
        return
    for name in names:
        marker = "  <- target" if name == config.target.column else ""
        typer.echo(f"  {name}{marker}")


@app.command()
def annotate(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    column: list[str] = typer.Option(
        ...,
        "--column",
        "-c",
        help="Column to mark sensitive (repeatable).",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt.",
    ),
) -> None:
    """Mark columns of the target table as sensitive via column comments."""
    from sqlalchemy.exc import SQLAlchemyError

    from batchscrub.core.annotations import annotate_sensitive_columns
    from batchscrub.core.store import StoreDB

    config = _load_settings_or_exit(settings)
    if not yes:
        typer.confirm(
            f"Set comment 'sensitive_data=true' on {config.target.table}: {', '.join(column)}?",
            abort=True,
        )

    with StoreDB.from_url(config.database.url) as db:
        try:
            count = annotate_sensitive_columns(db.engine, config.target.table, column, schema=config.target.db_schema)
        except (ScrubError, SQLAlchemyError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
    typer.echo(f"Annotated {count} column(s).")
