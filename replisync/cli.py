from __future__ import annotations

import locale

import typer
from rich.console import Console
from rich.markup import escape

from replisync.config import USAGE, SyncConfig, build_config, prepare_replica
from replisync.eventlog import close_event_logger, setup_event_logger
from replisync.sync_service import SyncDriver


app = typer.Typer(help="One-way directory replication on a fixed interval.", add_completion=False)
console = Console()


def _use_environment_locale() -> None:
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error:
        # Unknown locale in the environment: timestamps stay in the C locale.
        pass


def _print_banner(config: SyncConfig) -> None:
    console.print(f"Sync interval set to {config.interval_seconds} seconds")
    console.print(f"Source directory: {escape(str(config.source_path))}")
    console.print(f"Replica directory: {escape(str(config.replica_path))}")
    console.print(f"Log: {escape(str(config.log_file_path))}")
    if not config.path_filter.is_noop:
        console.print(
            f"Include: {escape(', '.join(config.include_patterns) or '*')} | "
            f"Exclude: {escape(', '.join(config.exclude_patterns) or '-')}"
        )
    console.print("Press Ctrl+C to exit")


def _run_sync(
    source: str,
    replica: str,
    interval: str,
    log_path: str,
    *,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    workers: int,
    once: bool,
) -> int:
    try:
        config = build_config(
            source,
            replica,
            interval,
            log_path,
            include_patterns=include,
            exclude_patterns=exclude,
            workers=workers,
        )
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        return 1

    try:
        if prepare_replica(config):
            console.print(f"[green]Replica directory created at {escape(str(config.replica_path))}[/green]")
    except OSError as exc:
        console.print(f"[red]Cannot create replica directory {escape(str(config.replica_path))}:[/red] {escape(str(exc))}")
        return 1

    _use_environment_locale()
    try:
        logger = setup_event_logger(config.log_file_path)
    except OSError as exc:
        console.print(f"[red]Cannot open log file {escape(str(config.log_file_path))}:[/red] {escape(str(exc))}")
        return 1

    driver = SyncDriver(config, logger)
    try:
        if once:
            driver.run_once()
            return 0
        _print_banner(config)
        driver.run_forever()
    except KeyboardInterrupt:
        console.print("[yellow]Sync interrupted.[/yellow] The replica may be partially updated; it is corrected on the next run.")
        return 130
    finally:
        close_event_logger(logger)
    return 0


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    ctx: typer.Context,
    source_path: str | None = typer.Argument(None, help="Source directory (must exist)."),
    replica_path: str | None = typer.Argument(None, help="Replica directory (created if missing)."),
    interval_seconds: str | None = typer.Argument(None, help="Seconds between sync cycles."),
    log_path: str | None = typer.Argument(None, help="File that sync events are appended to."),
    include: list[str] | None = typer.Option(
        None,
        "--include",
        help="Include glob pattern(s) for paths to sync (repeatable).",
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        help="Exclude glob pattern(s) for paths to leave alone on both sides (repeatable).",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        help="Threads used for hashing and copying within a cycle.",
    ),
    once: bool = typer.Option(
        False,
        "--once",
        help="Run a single sync cycle and exit.",
    ),
) -> None:
    """Keep REPLICA_PATH an exact copy of SOURCE_PATH, re-syncing every INTERVAL_SECONDS."""
    positional = (source_path, replica_path, interval_seconds, log_path)
    if any(value is None for value in positional) or ctx.args:
        console.print(USAGE, markup=False, highlight=False)
        raise typer.Exit(code=1)

    raise typer.Exit(
        code=_run_sync(
            source_path,
            replica_path,
            interval_seconds,
            log_path,
            include=tuple(include or ()),
            exclude=tuple(exclude or ()),
            workers=workers,
            once=once,
        )
    )


def main() -> None:
    app()
