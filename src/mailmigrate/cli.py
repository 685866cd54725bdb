"""mailmigrate command-line interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from . import __version__
from .config import Config, ConfigError, load_config, resolve_config_path
from .executor import ExecutionResult, LoggingExecutor, ScriptExecutor, execute_actions
from .folders import CachingFolderResolver, StaticFolderResolver
from .index import build_index
from .loaders import LoaderError, read_addresses, read_permissions
from .logging import configure_logging
from .mapping import MappingEngine, MappingSummary, filter_batch_records
from .report import format_action_line, format_score_line, write_actions_csv, write_scores_csv
from .scoring import BatchScorer, ScoreSummary, ScoringConfig

app = typer.Typer(help="Shared mailbox batch scoring and permission mapping for mail migrations.")
LOGGER = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None
    dry_run: bool = False
    verbose: bool = False


@app.callback()
def _mailmigrate(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help="Path to config (env MAILMIGRATE_CONFIG or ~/.config/mailmigrate/config.yaml).",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Log grant commands instead of writing a command script.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Log debug output to the console."),
    ] = False,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved, dry_run=dry_run, verbose=verbose)


@app.command()
def score(
    ctx: typer.Context,
    batch: Annotated[Path, typer.Argument(help="Batch user list, one address per line.")],
    candidates: Annotated[
        Path, typer.Argument(help="Candidate shared mailboxes, one address per line.")
    ],
    permissions: Annotated[Path, typer.Argument(help="Permission export (6 fields per line).")],
    exclude: Annotated[
        Path | None,
        typer.Option("-x", "--exclude", help="Shared mailboxes that must never be eligible."),
    ] = None,
    threshold: Annotated[
        int | None,
        typer.Option(
            "-t",
            "--threshold",
            min=0,
            max=100,
            help="Minimum in-batch percentage (defaults to config, 75).",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Write the scored mailboxes to this CSV file."),
    ] = None,
) -> None:
    """Score candidate shared mailboxes for inclusion in a migration batch."""

    state = _state(ctx)
    config = _load_environment(state)
    scoring = config.scoring
    if threshold is not None:
        scoring = ScoringConfig(threshold=threshold, weights=scoring.weights)

    try:
        batch_users = read_addresses(batch)
        candidate_list = read_addresses(candidates)
        excluded = read_addresses(exclude) if exclude else []
        records = read_permissions(permissions, config.delimiter)
    except LoaderError as exc:
        _input_failure(exc)

    LOGGER.info(
        "Scoring %s candidate(s) against %s batch user(s) over %s permission(s).",
        len(candidate_list),
        len(batch_users),
        len(records),
    )
    index = build_index(records)
    scorer = BatchScorer(scoring)
    results = list(scorer.score(index, batch_users, candidate_list, excluded))

    summary = ScoreSummary()
    for scored in results:
        summary.record(scored)
        typer.echo(format_score_line(scored))
    typer.echo("")
    typer.echo(
        f"Candidates: {summary.candidates}, eligible: {summary.eligible}, "
        f"excluded: {summary.excluded} (threshold {scoring.threshold}%)"
    )
    if output:
        written = write_scores_csv(output, results)
        typer.echo(f"Report: {written}")


@app.command("map")
def map_permissions(
    ctx: typer.Context,
    batch: Annotated[Path, typer.Argument(help="Batch user list, one address per line.")],
    permissions: Annotated[Path, typer.Argument(help="Permission export (6 fields per line).")],
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Write the grant actions to this CSV file."),
    ] = None,
    script: Annotated[
        Path | None,
        typer.Option("-s", "--script", help="Write grant commands to this script file."),
    ] = None,
) -> None:
    """Translate batch-relevant permissions into target-system grants."""

    state = _state(ctx)
    config = _load_environment(state)
    try:
        batch_users = read_addresses(batch)
        records = read_permissions(permissions, config.delimiter)
    except LoaderError as exc:
        _input_failure(exc)

    relevant = filter_batch_records(records, batch_users)
    LOGGER.info("Mapping %s of %s permission(s) for the batch.", len(relevant), len(records))
    engine = _build_engine(config)
    actions = list(engine.map_records(relevant))

    summary = MappingSummary()
    for action in actions:
        summary.record(action)
        typer.echo(format_action_line(action))
    typer.echo("")
    counts = sorted(summary.counts.items(), key=lambda item: item[0].value)
    per_kind = ", ".join(f"{kind.value}={count}" for kind, count in counts)
    typer.echo(
        f"Actions: {summary.total} (supported {summary.supported}, "
        f"unsupported {summary.unsupported}) {per_kind}".rstrip()
    )

    if output:
        written = write_actions_csv(output, actions)
        typer.echo(f"Report: {written}")

    result: ExecutionResult | None = None
    if state.dry_run:
        if script:
            LOGGER.warning("Dry run: not writing script %s", script)
        result = execute_actions(actions, LoggingExecutor())
    elif script:
        with ScriptExecutor(script) as executor:
            result = execute_actions(actions, executor)
        typer.echo(f"Script: {executor.path}")
    if result is not None:
        typer.echo(
            f"Executed: {result.executed}, skipped: {result.skipped}, failed: {result.failed}"
        )


@app.command()
def version() -> None:
    """Print the installed version."""

    typer.echo(__version__)


def _build_engine(config: Config) -> MappingEngine:
    resolver = CachingFolderResolver(
        StaticFolderResolver(config.folders.defaults, config.folders.mailboxes)
    )
    return MappingEngine(resolver, calendar=config.calendar)


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise RuntimeError("CLI state missing from context.")
    return state


def _load_environment(state: CLIState) -> Config:
    try:
        config = load_config(state.config_path)
        configure_logging(config.logging, config.root_dir, verbose=state.verbose)
    except ConfigError as exc:
        _config_failure(exc)
    LOGGER.debug("Using configuration from %s", resolve_config_path(state.config_path))
    return config


def _config_failure(exc: ConfigError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(2) from exc


def _input_failure(exc: LoaderError) -> NoReturn:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    raise typer.Exit(1) from exc


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "main"]
