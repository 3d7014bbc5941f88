"""cadence CLI: inspect, create, review and migrate scheduling states."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

import typer

from cadence.application.config import AppConfig, resolve_config
from cadence.application.factory import build_review_service
from cadence.application.review_service import ReviewService
from cadence.application.scheduling.utils import days_until_review, is_due
from cadence.domain.errors import InvalidReviewResponseError, SchedulingError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition scheduling engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup(recovery_threshold: int | None = None) -> tuple[AppConfig, ReviewService]:
    config = resolve_config({"recovery_threshold": recovery_threshold})
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )
    return config, build_review_service(config)


def _parse_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        typer.secho(f"Invalid timestamp: {value}", fg="red", err=True)
        raise typer.Exit(2)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _read_record(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        typer.secho(f"Could not read {path}: {e}", fg="red", err=True)
        raise typer.Exit(1)


def _fail(error: Exception, code: int = 1) -> typer.Exit:
    typer.secho(f"Error: {error}", fg="red", err=True)
    return typer.Exit(code)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def algorithms():
    """List the registered scheduling algorithms."""
    config, service = _setup()
    for tag in sorted(service.registry.supported_tags()):
        marker = " (default)" if tag == config.default_algorithm else ""
        typer.echo(f"{tag}{marker}")


@app.command()
def init(
    algorithm: Annotated[
        str | None, typer.Option("--algorithm", "-a", help="Algorithm tag. Defaults to config.")
    ] = None,
    now: Annotated[str | None, typer.Option(help="Creation time (ISO-8601).")] = None,
):
    """Print the scheduling state of a brand-new card as JSON."""
    _, service = _setup()
    try:
        state = service.create_state(algorithm, now=_parse_time(now))
    except SchedulingError as e:
        raise _fail(e)
    typer.echo(json.dumps(service.dump(state), indent=2))


@app.command()
def review(
    state_file: Annotated[Path, typer.Argument(help="JSON file holding a scheduling record.")],
    response: Annotated[str, typer.Argument(help="Review response: failed, good or easy.")],
    at: Annotated[str | None, typer.Option("--at", help="Review time (ISO-8601).")] = None,
    write: Annotated[
        bool, typer.Option("--write", "-w", help="Write the new state back to STATE_FILE.")
    ] = False,
    recovery_threshold: Annotated[
        int | None, typer.Option(min=1, help="Override the recovery threshold.")
    ] = None,
):
    """[bold green]Review[/bold green] a card and print its new schedule."""
    _, service = _setup(recovery_threshold)
    record = _read_record(state_file)

    try:
        state = service.load(record)
        result = service.review(state, response, reviewed_at=_parse_time(at))
    except InvalidReviewResponseError as e:
        raise _fail(e, code=2)
    except SchedulingError as e:
        raise _fail(e)

    new_record = service.dump(result.state)
    if write:
        state_file.write_text(json.dumps(new_record, indent=2), encoding="utf-8")
    typer.echo(
        json.dumps({"wasSuccessful": result.was_successful, "state": new_record}, indent=2)
    )


@app.command()
def migrate(
    state_file: Annotated[Path, typer.Argument(help="JSON file holding a scheduling record.")],
    target: Annotated[str, typer.Argument(help="Target algorithm tag.")],
    fallback: Annotated[
        bool,
        typer.Option("--fallback", help="Start fresh when the state cannot be migrated."),
    ] = False,
    write: Annotated[
        bool, typer.Option("--write", "-w", help="Write the new state back to STATE_FILE.")
    ] = False,
):
    """Move a card to another scheduling algorithm."""
    _, service = _setup()
    record = _read_record(state_file)

    try:
        state = service.load(record, check_compatible=False)
        migrated = service.change_algorithm(state, target, fallback_to_initialize=fallback)
    except SchedulingError as e:
        raise _fail(e)

    if migrated is None:
        typer.secho(
            f"Migration to '{target}' is not possible. Re-run with --fallback to start fresh.",
            fg="yellow",
            err=True,
        )
        raise typer.Exit(1)

    new_record = service.dump(migrated)
    if write:
        state_file.write_text(json.dumps(new_record, indent=2), encoding="utf-8")
    typer.echo(json.dumps(new_record, indent=2))


@app.command()
def due(
    state_file: Annotated[Path, typer.Argument(help="JSON file holding a scheduling record.")],
    at: Annotated[str | None, typer.Option("--at", help="Reference time (ISO-8601).")] = None,
):
    """Show whether a card is due and how many days remain."""
    _, service = _setup()
    record = _read_record(state_file)
    try:
        state = service.load(record)
    except SchedulingError as e:
        raise _fail(e)

    now = _parse_time(at)
    if is_due(state, now):
        typer.secho("Due now.", fg="green")
    else:
        days = days_until_review(state, now)
        typer.echo(f"Due in {days} day(s): {state.next_review_at.isoformat()}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    typer.echo(json.dumps(config.model_dump(), indent=2))


if __name__ == "__main__":
    app()
