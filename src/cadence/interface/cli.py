"""cadence CLI — due-card counts and interactive terminal review sessions."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from cadence.application.config import AppConfig, resolve_config
from cadence.application.factory import get_card_store, get_random_source
from cadence.application.presentation import format_interval, format_study_time
from cadence.application.review_service import ReviewService
from cadence.application.review_session import ReviewMode, ReviewSession, SessionState
from cadence.domain.models import ReviewResponse
from cadence.infrastructure.tracking import LoggingReviewTracker

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition reviews in the terminal.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}
LOG_FILE = "cadence.log"

RESPONSE_KEYS = {
    "h": ReviewResponse.HARD,
    "m": ReviewResponse.MEDIUM,
    "e": ReviewResponse.EASY,
}


def _resolve_with_overrides(ctx: typer.Context, **overrides: Any) -> AppConfig:
    # -v only overrides the configured verbosity when given
    verbose = (ctx.obj or {}).get("verbose")
    if verbose:
        overrides["verbose"] = verbose
    config = resolve_config(overrides)
    logging.getLogger().setLevel(LOG_LEVELS.get(config.verbose, logging.DEBUG))
    return config


def _attach_file_log(config: AppConfig) -> logging.Handler:
    """Mirror log records into config.log_dir/cadence.log for the current command."""
    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(config.log_dir / LOG_FILE, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))
    logging.getLogger().addHandler(handler)
    return handler


def _store_unavailable(e: Exception) -> NoReturn:
    typer.secho(f"Could not read cards: {e}", fg="red")
    raise typer.Exit(1)


def _build_service(config: AppConfig) -> ReviewService:
    try:
        store = get_card_store(config)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red")
        raise typer.Exit(1)
    return ReviewService(
        store,
        rng=get_random_source(config),
        tracker=LoggingReviewTracker(),
        hard_retry_delay=config.hard_retry_delay,
        advance_delay=config.advance_delay,
    )


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    deck: Annotated[str | None, typer.Option(help="Only count cards in this deck.")] = None,
    user: Annotated[str | None, typer.Option(help="Card owner. Defaults to config.")] = None,
    store: Annotated[
        Path | None, typer.Option(help="YAML card file. Defaults to config.")
    ] = None,
    list_cards: Annotated[
        bool, typer.Option("--list", help="Print the due cards as well.")
    ] = False,
):
    """Show how many cards are due now."""
    config = _resolve_with_overrides(ctx, user_id=user, store_path=store)
    service = _build_service(config)

    async def run():
        try:
            try:
                cards = await service.get_due_cards(config.user_id, deck)
            except (OSError, ValueError) as e:
                _store_unavailable(e)
        finally:
            await service.aclose()

        typer.echo(f"{len(cards)} card(s) due")
        if list_cards:
            for card in cards:
                streak = card.stats.repetitions
                typer.echo(f"  [{card.deck_name or card.deck_id}] {card.front}  (streak {streak})")

    asyncio.run(run())


@app.command()
def review(
    ctx: typer.Context,
    deck: Annotated[
        str | None, typer.Option(help="Review this whole deck instead of all due cards.")
    ] = None,
    card: Annotated[
        str | None, typer.Option(help="With --deck: present this card first.")
    ] = None,
    user: Annotated[str | None, typer.Option(help="Card owner. Defaults to config.")] = None,
    store: Annotated[
        Path | None, typer.Option(help="YAML card file. Defaults to config.")
    ] = None,
):
    """[bold green]Review[/bold green] cards interactively."""
    if card and not deck:
        typer.secho("--card requires --deck.", fg="red")
        raise typer.Exit(2)

    config = _resolve_with_overrides(ctx, user_id=user, store_path=store)
    service = _build_service(config)

    async def run() -> ReviewSession | None:
        try:
            try:
                if deck:
                    session = await service.start_deck_review(config.user_id, deck, card)
                else:
                    session = await service.start_global_review(config.user_id)
            except (OSError, ValueError) as e:
                _store_unavailable(e)
            if session is None:
                return None
            await _drive(session)
            return session
        finally:
            await service.aclose()

    handler = _attach_file_log(config)
    try:
        session = asyncio.run(run())
    finally:
        logging.getLogger().removeHandler(handler)
        handler.close()

    if session is None:
        typer.secho("Nothing to review. Come back later!", fg="yellow")
        return

    typer.secho(
        f"Session over: {session.total_reviewed} card(s) reviewed "
        f"in {format_study_time(session.elapsed_seconds)}.",
        fg="green",
    )
    if session.save_failed:
        typer.secho(
            f"WARNING: {session.failed_saves} review(s) could not be saved.",
            fg="yellow",
        )


async def _drive(session: ReviewSession) -> None:
    """Prompt loop: one user action per iteration."""
    while True:
        if session.state is SessionState.SESSION_END:
            typer.echo(f"\nAll done! {session.total_reviewed} card(s) reviewed.")
            if session.mode is ReviewMode.DECK and typer.confirm(
                "Go through the deck again?", default=False
            ):
                session.continue_session()
                continue
            session.end_session()
            return

        snap = session.snapshot()
        if snap.card is None:
            session.end_session()
            return

        typer.echo(f"\n[{snap.position}/{snap.total}] {snap.card.front}")
        answer = typer.prompt("Enter to reveal, q to quit", default="", show_default=False)
        if answer.strip().lower() == "q":
            session.end_session()
            return
        session.reveal_answer()

        d = session.snapshot().display
        typer.echo(f"  -> {snap.card.back}")
        if d is not None:
            typer.echo(
                f"     streak {d.win_streak} | ease {d.ease_percent:+d}% | "
                f"{d.mastery.value} | lapses {d.lapses}"
            )

        choice = ""
        while choice not in RESPONSE_KEYS and choice != "q":
            choice = typer.prompt("(h)ard / (m)edium / (e)asy, q to quit").strip().lower()
        if choice == "q":
            session.end_session()
            return

        outcome = await session.respond(RESPONSE_KEYS[choice])
        if outcome is not None:
            color = "green" if outcome.success else "yellow"
            typer.secho(f"     {outcome.message}", fg=color)
            if outcome.success and not outcome.immediate_review:
                when = format_interval(outcome.stats.interval)
                logger.debug(f"Card {outcome.card_id} due in {when}")


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Print the resolved configuration as JSON."""
    config = _resolve_with_overrides(ctx)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


def main():
    app()


if __name__ == "__main__":
    main()
