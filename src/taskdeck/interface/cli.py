"""taskdeck CLI: queue inspection, review actions, an interactive study loop and the server."""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer

from taskdeck.domain.errors import InvalidActionError, TaskdeckError
from taskdeck.domain.models import Card, ReviewAction
from taskdeck.interface._common import _resolve_with_overrides, exit_on_error

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="taskdeck: task review queue for an Anki collection.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage taskdeck configuration.")
app.add_typer(config_app, name="config")

ACTION_SHORTCUTS = {
    "r": ReviewAction.REPEAT.value,
    "s": ReviewAction.SOON.value,
    "l": ReviewAction.LATER.value,
    "c": ReviewAction.COMPLETE.value,
}


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
    collection: Annotated[
        Path | None, typer.Option("--collection", "-c", help="Path to the collection file.")
    ] = None,
    blocking_deck: Annotated[
        int | None, typer.Option("--blocking-deck", help="Deck id that blocks all others.")
    ] = None,
):
    """Global settings for taskdeck."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "verbose": verbose or None,
        "collection_path": collection,
        "blocking_deck_id": blocking_deck,
    }


def _config(ctx: typer.Context):
    overrides = (ctx.obj or {}).get("overrides", {})
    return _resolve_with_overrides(**overrides)


def _card_line(card: Card) -> str:
    front = card.front.replace("\n", " ")
    if len(front) > 60:
        front = front[:57] + "..."
    return f"{card.id}  [{card.deck_name}]  {front}"


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command("queue")
def queue(
    ctx: typer.Context,
    include_all: Annotated[
        bool, typer.Option("--all", help="Show every due card even while urgent cards remain.")
    ] = False,
    deck: Annotated[
        int | None, typer.Option("--deck", help="Only this deck; ignores the blocking deck.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the current review queue."""
    from taskdeck.application.factory import get_review_service

    config = _config(ctx)
    service = get_review_service(config)

    try:
        if deck is not None:
            cards = service.get_deck_queue(deck)
            urgent_count, is_blocking = service.urgent_count(), False
        else:
            result = service.get_queue(include_all=include_all)
            cards, urgent_count, is_blocking = result.cards, result.urgent_count, result.is_blocking
    except TaskdeckError as e:
        exit_on_error(e)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "cards": [asdict(c) for c in cards],
                    "urgent_count": urgent_count,
                    "is_blocking": is_blocking,
                    "urgent_deck_id": config.blocking_deck_id,
                },
                indent=2,
            )
        )
        return

    if is_blocking:
        typer.secho(f"Blocking: {urgent_count} urgent remaining", fg="red")
    typer.echo(f"Due cards: {len(cards)}")
    for card in cards:
        typer.echo(f"  {_card_line(card)}")


@app.command("decks")
def decks(
    ctx: typer.Context,
    due: Annotated[bool, typer.Option("--due", help="Only decks with due cards, with counts.")] = False,
):
    """List decks."""
    from taskdeck.application.factory import get_collection_service, get_review_service

    config = _config(ctx)
    try:
        if due:
            for d in get_review_service(config).deck_due_counts():
                marker = " (blocking)" if d.is_blocking else ""
                typer.echo(f"{d.id}  {d.name}{marker}: {d.due_count}")
        else:
            for d in get_collection_service(config).list_decks():
                typer.echo(f"{d.id}  {d.name}")
    except TaskdeckError as e:
        exit_on_error(e)


@app.command("review")
def review(
    ctx: typer.Context,
    card_id: Annotated[int, typer.Argument(help="Card id.")],
    action: Annotated[str, typer.Argument(help="One of: repeat, soon, later, complete.")],
):
    """Record a review action for one card."""
    from taskdeck.application.factory import get_review_service

    config = _config(ctx)
    try:
        result = get_review_service(config).record_action(card_id, action)
    except TaskdeckError as e:
        exit_on_error(e)

    typer.secho(f"Card {card_id}: {action}", fg="green")
    typer.echo(f"Remaining: {result.remaining_cards}  Urgent: {result.urgent_count}")


@app.command("study")
def study(
    ctx: typer.Context,
    include_all: Annotated[
        bool, typer.Option("--all", help="Do not hold other decks back behind urgent cards.")
    ] = False,
    deck: Annotated[int | None, typer.Option("--deck", help="Study a single deck.")] = None,
):
    """Interactive review loop: show a card, pick an action, repeat."""
    from taskdeck.application.factory import get_review_service

    config = _config(ctx)
    service = get_review_service(config)

    def fetch() -> tuple[list[Card], bool]:
        if deck is not None:
            return service.get_deck_queue(deck), False
        result = service.get_queue(include_all=include_all)
        return result.cards, result.is_blocking and not include_all

    try:
        cards, blocking = fetch()
        reviewed = 0
        while cards:
            card = cards.pop(0)
            typer.echo("")
            typer.secho(f"[{card.deck_name}]", fg="cyan")
            typer.echo(card.front)
            typer.prompt("Show answer", default="", show_default=False)
            if card.back:
                typer.echo(card.back)

            while True:
                choice = typer.prompt("[r]epeat [s]oon [l]ater [c]omplete [q]uit", default="s")
                choice = ACTION_SHORTCUTS.get(choice.strip(), choice.strip())
                if choice == "q":
                    typer.echo(f"Reviewed {reviewed} cards.")
                    return
                try:
                    updated = service.apply(card.id, choice)
                    break
                except InvalidActionError as e:
                    typer.secho(str(e), fg="yellow")

            reviewed += 1
            if choice == ReviewAction.REPEAT.value:
                cards.append(updated)
            elif blocking and service.urgent_count() == 0:
                # Urgent deck cleared: everything else becomes visible.
                typer.secho("Urgent cards done.", fg="green")
                cards, blocking = fetch()
            if not cards:
                cards, blocking = fetch()

        typer.secho(f"Queue empty. Reviewed {reviewed} cards.", fg="green")
    except TaskdeckError as e:
        exit_on_error(e)


# ---------------------------------------------------------------------------
# Collection / server
# ---------------------------------------------------------------------------


@app.command()
def init(
    path: Annotated[Path, typer.Argument(help="Where to create the collection file.")],
    crt: Annotated[
        int | None, typer.Option(help="Collection creation time (Unix seconds).")
    ] = None,
):
    """Create an empty Anki collection."""
    from taskdeck.infrastructure.anki.repository import create_collection

    if path.exists():
        typer.secho(f"{path} already exists.", fg="red")
        raise typer.Exit(1)
    try:
        create_collection(path, crt=crt)
    except TaskdeckError as e:
        exit_on_error(e)
    typer.secho(f"Created {path}", fg="green")


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import os

    import uvicorn

    overrides = dict((ctx.obj or {}).get("overrides", {}))
    config = _resolve_with_overrides(**overrides, host=host, port=port)

    # The server resolves its own config; pass CLI overrides through the environment.
    if overrides.get("collection_path") is not None:
        os.environ["TASKDECK_COLLECTION_PATH"] = str(config.collection_path)
    if overrides.get("blocking_deck_id") is not None:
        os.environ["TASKDECK_BLOCKING_DECK_ID"] = str(config.blocking_deck_id)

    uvicorn.run("taskdeck.server:app", host=config.host, port=config.port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
