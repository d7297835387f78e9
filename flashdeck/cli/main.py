"""
CLI entry point for flashdeck.
"""

# Standard library imports
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

# Third-party imports
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Local application imports
from flashdeck.cli._study_logic import study_logic
from flashdeck.config import get_settings
from flashdeck.db.database import FlashcardDatabase
from flashdeck.exceptions import (
    AccessError,
    DatabaseError,
    DeckImportError,
    DeckNotFoundError,
    ForbiddenError,
    UnauthorizedError,
)
from flashdeck.importer import import_deck_file
from flashdeck.models import (
    CreateCardInput,
    CreateDeckInput,
    DeckWithCardCount,
    UpdateCardInput,
    UpdateDeckInput,
    truncate_text,
)


console = Console()

app = typer.Typer(
    name="flashdeck",
    help="Flashdeck: build decks of flashcards and study them.",
    add_completion=False,
    rich_markup_mode="markdown",
)
deck_app = typer.Typer(name="deck", help="Create, list, edit and delete decks.")
card_app = typer.Typer(name="card", help="Add, edit and delete cards.")
app.add_typer(deck_app)
app.add_typer(card_app)


# ---------------------------------------------------------------------------
# Option resolution and logging
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _resolve_db_path(db: Optional[Path]) -> Path:
    """Resolve db path from the --db flag, falling back to settings."""
    if db is not None:
        return db
    return get_settings().db_path


def _resolve_user(user: Optional[str]) -> str:
    """Resolve the requesting user from --user or settings. Exits on missing."""
    resolved = user or get_settings().user
    if not resolved:
        console.print(
            "[bold red]Error: --user is required "
            "(or set the FLASHDECK_USER environment variable).[/bold red]"
        )
        raise typer.Exit(code=1)
    return resolved


# Common typer options reused across commands
_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. "
    "Falls back to FLASHDECK_DB or FLASHDECK_DB_PATH.",
    envvar="FLASHDECK_DB",
)

_user_option = typer.Option(  # noqa: B008
    None,
    "--user",
    "-u",
    help="Identity of the requesting user. Falls back to FLASHDECK_USER.",
    envvar="FLASHDECK_USER",
)


@contextmanager
def _cli_errors(action: str) -> Iterator[None]:
    """Turn domain errors raised while performing ``action`` into exit code 1."""
    try:
        yield
    except typer.Exit:
        raise
    except UnauthorizedError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1) from e
    except (DeckNotFoundError, ForbiddenError) as e:
        console.print("[bold red]Error: Deck not found or access denied.[/bold red]")
        raise typer.Exit(code=1) from e
    except AccessError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1) from e
    except ValidationError as e:
        console.print(f"[bold red]Invalid input while trying to {action}:[/bold red]")
        for error in e.errors():
            field = ".".join(map(str, error["loc"]))
            console.print(f"- {escape(field)}: {escape(error['msg'])}")
        raise typer.Exit(code=1) from e
    except DatabaseError as e:
        console.print(f"[bold]A database error occurred: {escape(str(e))}[/bold]")
        raise typer.Exit(code=1) from e


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
):
    """Flashdeck: build decks of flashcards and study them."""
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# Deck commands
# ---------------------------------------------------------------------------


def _card_noun(count: int) -> str:
    return "card" if count == 1 else "cards"


def _deck_table(title: str, decks: List[DeckWithCardCount]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Description")
    table.add_column("Cards", style="magenta", justify="right")
    table.add_column("Updated", style="dim")
    for deck in decks:
        table.add_row(
            str(deck.id),
            escape(deck.title),
            escape(truncate_text(deck.description) or ""),
            str(deck.card_count),
            deck.updated_at.strftime("%Y-%m-%d"),
        )
    return table


@deck_app.command("list")
def deck_list(
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """List your decks with their card counts."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    with _cli_errors("list decks"):
        with FlashcardDatabase(db_path=db_path) as db_inst:
            decks = db_inst.get_user_decks(user_id)
    if not decks:
        console.print(
            "[yellow]You have no decks yet. "
            "Create one with `flashdeck deck create`.[/yellow]"
        )
        return
    console.print(_deck_table("Your Decks", decks))


@deck_app.command("show")
def deck_show(
    deck_id: int = typer.Argument(..., help="ID of the deck to show."),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Show a deck and its cards."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    with _cli_errors("show deck"):
        with FlashcardDatabase(db_path=db_path) as db_inst:
            deck = db_inst.get_deck_by_id(deck_id, user_id)
            cards = db_inst.get_deck_cards(deck_id, user_id)

    console.print(f"[bold]{escape(deck.title)}[/bold]  ({len(cards)} {_card_noun(len(cards))})")
    if deck.description:
        console.print(escape(deck.description))
    created = deck.created_at.strftime("%Y-%m-%d")
    updated = deck.updated_at.strftime("%Y-%m-%d")
    console.print(f"[dim]Created {created} • Updated {updated}[/dim]")

    if not cards:
        console.print(
            f"[yellow]No cards yet. Add one with "
            f"`flashdeck card add {deck_id}`.[/yellow]"
        )
        return

    table = Table(title="Cards")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Front")
    table.add_column("Back")
    for card in cards:
        table.add_row(
            str(card.id),
            escape(truncate_text(card.front, 40)),
            escape(truncate_text(card.back, 40)),
        )
    console.print(table)


@deck_app.command("create")
def deck_create(
    title: str = typer.Argument(..., help="Title of the new deck."),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Optional description."
    ),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Create a new deck."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    with _cli_errors("create deck"):
        data = CreateDeckInput(title=title, description=description)
        with FlashcardDatabase(db_path=db_path) as db_inst:
            deck = db_inst.create_deck(data, user_id)
    console.print(
        f"[bold green]Created deck {deck.id}:[/bold green] {escape(deck.title)}"
    )


@deck_app.command("edit")
def deck_edit(
    deck_id: int = typer.Argument(..., help="ID of the deck to edit."),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    description: Optional[str] = typer.Option(
        None,
        "--description",
        "-d",
        help="New description; pass an empty string to clear it.",
    ),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Change a deck's title or description."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    if title is None and description is None:
        console.print("[yellow]Nothing to change: pass --title or --description.[/yellow]")
        raise typer.Exit(code=1)

    with _cli_errors("edit deck"):
        with FlashcardDatabase(db_path=db_path) as db_inst:
            existing = db_inst.get_deck_by_id(deck_id, user_id)
            data = UpdateDeckInput(
                id=deck_id,
                title=title if title is not None else existing.title,
                description=(
                    description
                    if description is not None
                    else existing.description
                ),
            )
            deck = db_inst.update_deck(data, user_id)
    console.print(f"[bold green]Updated deck {deck.id}:[/bold green] {escape(deck.title)}")


@deck_app.command("delete")
def deck_delete(
    deck_id: int = typer.Argument(..., help="ID of the deck to delete."),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Delete a deck and all of its cards."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    with _cli_errors("delete deck"):
        with FlashcardDatabase(db_path=db_path) as db_inst:
            deck = db_inst.get_deck_by_id(deck_id, user_id)
            if not yes:
                confirmed = typer.confirm(
                    f"Delete deck '{deck.title}' and all of its cards?"
                )
                if not confirmed:
                    console.print("Delete cancelled.")
                    raise typer.Exit()
            db_inst.delete_deck(deck_id, user_id)
    console.print(f"[bold green]Deleted deck {deck_id}.[/bold green]")


# ---------------------------------------------------------------------------
# Card commands
# ---------------------------------------------------------------------------


@card_app.command("add")
def card_add(
    deck_id: int = typer.Argument(..., help="ID of the deck to add to."),
    front: str = typer.Option(..., "--front", "-f", prompt=True),
    back: str = typer.Option(..., "--back", "-b", prompt=True),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Add a card to a deck."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    with _cli_errors("add card"):
        data = CreateCardInput(deck_id=deck_id, front=front, back=back)
        with FlashcardDatabase(db_path=db_path) as db_inst:
            card = db_inst.create_card(data, user_id)
    console.print(
        f"[bold green]Added card {card.id} to deck {card.deck_id}.[/bold green]"
    )


@card_app.command("edit")
def card_edit(
    card_id: int = typer.Argument(..., help="ID of the card to edit."),
    front: Optional[str] = typer.Option(None, "--front", "-f"),
    back: Optional[str] = typer.Option(None, "--back", "-b"),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Change the front or back of a card."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    if front is None and back is None:
        console.print("[yellow]Nothing to change: pass --front or --back.[/yellow]")
        raise typer.Exit(code=1)

    with _cli_errors("edit card"):
        with FlashcardDatabase(db_path=db_path) as db_inst:
            existing = db_inst.get_card_by_id(card_id, user_id)
            data = UpdateCardInput(
                id=card_id,
                front=front if front is not None else existing.front,
                back=back if back is not None else existing.back,
            )
            card = db_inst.update_card(data, user_id)
    console.print(f"[bold green]Updated card {card.id}.[/bold green]")


@card_app.command("delete")
def card_delete(
    card_id: int = typer.Argument(..., help="ID of the card to delete."),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Delete a card."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    if not yes and not typer.confirm(f"Delete card {card_id}?"):
        console.print("Delete cancelled.")
        raise typer.Exit()
    with _cli_errors("delete card"):
        with FlashcardDatabase(db_path=db_path) as db_inst:
            deck_id = db_inst.delete_card(card_id, user_id)
    console.print(
        f"[bold green]Deleted card {card_id} from deck {deck_id}.[/bold green]"
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@app.command()
def dashboard(
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Number of recent decks to show. Defaults to FLASHDECK_RECENT_DECKS_LIMIT.",
    ),
):
    """Show deck and card totals and your most recent decks."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    recent_limit = limit if limit is not None else get_settings().recent_decks_limit
    with _cli_errors("load the dashboard"):
        with FlashcardDatabase(db_path=db_path) as db_inst:
            stats_data = db_inst.get_dashboard_stats(user_id)
            recent = db_inst.get_recent_decks(user_id, limit=recent_limit)

    overall_table = Table(title="Dashboard", show_header=False)
    overall_table.add_column("Metric", style="cyan")
    overall_table.add_column("Value", style="magenta")
    overall_table.add_row("Total Decks", str(stats_data.total_decks))
    overall_table.add_row("Total Cards", str(stats_data.total_cards))
    console.print(overall_table)

    if not recent:
        console.print(
            "[yellow]No decks yet. Create your first deck with "
            "`flashdeck deck create`.[/yellow]"
        )
        return
    console.print(_deck_table("Recent Decks", recent))


# ---------------------------------------------------------------------------
# Study and import
# ---------------------------------------------------------------------------


@app.command()
def study(
    deck_id: int = typer.Argument(..., help="ID of the deck to study."),
    shuffle: bool = typer.Option(
        False, "--shuffle", "-s", help="Start with the cards shuffled."
    ),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Study a deck: flip cards, mark them known, shuffle or reset."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    with _cli_errors("study deck"):
        study_logic(
            deck_id=deck_id, db_path=db_path, user_id=user_id, shuffle=shuffle
        )


@app.command("import")
def import_deck(
    file: Path = typer.Argument(
        ..., help="YAML file with a deck title and its cards."
    ),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Create a new deck from a YAML file."""
    db_path = _resolve_db_path(db)
    user_id = _resolve_user(user)
    with _cli_errors("import deck"):
        try:
            with FlashcardDatabase(db_path=db_path) as db_inst:
                deck = import_deck_file(db_inst, file, user_id)
                card_count = len(db_inst.get_deck_cards(deck.id, user_id))
        except DeckImportError as e:
            console.print(f"[bold red]Import failed:[/bold red] {escape(str(e))}")
            raise typer.Exit(code=1) from e
    console.print(
        f"[bold green]Imported deck {deck.id} '{escape(deck.title)}' "
        f"with {card_count} {_card_noun(card_count)}.[/bold green]"
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """
    Run the CLI application.

    If an unexpected exception occurs, print a bold red error message to the console and exit the process with status code 1.
    """
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {escape(str(e))}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
