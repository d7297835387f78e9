"""
Study command logic: load a deck for the requesting user and run the study flow.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from flashdeck.cli.study_ui import start_study_flow
from flashdeck.db.database import FlashcardDatabase
from flashdeck.study_session import StudySession

logger = logging.getLogger(__name__)
console = Console()


def study_logic(
    deck_id: int,
    db_path: Path,
    user_id: Optional[str],
    shuffle: bool = False,
) -> Optional[StudySession]:
    """
    Load a deck's cards for the user and launch the interactive study flow.

    Ownership is checked before any session exists. A deck with no cards never
    gets a session: the user is sent back to the deck with a notice instead.

    Parameters:
        deck_id (int): Deck to study.
        db_path (Path): Path to the flashcard database file.
        user_id (Optional[str]): Requesting user; must own the deck.
        shuffle (bool): Start with a shuffled pass instead of deck order.

    Returns:
        Optional[StudySession]: The session after the user quit, or None when
        the deck was empty.
    """
    with FlashcardDatabase(db_path=db_path) as db:
        deck = db.get_deck_by_id(deck_id, user_id)
        cards = db.get_deck_cards(deck_id, user_id)

    if not cards:
        logger.info(f"Deck {deck_id} has no cards; not starting a session.")
        console.print(
            f"[yellow]Deck '{escape(deck.title)}' has no cards yet. "
            f"Add some with `flashdeck card add {deck_id}`.[/yellow]"
        )
        return None

    noun = "card" if len(cards) == 1 else "cards"
    console.print(
        f"[bold]Studying: {escape(deck.title)}[/bold] ({len(cards)} {noun})"
    )
    if deck.description:
        console.print(f"[dim]{escape(deck.description)}[/dim]")

    session = StudySession.start(cards)
    if shuffle:
        session.shuffle()
    logger.info(f"Study session started for deck {deck_id} by {user_id}")
    start_study_flow(session)
    return session
