"""Flashdeck - decks of front/back flashcards and a flip-and-track study session."""

from .models import Card, Deck
from .study_session import StudySession, StudyState
from .db import FlashcardDatabase
from .importer import import_deck_file

__all__ = [
    "Card",
    "Deck",
    "StudySession",
    "StudyState",
    "FlashcardDatabase",
    "import_deck_file",
]
