"""
Bulk-creates a deck and its cards from a YAML file.

Expected layout::

    deck: Indonesian Animals
    description: Everyday animal names
    cards:
      - front: Dog
        back: Anjing
      - q: Cat        # q/a are accepted as shorthand for front/back
        a: Kucing
"""

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
)

from .db.database import FlashcardDatabase
from .exceptions import DeckImportError
from .models import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    CreateCardInput,
    CreateDeckInput,
    Deck,
)

logger = logging.getLogger(__name__)


class _RawYAMLCardEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    front: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("front", "q")
    )
    back: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("back", "a")
    )


class _RawYAMLDeckFile(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    deck: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(
        default=None, max_length=DESCRIPTION_MAX_LENGTH
    )
    cards: List[_RawYAMLCardEntry] = Field(..., min_length=1)


def parse_deck_file(file_path: Path) -> _RawYAMLDeckFile:
    """
    Read and validate a YAML deck file without touching the database.

    Raises:
        DeckImportError: If the file is missing or unreadable, is not valid
            YAML, its top level is not a mapping, or it fails validation (the
            message names the first offending field).
    """
    try:
        content = file_path.read_text(encoding="utf-8")
        raw_yaml_content = yaml.safe_load(content)
    except FileNotFoundError:
        raise DeckImportError(file_path, "File not found.") from None
    except OSError as e:
        raise DeckImportError(file_path, f"Could not read file: {e}") from e
    except yaml.YAMLError as e:
        raise DeckImportError(file_path, f"Invalid YAML syntax: {e}") from e

    if not isinstance(raw_yaml_content, dict):
        raise DeckImportError(
            file_path, "Top level of YAML must be a dictionary (deck object)."
        )

    try:
        return _RawYAMLDeckFile.model_validate(raw_yaml_content)
    except ValidationError as e:
        error_details = e.errors()[0]
        field = ".".join(map(str, error_details["loc"]))
        msg = error_details["msg"]
        raise DeckImportError(
            file_path, f"Validation error in field '{field}': {msg}"
        ) from e


def import_deck_file(
    db: FlashcardDatabase, file_path: Path, user_id: Optional[str]
) -> Deck:
    """
    Create a new deck owned by ``user_id`` from a YAML deck file.

    The file is fully validated before anything is written, so a bad card
    never leaves a half-imported deck behind.

    Returns:
        Deck: The created deck.
    """
    deck_file = parse_deck_file(file_path)
    logger.info(
        f"Importing {len(deck_file.cards)} cards from {file_path} "
        f"into new deck '{deck_file.deck}'"
    )

    deck = db.create_deck(
        CreateDeckInput(title=deck_file.deck, description=deck_file.description),
        user_id,
    )
    card_inputs = [
        CreateCardInput(deck_id=deck.id, front=entry.front, back=entry.back)
        for entry in deck_file.cards
    ]
    try:
        db.create_cards_batch(deck.id, card_inputs, user_id)
    except Exception:
        logger.error(
            f"Card import into deck {deck.id} failed; removing the empty deck."
        )
        db.delete_deck(deck.id, user_id)
        raise
    return deck
