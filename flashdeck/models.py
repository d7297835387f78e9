"""
Pydantic models for decks, cards and the inputs that create or change them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Deck(BaseModel):
    """
    A named collection of cards owned by one user.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: Optional[int] = Field(
        default=None,
        description="Identity PK from the decks table (None if new).",
    )
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None)
    user_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the owning user.",
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp when the deck was created.",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp of the last change to the deck or its cards.",
    )


class Card(BaseModel):
    """
    A front/back text pair belonging to exactly one deck.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: Optional[int] = Field(
        default=None,
        description="Identity PK from the cards table (None if new).",
    )
    deck_id: int = Field(..., gt=0)
    front: str = Field(
        ...,
        min_length=1,
        description="Prompt side, e.g. 'Dog'.",
    )
    back: str = Field(
        ...,
        min_length=1,
        description="Answer side, e.g. 'Anjing'.",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class DeckWithCardCount(BaseModel):
    """Deck summary row used by deck listings and the dashboard."""

    model_config = ConfigDict(extra="forbid")

    id: int
    title: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    card_count: int = Field(default=0, ge=0)


class DashboardStats(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_decks: int = Field(default=0, ge=0)
    total_cards: int = Field(default=0, ge=0)


# --- Mutation inputs ---


class _StrippedInput(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class CreateDeckInput(_StrippedInput):
    title: str = Field(
        ..., min_length=1, max_length=TITLE_MAX_LENGTH
    )
    description: Optional[str] = Field(
        default=None, max_length=DESCRIPTION_MAX_LENGTH
    )

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty description as no description."""
        return v or None


class UpdateDeckInput(CreateDeckInput):
    id: int = Field(..., gt=0)


class CreateCardInput(_StrippedInput):
    deck_id: int = Field(..., gt=0)
    front: str = Field(..., min_length=1)
    back: str = Field(..., min_length=1)


class UpdateCardInput(_StrippedInput):
    id: int = Field(..., gt=0)
    front: str = Field(..., min_length=1)
    back: str = Field(..., min_length=1)


def truncate_text(text: Optional[str], max_length: int = 80) -> Optional[str]:
    """
    Shorten text for one-line listings, cutting at a word boundary when possible.

    Parameters:
        text (Optional[str]): Text to shorten; empty or None is returned as is.
        max_length (int): Maximum number of characters kept before the ellipsis.

    Returns:
        Optional[str]: ``text`` unchanged if it fits, otherwise the text cut at
        the last space before ``max_length`` (or at ``max_length`` when there
        is no space) followed by "...".
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    cut_point = last_space if last_space > 0 else max_length
    return text[:cut_point] + "..."
