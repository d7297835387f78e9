"""
Marshalling between DuckDB rows and the Flashdeck pydantic models.
Keeps timestamp and validation details out of the query code.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..models import Card, Deck, DeckWithCardCount
from ..exceptions import MarshallingError

ModelT = TypeVar("ModelT", bound=BaseModel)

_TIMESTAMP_FIELDS = ("created_at", "updated_at")


def to_db_timestamp(value: datetime) -> datetime:
    """
    Normalize a datetime for storage in a naive TIMESTAMP column.

    Aware values are converted to UTC and stripped of tzinfo; naive values are
    assumed to already be UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive timestamp read back from the database."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def transform_db_row(row_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``row_dict`` with its timestamps made UTC-aware."""
    data = row_dict.copy()
    for field in _TIMESTAMP_FIELDS:
        if field in data:
            data[field] = from_db_timestamp(data[field])
    return data


def _row_to_model(model: Type[ModelT], row_dict: Dict[str, Any]) -> ModelT:
    data = transform_db_row(row_dict)
    try:
        return model(**data)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse {model.__name__.lower()} from DB row: {row_dict}. Error: {e}",  # noqa: E501
            original_exception=e,
        ) from e


def db_row_to_deck(row_dict: Dict[str, Any]) -> Deck:
    """
    Create a Deck model from a database row dictionary.

    Raises:
        MarshallingError: If the row cannot be validated into a Deck.
    """
    return _row_to_model(Deck, row_dict)


def db_row_to_card(row_dict: Dict[str, Any]) -> Card:
    """
    Create a Card model from a database row dictionary.

    Raises:
        MarshallingError: If the row cannot be validated into a Card.
    """
    return _row_to_model(Card, row_dict)


def db_row_to_deck_summary(row_dict: Dict[str, Any]) -> DeckWithCardCount:
    """Create a DeckWithCardCount from an aggregate row; NULL counts become 0."""
    data = row_dict.copy()
    data["card_count"] = int(data.get("card_count") or 0)
    return _row_to_model(DeckWithCardCount, data)
