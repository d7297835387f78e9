from pathlib import Path
from typing import Optional, Union


class DatabaseError(Exception):
    """Base exception for database-related errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(DatabaseError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised for errors during schema setup."""

    pass


class MarshallingError(DatabaseError):
    """Indicates an error during data conversion between application models
    and DB format."""

    pass


class DeckOperationError(DatabaseError):
    """Raised for errors during deck operations (CRUD)."""

    pass


class CardOperationError(DatabaseError):
    """Raised for errors during card operations (CRUD)."""

    pass


class AccessError(Exception):
    """Base class for errors about who may see or change a record."""

    pass


class UnauthorizedError(AccessError):
    """Raised when an operation is attempted without a user identity."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class DeckNotFoundError(AccessError):
    """Raised when a specified deck does not exist."""

    def __init__(self, deck_id: int):
        super().__init__(f"Deck {deck_id} not found.")
        self.deck_id = deck_id


class ForbiddenError(AccessError):
    """Raised when a deck exists but belongs to another user."""

    def __init__(self, deck_id: int):
        super().__init__(f"Access to deck {deck_id} denied.")
        self.deck_id = deck_id


class CardNotFoundError(AccessError):
    """Raised when a card does not exist or sits in another user's deck."""

    def __init__(self, card_id: int):
        super().__init__(f"Card {card_id} not found or access denied.")
        self.card_id = card_id


class StudySessionError(Exception):
    """Base class for study session errors."""

    pass


class InvalidStudyStateError(StudySessionError):
    """Raised when a command is not allowed in the session's current state."""

    pass


class DeckImportError(Exception):
    """Raised when a YAML deck file cannot be imported."""

    def __init__(self, file_path: Union[str, Path], message: str):
        self.file_path = Path(file_path)
        self.message = message
        super().__init__(f"{self.file_path.name}: {message}")
