"""
DuckDB database interactions for Flashdeck.

Every deck and card operation is scoped to the requesting user: a deck is only
visible to the user who owns it, and a card only through its parent deck.
"""

import duckdb
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Type, Union

from ..exceptions import (
    CardNotFoundError,
    CardOperationError,
    DatabaseError,
    DeckNotFoundError,
    DeckOperationError,
    ForbiddenError,
    UnauthorizedError,
)
from ..models import (
    Card,
    CreateCardInput,
    CreateDeckInput,
    DashboardStats,
    Deck,
    DeckWithCardCount,
    UpdateCardInput,
    UpdateDeckInput,
)
from . import db_utils
from .connection import ConnectionHandler
from .schema_manager import SchemaManager

# --- Logging Setup ---
logger = logging.getLogger(__name__)

# --- Helper Functions ---


def _rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> List[Dict[str, Any]]:
    """Convert cursor results to list of dictionaries using column names."""
    rows = cursor.fetchall()
    if not rows:
        return []
    description = cursor.description
    if description is None:
        return []
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


def _now() -> datetime:
    return db_utils.to_db_timestamp(datetime.now(timezone.utc))


def _require_user(user_id: Optional[str]) -> str:
    if not user_id or not user_id.strip():
        raise UnauthorizedError()
    return user_id


class FlashcardDatabase:
    """
    Facade over the Flashdeck database: connection, schema, and user-scoped
    deck and card operations. Intended for use as a context manager.
    """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Parameters:
            db_path (str | Path): Path to the database file. Use ':memory:'
                for an in-memory database.
            read_only (bool): If True, open the database in read-only mode.
        """
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_manager = SchemaManager(self._handler)
        logger.info(
            f"FlashcardDatabase initialized for DB at: {self._handler.db_path_resolved}"  # noqa: E501
        )

    @property
    def db_path_resolved(self) -> Path:
        return self._handler.db_path_resolved

    @property
    def read_only(self) -> bool:
        return self._handler.read_only

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self._handler.get_connection()

    def close_connection(self) -> None:
        self._handler.close_connection()

    def __enter__(self) -> "FlashcardDatabase":
        """
        Open the connection, creating the schema if the database is new and
        writable.
        """
        self.get_connection()
        if self._handler.is_new_db and not self._handler.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Ensures the connection is closed on exiting the context."""
        self.close_connection()

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        self._schema_manager.initialize_schema(
            force_recreate_tables=force_recreate_tables
        )

    # --- Transaction helpers ---

    @contextmanager
    def _transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Yield a cursor inside a transaction that commits on success and rolls
        back on any exception, which is re-raised.
        """
        conn = self.get_connection()
        with conn.cursor() as cursor:
            cursor.begin()
            try:
                yield cursor
            except Exception:
                try:
                    cursor.rollback()
                    logger.info("Transaction rolled back.")
                except duckdb.Error as rb_err:
                    # Re-raise the error that triggered the rollback.
                    logger.error(f"Failed to rollback transaction: {rb_err}")
                raise
            cursor.commit()

    @staticmethod
    def _wrap_error(
        error_cls: Type[DatabaseError], action: str, e: duckdb.Error
    ) -> DatabaseError:
        logger.error(f"Error while trying to {action}: {e}")
        return error_cls(f"Failed to {action}: {e}", original_exception=e)

    # --- Ownership checks ---

    def _fetch_owned_deck(
        self, cursor: duckdb.DuckDBPyConnection, deck_id: int, user_id: str
    ) -> Deck:
        cursor.execute("SELECT * FROM decks WHERE id = ?;", (deck_id,))
        rows = _rows_to_dicts(cursor)
        if not rows:
            raise DeckNotFoundError(deck_id)
        deck = db_utils.db_row_to_deck(rows[0])
        if deck.user_id != user_id:
            logger.warning(
                f"User {user_id} denied access to deck {deck_id}."
            )
            raise ForbiddenError(deck_id)
        return deck

    def _fetch_owned_card(
        self, cursor: duckdb.DuckDBPyConnection, card_id: int, user_id: str
    ) -> Card:
        sql = """
            SELECT c.* FROM cards c
            JOIN decks d ON c.deck_id = d.id
            WHERE c.id = ? AND d.user_id = ?;
        """
        cursor.execute(sql, (card_id, user_id))
        rows = _rows_to_dicts(cursor)
        if not rows:
            raise CardNotFoundError(card_id)
        return db_utils.db_row_to_card(rows[0])

    @staticmethod
    def _touch_deck(
        cursor: duckdb.DuckDBPyConnection, deck_id: int, ts: datetime
    ) -> None:
        cursor.execute(
            "UPDATE decks SET updated_at = ? WHERE id = ?;", (ts, deck_id)
        )

    # --- Deck Operations ---

    _DECK_SUMMARY_SQL = """
        SELECT d.id, d.title, d.description, d.created_at, d.updated_at,
               COUNT(c.id) AS card_count
        FROM decks d
        LEFT JOIN cards c ON c.deck_id = d.id
        WHERE d.user_id = ?
        GROUP BY d.id, d.title, d.description, d.created_at, d.updated_at
    """

    def get_user_decks(self, user_id: Optional[str]) -> List[DeckWithCardCount]:
        """
        List the user's decks with their card counts, least recently updated
        first.

        Raises:
            UnauthorizedError: If no user is given.
            DeckOperationError: If the query fails.
        """
        user_id = _require_user(user_id)
        sql = self._DECK_SUMMARY_SQL + " ORDER BY d.updated_at ASC, d.id ASC;"
        try:
            cursor = self.get_connection().execute(sql, (user_id,))
            rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            raise self._wrap_error(
                DeckOperationError, f"list decks for user {user_id}", e
            ) from e
        return [db_utils.db_row_to_deck_summary(row) for row in rows]

    def get_recent_decks(
        self, user_id: Optional[str], limit: int = 5
    ) -> List[DeckWithCardCount]:
        """Return up to ``limit`` of the user's newest decks with card counts."""
        user_id = _require_user(user_id)
        if limit <= 0:
            return []
        sql = (
            self._DECK_SUMMARY_SQL
            + " ORDER BY d.created_at DESC, d.id DESC LIMIT ?;"
        )
        try:
            cursor = self.get_connection().execute(sql, (user_id, limit))
            rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            raise self._wrap_error(
                DeckOperationError, f"fetch recent decks for user {user_id}", e
            ) from e
        return [db_utils.db_row_to_deck_summary(row) for row in rows]

    def get_deck_by_id(self, deck_id: int, user_id: Optional[str]) -> Deck:
        """
        Fetch a deck owned by the user.

        Raises:
            UnauthorizedError: If no user is given.
            DeckNotFoundError: If no deck has this id.
            ForbiddenError: If the deck belongs to another user.
            DeckOperationError: If the query fails.
        """
        user_id = _require_user(user_id)
        try:
            deck = self._fetch_owned_deck(
                self.get_connection(), deck_id, user_id
            )
        except duckdb.Error as e:
            raise self._wrap_error(
                DeckOperationError, f"fetch deck {deck_id}", e
            ) from e
        logger.debug(f"Fetched deck {deck_id} for user {user_id}")
        return deck

    def create_deck(self, data: CreateDeckInput, user_id: Optional[str]) -> Deck:
        user_id = _require_user(user_id)
        now = _now()
        sql = """
            INSERT INTO decks (title, description, user_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            RETURNING *;
        """
        try:
            with self._transaction() as cursor:
                cursor.execute(
                    sql, (data.title, data.description, user_id, now, now)
                )
                rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            raise self._wrap_error(DeckOperationError, "create deck", e) from e
        deck = db_utils.db_row_to_deck(rows[0])
        logger.info(f"Created deck {deck.id} '{deck.title}' for user {user_id}")
        return deck

    def update_deck(self, data: UpdateDeckInput, user_id: Optional[str]) -> Deck:
        """
        Replace a deck's title and description.

        Raises the same access errors as get_deck_by_id.
        """
        user_id = _require_user(user_id)
        sql = """
            UPDATE decks SET title = ?, description = ?, updated_at = ?
            WHERE id = ? AND user_id = ?
            RETURNING *;
        """
        try:
            with self._transaction() as cursor:
                self._fetch_owned_deck(cursor, data.id, user_id)
                cursor.execute(
                    sql,
                    (data.title, data.description, _now(), data.id, user_id),
                )
                rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            raise self._wrap_error(
                DeckOperationError, f"update deck {data.id}", e
            ) from e
        logger.info(f"Updated deck {data.id} for user {user_id}")
        return db_utils.db_row_to_deck(rows[0])

    def delete_deck(self, deck_id: int, user_id: Optional[str]) -> None:
        """Delete a deck and all of its cards in one transaction."""
        user_id = _require_user(user_id)
        try:
            with self._transaction() as cursor:
                self._fetch_owned_deck(cursor, deck_id, user_id)
                cursor.execute(
                    "DELETE FROM cards WHERE deck_id = ?;", (deck_id,)
                )
                cursor.execute(
                    "DELETE FROM decks WHERE id = ? AND user_id = ?;",
                    (deck_id, user_id),
                )
        except duckdb.Error as e:
            raise self._wrap_error(
                DeckOperationError, f"delete deck {deck_id}", e
            ) from e
        logger.info(f"Deleted deck {deck_id} for user {user_id}")

    def get_dashboard_stats(self, user_id: Optional[str]) -> DashboardStats:
        """Count the user's decks and the cards across all of them."""
        user_id = _require_user(user_id)
        sql = """
            SELECT
                (SELECT COUNT(*) FROM decks WHERE user_id = ?) AS total_decks,
                (SELECT COUNT(*) FROM cards c
                    JOIN decks d ON c.deck_id = d.id
                    WHERE d.user_id = ?) AS total_cards;
        """
        try:
            result = (
                self.get_connection().execute(sql, (user_id, user_id)).fetchone()
            )
        except duckdb.Error as e:
            raise self._wrap_error(
                DeckOperationError, f"compute dashboard stats for {user_id}", e
            ) from e
        if not result:
            return DashboardStats()
        return DashboardStats(total_decks=result[0], total_cards=result[1])

    # --- Card Operations ---

    def get_deck_cards(self, deck_id: int, user_id: Optional[str]) -> List[Card]:
        """
        Return the cards of a deck owned by the user, most recently updated
        first. This is the card list a study session is built from.

        Raises:
            UnauthorizedError: If no user is given.
            DeckNotFoundError: If no deck has this id.
            ForbiddenError: If the deck belongs to another user.
            CardOperationError: If the query fails.
        """
        user_id = _require_user(user_id)
        sql = """
            SELECT * FROM cards WHERE deck_id = ?
            ORDER BY updated_at DESC, id DESC;
        """
        conn = self.get_connection()
        try:
            self._fetch_owned_deck(conn, deck_id, user_id)
            cursor = conn.execute(sql, (deck_id,))
            rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            raise self._wrap_error(
                CardOperationError, f"fetch cards for deck {deck_id}", e
            ) from e
        logger.debug(f"Fetched {len(rows)} cards for deck {deck_id}")
        return [db_utils.db_row_to_card(row) for row in rows]

    def get_card_by_id(self, card_id: int, user_id: Optional[str]) -> Card:
        user_id = _require_user(user_id)
        try:
            return self._fetch_owned_card(
                self.get_connection(), card_id, user_id
            )
        except duckdb.Error as e:
            raise self._wrap_error(
                CardOperationError, f"fetch card {card_id}", e
            ) from e

    def create_card(self, data: CreateCardInput, user_id: Optional[str]) -> Card:
        """Add a card to one of the user's decks and bump the deck's updated_at."""
        user_id = _require_user(user_id)
        now = _now()
        sql = """
            INSERT INTO cards (deck_id, front, back, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            RETURNING *;
        """
        try:
            with self._transaction() as cursor:
                self._fetch_owned_deck(cursor, data.deck_id, user_id)
                cursor.execute(
                    sql, (data.deck_id, data.front, data.back, now, now)
                )
                rows = _rows_to_dicts(cursor)
                self._touch_deck(cursor, data.deck_id, now)
        except duckdb.Error as e:
            raise self._wrap_error(
                CardOperationError, f"create card in deck {data.deck_id}", e
            ) from e
        card = db_utils.db_row_to_card(rows[0])
        logger.info(f"Created card {card.id} in deck {card.deck_id}")
        return card

    def create_cards_batch(
        self,
        deck_id: int,
        cards: List[CreateCardInput],
        user_id: Optional[str],
    ) -> int:
        """
        Add several cards to one deck in a single transaction.

        Returns:
            int: Number of cards inserted; an empty list is a no-op.
        """
        user_id = _require_user(user_id)
        if not cards:
            return 0
        now = _now()
        params = [(deck_id, c.front, c.back, now, now) for c in cards]
        sql = """
            INSERT INTO cards (deck_id, front, back, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?);
        """
        try:
            with self._transaction() as cursor:
                self._fetch_owned_deck(cursor, deck_id, user_id)
                cursor.executemany(sql, params)
                self._touch_deck(cursor, deck_id, now)
        except duckdb.Error as e:
            raise self._wrap_error(
                CardOperationError, f"add cards to deck {deck_id}", e
            ) from e
        logger.info(f"Added {len(params)} cards to deck {deck_id}")
        return len(params)

    def update_card(self, data: UpdateCardInput, user_id: Optional[str]) -> Card:
        user_id = _require_user(user_id)
        now = _now()
        sql = """
            UPDATE cards SET front = ?, back = ?, updated_at = ?
            WHERE id = ?
            RETURNING *;
        """
        try:
            with self._transaction() as cursor:
                existing = self._fetch_owned_card(cursor, data.id, user_id)
                cursor.execute(sql, (data.front, data.back, now, data.id))
                rows = _rows_to_dicts(cursor)
                self._touch_deck(cursor, existing.deck_id, now)
        except duckdb.Error as e:
            raise self._wrap_error(
                CardOperationError, f"update card {data.id}", e
            ) from e
        logger.info(f"Updated card {data.id}")
        return db_utils.db_row_to_card(rows[0])

    def delete_card(self, card_id: int, user_id: Optional[str]) -> int:
        """
        Delete a card from one of the user's decks.

        Returns:
            int: The id of the deck the card belonged to.
        """
        user_id = _require_user(user_id)
        try:
            with self._transaction() as cursor:
                existing = self._fetch_owned_card(cursor, card_id, user_id)
                cursor.execute("DELETE FROM cards WHERE id = ?;", (card_id,))
                self._touch_deck(cursor, existing.deck_id, _now())
        except duckdb.Error as e:
            raise self._wrap_error(
                CardOperationError, f"delete card {card_id}", e
            ) from e
        logger.info(f"Deleted card {card_id} from deck {existing.deck_id}")
        return existing.deck_id
