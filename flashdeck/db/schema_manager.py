import duckdb
import logging

from .connection import ConnectionHandler
from . import schema
from ..exceptions import DatabaseConnectionError, SchemaInitializationError

logger = logging.getLogger(__name__)


class SchemaManager:
    """Creates the decks and cards tables on a Flashdeck database."""

    def __init__(self, handler: ConnectionHandler):
        self._handler = handler

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Create the schema inside a transaction.

        Skipped for read-only file databases. With ``force_recreate_tables``
        every deck and card is dropped first.

        Raises:
            DatabaseConnectionError: If recreation is requested in read-only mode.
            SchemaInitializationError: If DuckDB rejects the schema statements.
        """
        if self._handler.read_only:
            if force_recreate_tables:
                raise DatabaseConnectionError(
                    "Cannot force_recreate_tables in read-only mode."
                )
            if not self._handler.is_memory:
                logger.warning(
                    "Attempting to initialize schema in read-only mode. Skipping."
                )
                return

        conn = self._handler.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                if force_recreate_tables:
                    self._drop_tables(cursor)
                cursor.execute(schema.DB_SCHEMA_SQL)
                cursor.commit()
            logger.info(
                f"Database schema at {self._handler.db_path_resolved} initialized."
            )
        except duckdb.Error as e:
            logger.error(
                f"Error initializing database schema at {self._handler.db_path_resolved}: {e}"  # noqa: E501
            )
            raise SchemaInitializationError(
                f"Failed to initialize schema: {e}", original_exception=e
            ) from e

    def _drop_tables(self, cursor: duckdb.DuckDBPyConnection) -> None:
        logger.warning(
            f"Forcing table recreation for {self._handler.db_path_resolved}. "
            "ALL EXISTING DECKS AND CARDS WILL BE LOST."
        )
        cursor.execute("DROP TABLE IF EXISTS cards;")
        cursor.execute("DROP TABLE IF EXISTS decks;")
        cursor.execute("DROP SEQUENCE IF EXISTS card_id_seq;")
        cursor.execute("DROP SEQUENCE IF EXISTS deck_id_seq;")
