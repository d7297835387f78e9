"""
Defines the database schema for Flashdeck using a SQL string constant.
Timestamps are stored as naive UTC and re-attached to UTC when read.
"""

DB_SCHEMA_SQL = """
    CREATE SEQUENCE IF NOT EXISTS deck_id_seq START 1;
    CREATE SEQUENCE IF NOT EXISTS card_id_seq START 1;

    CREATE TABLE IF NOT EXISTS decks (
        id INTEGER PRIMARY KEY DEFAULT nextval('deck_id_seq'),
        title VARCHAR NOT NULL,
        description VARCHAR,
        user_id VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    );

    CREATE TABLE IF NOT EXISTS cards (
        id INTEGER PRIMARY KEY DEFAULT nextval('card_id_seq'),
        deck_id INTEGER NOT NULL,
        front VARCHAR NOT NULL,
        back VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_decks_user_id ON decks (user_id);
    CREATE INDEX IF NOT EXISTS idx_cards_deck_id ON cards (deck_id);
"""
