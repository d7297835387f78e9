import sys
import pytest
from pathlib import Path
from typing import Generator, List

from flashdeck.models import Card, CreateDeckInput, Deck
from flashdeck.db import FlashcardDatabase


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    """
    Run each test with the working directory set to its tmpdir, so a stray
    .env or database file never leaks between tests.
    """
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


@pytest.fixture(autouse=True)
def clean_flashdeck_env(monkeypatch):
    """Drop FLASHDECK_* variables from the environment of the test run."""
    for var in (
        "FLASHDECK_DB",
        "FLASHDECK_DB_PATH",
        "FLASHDECK_USER",
        "FLASHDECK_LOG_LEVEL",
        "FLASHDECK_RECENT_DECKS_LIMIT",
    ):
        monkeypatch.delenv(var, raising=False)


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "test_flashdeck.db"


@pytest.fixture(params=["memory", "file"])
def db_manager(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[FlashcardDatabase, None, None]:
    """
    Provide a FlashcardDatabase, either in-memory or file-backed, and close it
    (deleting the file for the file-backed case) on teardown.
    """
    if request.param == "memory":
        db_man = FlashcardDatabase(db_path_memory)
    else:
        db_man = FlashcardDatabase(db_path_file)
    try:
        yield db_man
    finally:
        db_man.close_connection()
        if request.param == "file" and db_path_file.exists():
            try:
                db_path_file.unlink()
            except OSError as e:
                import logging

                logging.warning(
                    f"Error removing temporary DB file in test fixture teardown: {e}"
                )


@pytest.fixture
def initialized_db_manager(db_manager: FlashcardDatabase) -> FlashcardDatabase:
    db_manager.initialize_schema()
    return db_manager


@pytest.fixture
def alice_deck(initialized_db_manager: FlashcardDatabase) -> Deck:
    """A deck titled "Indonesian Animals" owned by user "alice"."""
    return initialized_db_manager.create_deck(
        CreateDeckInput(
            title="Indonesian Animals", description="Everyday animal names"
        ),
        "alice",
    )


# --- Study Fixtures ---
@pytest.fixture
def dog_cat_cards() -> List[Card]:
    """The two-card Dog/Cat deck used by the end-to-end study scenario."""
    return [
        Card(id=1, deck_id=1, front="Dog", back="Anjing"),
        Card(id=2, deck_id=1, front="Cat", back="Kucing"),
    ]


@pytest.fixture
def abc_cards() -> List[Card]:
    return [
        Card(id=10, deck_id=1, front="A front", back="A back"),
        Card(id=20, deck_id=1, front="B front", back="B back"),
        Card(id=30, deck_id=1, front="C front", back="C back"),
    ]
