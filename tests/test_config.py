from pathlib import Path

import pytest
from pydantic import ValidationError

from flashdeck.config import Settings, get_default_db_path, get_settings


def test_defaults():
    settings = get_settings()
    assert settings.db_path == get_default_db_path()
    assert settings.user is None
    assert settings.log_level == "WARNING"
    assert settings.recent_decks_limit == 5


def test_environment_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("FLASHDECK_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("FLASHDECK_USER", "alice")
    monkeypatch.setenv("FLASHDECK_RECENT_DECKS_LIMIT", "3")

    settings = get_settings()

    assert settings.db_path == tmp_path / "env.db"
    assert settings.user == "alice"
    assert settings.recent_decks_limit == 3


def test_dotenv_file_is_read(tmp_path: Path):
    # The autouse fixture runs each test inside its tmpdir.
    (Path.cwd() / ".env").write_text("FLASHDECK_USER=bob\n", encoding="utf-8")
    assert Settings().user == "bob"


def test_recent_decks_limit_must_be_positive(monkeypatch):
    monkeypatch.setenv("FLASHDECK_RECENT_DECKS_LIMIT", "0")
    with pytest.raises(ValidationError):
        get_settings()
