from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import config
from db import database
from main import app
from utils.revise import ReviseSettings
from utils.streaks import StreakLedger


def _write_test_config(config_path: Path) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[app]",
                "environment = \"development\"",
                "",
                "[revise]",
                "deck_name = \"revise\"",
                "streak_threshold = 3",
                "",
                "[backup]",
                "keep = 2",
            ]
        ),
        encoding="utf-8",
    )


@pytest.fixture
def db_env(tmp_path, monkeypatch):
    config_dir = tmp_path / ".hanzifive"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    _write_test_config(config_path)

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "hanzifive.db")
    for name in (
        "HANZIFIVE_ENV",
        "HANZIFIVE_POOL_DECK_ID",
        "HANZIFIVE_REVISE_DECK_NAME",
        "HANZIFIVE_STREAK_THRESHOLD",
    ):
        monkeypatch.delenv(name, raising=False)

    database.init_db()
    return config_dir


@pytest.fixture
def conn(db_env):
    with database.get_conn() as connection:
        yield connection


@pytest.fixture
def ledger(db_env):
    return StreakLedger()


@pytest.fixture
def client(db_env):
    return TestClient(app)


@pytest.fixture
def settings():
    return ReviseSettings(
        deck_name="revise",
        deck_description="Cards that were incorrectly guessed from the total words deck",
        streak_threshold=3,
        pool_deck_id=None,
    )
