"""Pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from wquiz.app import create_app
from wquiz.config import settings
from wquiz.database import TestStore, init_db
from wquiz.models import WordPair

ANIMALS_CSV = "original,translation\ngato,cat\ncasa,house\ncão,dog\n"


class FirstPick:
    """Random source that always picks the first word of the pool."""

    def randrange(self, stop):
        return 0


@pytest.fixture
def first_pick() -> FirstPick:
    return FirstPick()


@pytest.fixture
def words() -> list[WordPair]:
    return [
        WordPair(id=1, original="gato", translation="cat"),
        WordPair(id=2, original="casa", translation="house"),
    ]


@pytest.fixture
def store(tmp_path) -> TestStore:
    db_path = str(tmp_path / "db" / "test.db")
    init_db(db_path)
    return TestStore(db_path)


@pytest.fixture
def vocab_dir(tmp_path):
    directory = tmp_path / "vocabulary"
    directory.mkdir()
    (directory / "animals.csv").write_text(ANIMALS_CSV, encoding="utf-8")
    return directory


@pytest.fixture
def client(tmp_path, vocab_dir, monkeypatch) -> Generator[TestClient, Any, None]:
    """Create a test client backed by a temporary database and vocabulary."""
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path / "log"))
    app = create_app(db_path=str(tmp_path / "db" / "test.db"), vocab_dir=str(vocab_dir))

    with TestClient(app) as test_client:
        yield test_client
