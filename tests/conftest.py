"""Shared test fixtures."""
from __future__ import annotations

import random

import pytest

from article_quiz.db import Database
from article_quiz.errors import NetworkError
from article_quiz.models import Article, Difficulty, Word


class FakeSource:
    """Stands in for a scraper: returns fixed words or raises."""

    def __init__(self, words: list[Word] | None = None, error: Exception | None = None,
                 label: str = "fake"):
        self.words = words or []
        self.error = error
        self.label = label
        self.call_count = 0

    async def fetch(self) -> list[Word]:
        self.call_count += 1
        if self.error is not None:
            raise self.error
        return list(self.words)

    def name(self) -> str:
        return self.label


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.sqlite3")
    yield db
    db.close()


@pytest.fixture
def sample_words():
    """A small set of Word objects for testing."""
    return [
        Word("Katze", Article.DIE, "cat", Difficulty.BEGINNER),
        Word("Hund", Article.DER, "dog", Difficulty.BEGINNER),
        Word("Haus", Article.DAS, "house", Difficulty.BEGINNER),
        Word("Zeitung", Article.DIE, "newspaper", Difficulty.INTERMEDIATE),
        Word("Gewissen", Article.DAS, "conscience", Difficulty.ADVANCED),
    ]


@pytest.fixture
def populated_db(tmp_db, sample_words):
    """A database pre-loaded with sample words."""
    tmp_db.save_words(sample_words)
    return tmp_db


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


@pytest.fixture
def failing_source():
    return FakeSource(error=NetworkError("seed page unreachable"), label="down")
