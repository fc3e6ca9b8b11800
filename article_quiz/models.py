from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from article_quiz.errors import IntegrityError


class Article(str, Enum):
    DER = "der"
    DIE = "die"
    DAS = "das"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def sort_order(self) -> int:
        return _DIFFICULTY_ORDER[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def __lt__(self, other):
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.sort_order < other.sort_order


_DIFFICULTY_ORDER = {
    Difficulty.BEGINNER: 0,
    Difficulty.INTERMEDIATE: 1,
    Difficulty.ADVANCED: 2,
}


class QuizMode(str, Enum):
    ENGLISH_TO_GERMAN = "english_to_german"
    GERMAN_TO_ENGLISH = "german_to_english"

    @property
    def label(self) -> str:
        if self is QuizMode.ENGLISH_TO_GERMAN:
            return "English → German"
        return "German → English"

    def toggled(self) -> QuizMode:
        if self is QuizMode.ENGLISH_TO_GERMAN:
            return QuizMode.GERMAN_TO_ENGLISH
        return QuizMode.ENGLISH_TO_GERMAN


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Word:
    german_word: str
    article: Article
    english_meaning: str
    difficulty: Difficulty
    learned: bool = False
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        if not self.german_word or not self.german_word.strip():
            raise ValueError("german_word must not be empty")
        if not self.english_meaning or not self.english_meaning.strip():
            raise ValueError("english_meaning must not be empty")
        # Accepts either the enum member or its string tag
        self.article = Article(self.article)
        self.difficulty = Difficulty(self.difficulty)
        self.learned = bool(self.learned)

    @property
    def value_key(self) -> tuple[str, Article, str, Difficulty]:
        """The fields that make two words the same entry, ignoring id and learned."""
        return (self.german_word, self.article, self.english_meaning, self.difficulty)

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "german_word": self.german_word,
            "article": self.article.value,
            "english_meaning": self.english_meaning,
            "difficulty": self.difficulty.value,
            "learned": int(self.learned),
        }

    @classmethod
    def from_row(cls, row) -> Word:
        """Build a Word from a stored row (sqlite3.Row or mapping).

        Unknown enum tags are corruption, never defaulted.
        """
        try:
            article = Article(row["article"])
        except ValueError:
            raise IntegrityError(
                f"Word {row['id']}: unknown article {row['article']!r}"
            ) from None
        try:
            difficulty = Difficulty(row["difficulty"])
        except ValueError:
            raise IntegrityError(
                f"Word {row['id']}: unknown difficulty {row['difficulty']!r}"
            ) from None
        try:
            return cls(
                id=row["id"],
                german_word=row["german_word"],
                article=article,
                english_meaning=row["english_meaning"],
                difficulty=difficulty,
                learned=bool(row["learned"]),
            )
        except ValueError as e:
            raise IntegrityError(f"Word {row['id']}: {e}") from None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "german_word": self.german_word,
            "article": self.article.value,
            "english_meaning": self.english_meaning,
            "difficulty": self.difficulty.value,
            "learned": self.learned,
        }
