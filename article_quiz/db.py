from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

from article_quiz.errors import IntegrityError, StoreUnavailable, WordNotFound
from article_quiz.models import Article, Difficulty, Word

log = logging.getLogger("article_quiz.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS words (
    id TEXT PRIMARY KEY,
    german_word TEXT NOT NULL CHECK (german_word <> ''),
    article TEXT NOT NULL,
    english_meaning TEXT NOT NULL CHECK (english_meaning <> ''),
    difficulty TEXT NOT NULL,
    learned INTEGER NOT NULL DEFAULT 0
);
"""

COLUMNS = ("id", "german_word", "article", "english_meaning", "difficulty", "learned")

INSERT_WORD = (
    "INSERT INTO words (id, german_word, article, english_meaning, "
    "difficulty, learned) VALUES (?, ?, ?, ?, ?, ?)"
)


def _rows(words: list[Word]) -> list[tuple]:
    rows = []
    for w in words:
        row = w.to_row()
        rows.append(tuple(row[c] for c in COLUMNS))
    return rows


class Database:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        # Calls arrive from worker threads; one connection, one caller at a time
        self._lock = threading.RLock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailable(f"Cannot open word store at {self.db_path}: {e}") from e

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def _guard(self):
        """Serialize access and translate sqlite errors into the store's error types."""
        try:
            with self._lock:
                yield
        except sqlite3.IntegrityError as e:
            raise IntegrityError(str(e)) from e
        except (sqlite3.OperationalError, sqlite3.ProgrammingError) as e:
            raise StoreUnavailable(str(e)) from e

    # ── Writes ────────────────────────────────────────────────────────────

    def save_words(self, words: list[Word]) -> int:
        """Insert every word in one transaction.

        Ids are freshly generated, so a primary-key collision means the
        batch is corrupt: the whole batch is rolled back.
        """
        rows = _rows(words)
        with self._guard(), self.conn:
            self.conn.executemany(INSERT_WORD, rows)
        log.info("Saved %d words", len(rows))
        return len(rows)

    def replace_words(self, words: list[Word]) -> int:
        """Swap the whole store for *words* in one transaction.

        Returns the number of words removed. On failure the old words stay.
        """
        rows = _rows(words)
        with self._guard(), self.conn:
            removed = self.conn.execute("DELETE FROM words").rowcount
            self.conn.executemany(INSERT_WORD, rows)
        log.info("Replaced %d words with %d", removed, len(rows))
        return removed

    def update_learned(self, word_id: str, learned: bool) -> None:
        with self._guard(), self.conn:
            cur = self.conn.execute(
                "UPDATE words SET learned = ? WHERE id = ?",
                (int(learned), word_id),
            )
        if cur.rowcount == 0:
            raise WordNotFound(word_id)

    def clear(self) -> int:
        with self._guard(), self.conn:
            cur = self.conn.execute("DELETE FROM words")
        log.info("Cleared %d words", cur.rowcount)
        return cur.rowcount

    # ── Reads ─────────────────────────────────────────────────────────────

    def get_all_words(self) -> list[Word]:
        with self._guard():
            rows = self.conn.execute("SELECT * FROM words").fetchall()
        return [Word.from_row(r) for r in rows]

    def get_learned_words(self) -> list[Word]:
        with self._guard():
            rows = self.conn.execute(
                "SELECT * FROM words WHERE learned = 1"
            ).fetchall()
        return [Word.from_row(r) for r in rows]

    def get_word_count(self) -> int:
        with self._guard():
            row = self.conn.execute("SELECT COUNT(*) FROM words").fetchone()
        return row[0]

    def get_stats(self) -> dict:
        with self._guard():
            learned = self.conn.execute(
                "SELECT COUNT(*) FROM words WHERE learned = 1"
            ).fetchone()[0]
            by_difficulty = {
                r[0]: r[1] for r in self.conn.execute(
                    "SELECT difficulty, COUNT(*) FROM words GROUP BY difficulty"
                )
            }
            by_article = {
                r[0]: r[1] for r in self.conn.execute(
                    "SELECT article, COUNT(*) FROM words GROUP BY article"
                )
            }
        total = self.get_word_count()
        return {
            "total_words": total,
            "learned_words": learned,
            "unlearned_words": total - learned,
            "by_difficulty": {d.value: by_difficulty.get(d.value, 0) for d in Difficulty},
            "by_article": {a.value: by_article.get(a.value, 0) for a in Article},
        }
