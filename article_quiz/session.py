"""Quiz session state machine.

A session owns the working set and walks through it in shuffled order,
reshuffling once every word has been shown. After each graded answer the
correct answer stays visible for ``reveal_seconds``; the reveal task then
moves on to the next word. Only one reveal task is ever pending.
"""
from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from article_quiz.acquisition import load_words, refresh_words
from article_quiz.errors import AnswerRejected
from article_quiz.models import Article, Difficulty, QuizMode, Word

if TYPE_CHECKING:
    from article_quiz.db import Database
    from article_quiz.sources.base import WordSource

log = logging.getLogger("article_quiz.session")

REVEAL_SECONDS = 1.5


@dataclass
class Snapshot:
    current_word: Word | None
    quiz_mode: QuizMode
    is_showing_answer: bool
    score: int
    total_questions: int
    is_loading: bool
    error_message: str | None
    learned_words: list[Word] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "current_word": self.current_word.to_dict() if self.current_word else None,
            "quiz_mode": self.quiz_mode.value,
            "quiz_mode_label": self.quiz_mode.label,
            "is_showing_answer": self.is_showing_answer,
            "score": self.score,
            "total_questions": self.total_questions,
            "is_loading": self.is_loading,
            "error_message": self.error_message,
            "learned_words": [w.to_dict() for w in self.learned_words],
        }


@dataclass
class AnswerResult:
    correct: bool
    correct_answer: str
    word: Word


class QuizSession:
    def __init__(
        self,
        db: Database,
        sources: list[WordSource],
        reveal_seconds: float = REVEAL_SECONDS,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.sources = sources
        self.reveal_seconds = reveal_seconds
        self.rng = rng or random.Random()

        self.words: list[Word] = []
        self.current_word: Word | None = None
        self.quiz_mode = QuizMode.ENGLISH_TO_GERMAN
        self.is_showing_answer = False
        self.score = 0
        self.total_questions = 0
        self.is_loading = False
        self.error_message: str | None = None
        self.learned_words: list[Word] = []
        self.origin: str | None = None

        self._cursor = 0
        self._reveal_task: asyncio.Task | None = None
        self._bg_tasks: set[asyncio.Task] = set()
        self._observers: list[Callable[[Snapshot], None]] = []

    # ── Observers ─────────────────────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        return Snapshot(
            current_word=self.current_word,
            quiz_mode=self.quiz_mode,
            is_showing_answer=self.is_showing_answer,
            score=self.score,
            total_questions=self.total_questions,
            is_loading=self.is_loading,
            error_message=self.error_message,
            learned_words=list(self.learned_words),
        )

    def subscribe(self, callback: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Call *callback* with a fresh snapshot after every state change."""
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        if not self._observers:
            return
        snap = self.snapshot()
        for callback in list(self._observers):
            try:
                callback(snap)
            except Exception:
                log.exception("Snapshot observer failed")

    # ── Intents ───────────────────────────────────────────────────────────

    async def start(self) -> Snapshot:
        return await self._load(load_words)

    async def refresh(self) -> Snapshot:
        """Fetch a fresh word set, keeping the current store if the fetch fails."""
        return await self._load(refresh_words)

    async def _load(self, loader) -> Snapshot:
        self._cancel_reveal()
        self.is_loading = True
        self.error_message = None
        self._notify()

        try:
            result = await loader(self.db, self.sources)
        finally:
            self.is_loading = False
        self.words = list(result.words)
        self.learned_words = list(result.learned)
        self.error_message = result.error
        self.origin = result.origin
        log.info("Session loaded %d words from %s", len(self.words), result.origin)

        self._cursor = 0
        self._shuffle()
        self.advance()
        return self.snapshot()

    def toggle_mode(self) -> None:
        self.quiz_mode = self.quiz_mode.toggled()
        self._cancel_reveal()
        self.advance()

    def advance(self) -> None:
        if not self.words:
            self.current_word = None
            self._notify()
            return
        if self._cursor >= len(self.words):
            self._cursor = 0
            self._shuffle()
        self.current_word = self.words[self._cursor]
        self._cursor += 1
        self.total_questions += 1
        self._notify()

    def answer_with_article(self, article: Article | str) -> AnswerResult:
        word = self._gradable(QuizMode.ENGLISH_TO_GERMAN)
        correct = Article(article) == word.article
        return self._grade(word, correct, word.article.value)

    def answer_with_text(self, text: str) -> AnswerResult:
        word = self._gradable(QuizMode.GERMAN_TO_ENGLISH)
        correct = text.lower() == word.english_meaning.lower()
        return self._grade(word, correct, word.english_meaning)

    def reset(self) -> None:
        self._cancel_reveal()
        self.score = 0
        self.total_questions = 0
        self._cursor = 0
        self._shuffle()
        self.advance()

    async def close(self) -> None:
        self._cancel_reveal()
        if self._bg_tasks:
            await asyncio.gather(*self._bg_tasks, return_exceptions=True)

    @property
    def pending_reveal(self) -> asyncio.Task | None:
        return self._reveal_task

    # ── Internals ─────────────────────────────────────────────────────────

    def _shuffle(self) -> None:
        self.rng.shuffle(self.words)

    def _gradable(self, mode: QuizMode) -> Word:
        if self.is_loading:
            raise AnswerRejected("Words are still loading")
        if self.current_word is None:
            raise AnswerRejected("No question is active")
        if self.is_showing_answer:
            raise AnswerRejected("The answer is being shown")
        if self.quiz_mode is not mode:
            raise AnswerRejected(f"Current mode is {self.quiz_mode.label}")
        return self.current_word

    def _grade(self, word: Word, correct: bool, correct_answer: str) -> AnswerResult:
        if correct:
            self.score += 1
            self._mark_learned(word)
        self._begin_reveal()
        return AnswerResult(correct=correct, correct_answer=correct_answer, word=word)

    def _mark_learned(self, word: Word) -> None:
        word.learned = True
        if any(w.id == word.id for w in self.learned_words):
            return
        self.learned_words.append(word)
        task = asyncio.create_task(self._persist_learned(word.id))
        self._bg_tasks.add(task)
        task.add_done_callback(self._bg_tasks.discard)

    async def _persist_learned(self, word_id: str) -> None:
        try:
            await asyncio.to_thread(self.db.update_learned, word_id, True)
        except Exception as e:
            log.warning("Failed to update word status: %s", e)

    def _begin_reveal(self) -> None:
        self._cancel_reveal()
        self.is_showing_answer = True
        self._reveal_task = asyncio.create_task(self._finish_reveal())
        self._notify()

    async def _finish_reveal(self) -> None:
        try:
            await asyncio.sleep(self.reveal_seconds)
        except Exception:
            log.exception("Reveal timer failed, moving on")
        finally:
            # A cancelled task has already been replaced; leave its successor alone
            if self._reveal_task is asyncio.current_task():
                self._reveal_task = None
                self.is_showing_answer = False
        self.advance()

    def _cancel_reveal(self) -> None:
        task, self._reveal_task = self._reveal_task, None
        if task is not None and not task.done():
            task.cancel()
        self.is_showing_answer = False


def learned_view(
    words: list[Word],
    query: str = "",
    difficulty: Difficulty | None = None,
) -> list[Word]:
    """Learned words filtered by difficulty and search text, easiest first."""
    result = list(words)
    if difficulty is not None:
        result = [w for w in result if w.difficulty == difficulty]
    q = query.strip().lower()
    if q:
        result = [
            w for w in result
            if q in w.german_word.lower() or q in w.english_meaning.lower()
        ]
    return sorted(result, key=lambda w: w.difficulty.sort_order)
