"""Decide where the working set comes from: the store, the web, or the fallback list."""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from article_quiz.errors import AcquisitionError
from article_quiz.models import Article, Difficulty, Word

if TYPE_CHECKING:
    from article_quiz.config import Settings
    from article_quiz.db import Database
    from article_quiz.sources.base import WordSource

log = logging.getLogger("article_quiz.acquisition")

FALLBACK_ENTRIES = [
    ("Katze", Article.DIE, "cat"),
    ("Hund", Article.DER, "dog"),
    ("Haus", Article.DAS, "house"),
]


def fallback_words() -> list[Word]:
    return [
        Word(german_word=g, article=a, english_meaning=e, difficulty=Difficulty.BEGINNER)
        for g, a, e in FALLBACK_ENTRIES
    ]


def build_sources(settings: Settings) -> list[WordSource]:
    """Sources configured from settings; none when offline."""
    if os.environ.get("ARTICLE_QUIZ_OFFLINE") or not settings.fetch_on_empty:
        return []
    from article_quiz.sources.leo import LeoSource
    from article_quiz.sources.verbformen import VerbformenSource

    common = {
        "limit": settings.candidate_limit,
        "timeout": settings.request_timeout,
        "user_agent": settings.user_agent,
    }
    return [
        VerbformenSource(settings.verbformen_url, **common),
        LeoSource(settings.leo_url, **common),
    ]


@dataclass
class LoadResult:
    words: list[Word]
    learned: list[Word] = field(default_factory=list)
    error: str | None = None
    origin: str = "store"  # store | network | fallback


def dedupe_words(words: list[Word]) -> list[Word]:
    """Drop repeated entries by value, keeping the first occurrence."""
    seen: set[tuple] = set()
    unique: list[Word] = []
    for w in words:
        if w.value_key in seen:
            continue
        seen.add(w.value_key)
        unique.append(w)
    return unique


async def fetch_all(sources: list[WordSource]) -> list[Word]:
    """Run every source concurrently; one failing source does not stop the others."""
    results = await asyncio.gather(
        *(s.fetch() for s in sources), return_exceptions=True
    )
    merged: list[Word] = []
    failures: list[str] = []
    for source, result in zip(sources, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            log.warning("Source %s failed: %s", source.name(), result)
            failures.append(f"{source.name()}: {result}")
            continue
        merged.extend(result)
    if sources and len(failures) == len(sources):
        raise AcquisitionError("All sources failed (" + "; ".join(failures) + ")")
    unique = dedupe_words(merged)
    log.info("Fetched %d words (%d before de-duplication)", len(unique), len(merged))
    return unique


async def load_words(db: Database, sources: list[WordSource]) -> LoadResult:
    """Load the working set, fetching and saving words when the store is empty.

    Never raises: on any failure the result carries an error message and the
    built-in fallback words, so a session can always start.
    """
    try:
        words = await asyncio.to_thread(db.get_all_words)
        origin = "store"
        if not words:
            log.info("Store is empty, fetching from %d sources", len(sources))
            words = await fetch_all(sources)
            if not words:
                raise AcquisitionError("No words could be fetched from any source")
            await asyncio.to_thread(db.save_words, words)
            origin = "network"
        learned = await asyncio.to_thread(db.get_learned_words)
        return LoadResult(words=words, learned=learned, origin=origin)
    except Exception as e:
        log.error("Failed to load words: %s; using fallback words", e)
        try:
            learned = await asyncio.to_thread(db.get_learned_words)
        except Exception as learned_err:
            log.warning("Failed to load learned words: %s", learned_err)
            learned = []
        return LoadResult(
            words=fallback_words(),
            learned=learned,
            error=f"Failed to load words: {e}",
            origin="fallback",
        )


async def refresh_words(db: Database, sources: list[WordSource]) -> LoadResult:
    """Fetch a fresh set and swap it into the store.

    The store is only touched once the fetch has produced words; if the fetch
    or the swap fails, the stored words and their learned flags are kept.
    """
    try:
        words = await fetch_all(sources)
        if not words:
            raise AcquisitionError("No words could be fetched from any source")
        removed = await asyncio.to_thread(db.replace_words, words)
    except Exception as e:
        log.error("Refresh failed: %s; keeping stored words", e)
        result = await load_words(db, [])
        result.error = f"Failed to refresh words: {e}"
        return result
    log.info("Refreshed word store (%d old words replaced)", removed)
    return LoadResult(words=words, learned=[], origin="network")
