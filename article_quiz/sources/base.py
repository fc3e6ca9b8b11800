"""Shared scraping protocol for dictionary sites.

A source fetches one seed page, picks at most ``limit`` candidates from it
and turns each candidate into a Word. Only the seed page can fail the whole
source; a candidate that cannot be fetched or parsed is logged and dropped.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from bs4 import BeautifulSoup

from article_quiz.errors import NetworkError, ParseError
from article_quiz.models import Article, Difficulty, Word

log = logging.getLogger("article_quiz.sources")

DEFAULT_LIMIT = 50
DEFAULT_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "article-quiz/0.1 (+vocabulary trainer)"


def split_article(text: str) -> tuple[Article, str] | None:
    """Split "die Katze" into (Article.DIE, "Katze").

    Returns None when there is no noun or the first token is not an article.
    """
    parts = text.split(None, 1)
    if len(parts) < 2:
        return None
    try:
        article = Article(parts[0].lower())
    except ValueError:
        return None
    noun = " ".join(parts[1].split())
    return article, noun


class CandidateSkipped(Exception):
    """A candidate lacks a required region; it is dropped, not reported."""


class WordSource(ABC):
    def __init__(
        self,
        seed_url: str,
        client: httpx.AsyncClient | None = None,
        limit: int = DEFAULT_LIMIT,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.seed_url = seed_url
        self.limit = limit
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client

    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def extract_candidates(self, soup: BeautifulSoup) -> list:
        """Pick candidate references out of the parsed seed page."""

    @abstractmethod
    async def parse_candidate(self, client: httpx.AsyncClient, candidate) -> Word:
        """Turn one candidate into a Word or raise to drop it."""

    @asynccontextmanager
    async def _session(self):
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
        ) as client:
            yield client

    async def get_html(self, client: httpx.AsyncClient, url: str) -> BeautifulSoup:
        resp = await client.get(url)
        resp.raise_for_status()
        if not resp.text.strip():
            raise ValueError(f"empty page at {url}")
        return BeautifulSoup(resp.text, "html.parser")

    async def _fetch_seed(self, client: httpx.AsyncClient) -> list:
        try:
            resp = await client.get(self.seed_url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(f"{self.name()}: cannot fetch {self.seed_url}: {e}") from e
        try:
            html = resp.text
        except (UnicodeDecodeError, LookupError) as e:
            raise ParseError(f"{self.name()}: undecodable seed page: {e}") from e
        if not html.strip():
            raise ParseError(f"{self.name()}: empty seed page at {self.seed_url}")
        soup = BeautifulSoup(html, "html.parser")
        return self.extract_candidates(soup)[: self.limit]

    async def iter_words(self) -> AsyncIterator[Word]:
        async with self._session() as client:
            candidates = await self._fetch_seed(client)
            log.info("%s: %d candidates", self.name(), len(candidates))
            for candidate in candidates:
                try:
                    word = await self.parse_candidate(client, candidate)
                except CandidateSkipped as e:
                    log.debug("%s: skipped candidate: %s", self.name(), e)
                    continue
                except Exception as e:
                    log.debug("%s: candidate failed: %s", self.name(), e)
                    continue
                yield word

    async def fetch(self) -> list[Word]:
        words = [w async for w in self.iter_words()]
        log.info("%s: %d words", self.name(), len(words))
        return words


def build_word(article_text: str, meaning: str, difficulty: Difficulty) -> Word:
    """Assemble a Word from extracted regions, raising CandidateSkipped on bad text."""
    split = split_article(article_text)
    if split is None:
        raise CandidateSkipped(f"no article in {article_text!r}")
    meaning = " ".join(meaning.split())
    if not meaning:
        raise CandidateSkipped(f"no meaning for {article_text!r}")
    article, noun = split
    return Word(
        german_word=noun,
        article=article,
        english_meaning=meaning,
        difficulty=difficulty,
    )
