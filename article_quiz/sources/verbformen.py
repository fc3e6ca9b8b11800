from __future__ import annotations

from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from article_quiz.models import Difficulty, Word
from article_quiz.sources.base import CandidateSkipped, WordSource, build_word

SEED_URL = "https://www.verbformen.com/declension/nouns/"


def difficulty_from_indicator(soup: BeautifulSoup) -> Difficulty:
    """Map the page's frequency label: Common, Regular, anything else."""
    indicator = soup.select_one(".frequency-indicator")
    if indicator is None:
        return Difficulty.INTERMEDIATE
    text = indicator.get_text(" ", strip=True)
    if not text:
        return Difficulty.INTERMEDIATE
    if "Common" in text:
        return Difficulty.BEGINNER
    if "Regular" in text:
        return Difficulty.INTERMEDIATE
    return Difficulty.ADVANCED


class VerbformenSource(WordSource):
    """Noun declension pages: one detail page per candidate link."""

    def __init__(self, seed_url: str = SEED_URL, **kwargs):
        super().__init__(seed_url, **kwargs)

    def name(self) -> str:
        return "verbformen"

    def extract_candidates(self, soup: BeautifulSoup) -> list[str]:
        seen: set[str] = set()
        urls: list[str] = []
        for link in soup.select('a[href*="/declension/nouns/"]'):
            url = urljoin(self.seed_url, link.get("href", ""))
            if url.rstrip("/") == self.seed_url.rstrip("/") or url in seen:
                continue
            seen.add(url)
            urls.append(url)
        return urls

    async def parse_candidate(self, client: httpx.AsyncClient, url: str) -> Word:
        soup = await self.get_html(client, url)
        title = soup.select_one("h1")
        if title is None:
            raise CandidateSkipped(f"no title at {url}")
        translation = soup.select_one(".translation")
        if translation is None:
            raise CandidateSkipped(f"no translation at {url}")
        return build_word(
            title.get_text(" ", strip=True),
            translation.get_text(" ", strip=True),
            difficulty_from_indicator(soup),
        )
