from __future__ import annotations

import httpx
from bs4 import BeautifulSoup, Tag

from article_quiz.models import Difficulty, Word
from article_quiz.sources.base import CandidateSkipped, WordSource, build_word

SEED_URL = "https://dict.leo.org/german-english/"


def difficulty_from_class(entry: Tag) -> Difficulty:
    """Frequency classes 1-3 are beginner, 4-6 intermediate, higher advanced."""
    raw = entry.get("data-frequency-class")
    if raw is None:
        return Difficulty.INTERMEDIATE
    try:
        freq = int(str(raw).strip())
    except ValueError:
        return Difficulty.INTERMEDIATE
    if 1 <= freq <= 3:
        return Difficulty.BEGINNER
    if 4 <= freq <= 6:
        return Difficulty.INTERMEDIATE
    return Difficulty.ADVANCED


class LeoSource(WordSource):
    """Dictionary entries listed inline on the seed page."""

    def __init__(self, seed_url: str = SEED_URL, **kwargs):
        super().__init__(seed_url, **kwargs)

    def name(self) -> str:
        return "leo"

    def extract_candidates(self, soup: BeautifulSoup) -> list[Tag]:
        return soup.select(".section-entry")

    async def parse_candidate(self, client: httpx.AsyncClient, entry: Tag) -> Word:
        german = entry.select_one(".german-term")
        if german is None:
            raise CandidateSkipped("entry without .german-term")
        english = entry.select_one(".english-term")
        if english is None:
            raise CandidateSkipped("entry without .english-term")
        return build_word(
            german.get_text(" ", strip=True),
            english.get_text(" ", strip=True),
            difficulty_from_class(entry),
        )
