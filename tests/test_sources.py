"""Tests for the dictionary scrapers, served by httpx.MockTransport."""
from __future__ import annotations

import httpx
import pytest
from bs4 import BeautifulSoup

from article_quiz.errors import NetworkError, ParseError
from article_quiz.models import Article, Difficulty
from article_quiz.sources.base import split_article
from article_quiz.sources.leo import LeoSource, difficulty_from_class
from article_quiz.sources.verbformen import VerbformenSource, difficulty_from_indicator

VERBFORMEN_SEED = "https://www.verbformen.com/declension/nouns/"
LEO_SEED = "https://dict.leo.org/german-english/"

VERBFORMEN_INDEX = """\
<html><body>
<a href="/declension/nouns/">All nouns</a>
<a href="/declension/nouns/Katze.htm">Katze</a>
<a href="/declension/nouns/Hund.htm">Hund</a>
<a href="/declension/nouns/Hund.htm">Hund again</a>
<a href="/declension/nouns/Laufen.htm">Laufen</a>
<a href="/declension/nouns/Missing.htm">Missing</a>
<a href="/declension/nouns/Broken.htm">Broken</a>
<a href="/conjugation/verbs/gehen.htm">gehen</a>
</body></html>
"""

VERBFORMEN_PAGES = {
    "/declension/nouns/Katze.htm": """\
<html><body><h1>die Katze</h1>
<p class="translation">cat</p>
<span class="frequency-indicator">Common word</span></body></html>""",
    "/declension/nouns/Hund.htm": """\
<html><body><h1>Der  Hund</h1>
<p class="translation"> dog </p></body></html>""",
    "/declension/nouns/Laufen.htm": """\
<html><body><h1>Laufen</h1><p class="translation">running</p></body></html>""",
    "/declension/nouns/Missing.htm": """\
<html><body><h1>das Ding</h1></body></html>""",
}

LEO_INDEX = """\
<html><body>
<div class="section-entry" data-frequency-class="2">
  <span class="german-term">das Haus</span><span class="english-term">house</span>
</div>
<div class="section-entry" data-frequency-class="5">
  <span class="german-term">die Zeitung</span><span class="english-term">newspaper</span>
</div>
<div class="section-entry" data-frequency-class="9">
  <span class="german-term">das Gewissen</span><span class="english-term">conscience</span>
</div>
<div class="section-entry">
  <span class="german-term">der Tisch</span><span class="english-term">table</span>
</div>
<div class="section-entry" data-frequency-class="1">
  <span class="german-term">laufen</span><span class="english-term">to run</span>
</div>
<div class="section-entry" data-frequency-class="1">
  <span class="german-term">der Stuhl</span>
</div>
</body></html>
"""


def _verbformen_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/declension/nouns/":
        return httpx.Response(200, text=VERBFORMEN_INDEX)
    if path == "/declension/nouns/Broken.htm":
        return httpx.Response(500, text="server error")
    if path in VERBFORMEN_PAGES:
        return httpx.Response(200, text=VERBFORMEN_PAGES[path])
    return httpx.Response(404)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestSplitArticle:
    def test_basic(self):
        assert split_article("die Katze") == (Article.DIE, "Katze")

    def test_case_insensitive(self):
        assert split_article("DAS Haus") == (Article.DAS, "Haus")

    def test_collapses_whitespace(self):
        assert split_article("der  Kühl schrank") == (Article.DER, "Kühl schrank")

    def test_no_article(self):
        assert split_article("ein Hund") is None

    def test_single_token(self):
        assert split_article("Hund") is None
        assert split_article("") is None


class TestDifficulty:
    def _soup(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "html.parser")

    @pytest.mark.parametrize("text,expected", [
        ("Common", Difficulty.BEGINNER),
        ("Regular use", Difficulty.INTERMEDIATE),
        ("Rare", Difficulty.ADVANCED),
    ])
    def test_indicator_keywords(self, text, expected):
        soup = self._soup(f'<span class="frequency-indicator">{text}</span>')
        assert difficulty_from_indicator(soup) is expected

    def test_indicator_missing(self):
        assert difficulty_from_indicator(self._soup("<p>nothing</p>")) is Difficulty.INTERMEDIATE

    @pytest.mark.parametrize("value,expected", [
        ("1", Difficulty.BEGINNER),
        ("3", Difficulty.BEGINNER),
        ("4", Difficulty.INTERMEDIATE),
        ("6", Difficulty.INTERMEDIATE),
        ("7", Difficulty.ADVANCED),
        ("often", Difficulty.INTERMEDIATE),
    ])
    def test_frequency_class(self, value, expected):
        entry = self._soup(f'<div data-frequency-class="{value}"></div>').div
        assert difficulty_from_class(entry) is expected

    def test_frequency_class_missing(self):
        entry = self._soup("<div></div>").div
        assert difficulty_from_class(entry) is Difficulty.INTERMEDIATE


class TestVerbformenSource:
    @pytest.mark.asyncio
    async def test_fetch(self):
        async with _client(_verbformen_handler) as client:
            words = await VerbformenSource(VERBFORMEN_SEED, client=client).fetch()

        assert [(w.article, w.german_word, w.english_meaning, w.difficulty) for w in words] == [
            (Article.DIE, "Katze", "cat", Difficulty.BEGINNER),
            (Article.DER, "Hund", "dog", Difficulty.INTERMEDIATE),
        ]

    @pytest.mark.asyncio
    async def test_candidates_deduplicated_and_capped(self):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return _verbformen_handler(request)

        async with _client(handler) as client:
            words = await VerbformenSource(VERBFORMEN_SEED, client=client, limit=2).fetch()

        assert requested == [
            "/declension/nouns/",
            "/declension/nouns/Katze.htm",
            "/declension/nouns/Hund.htm",
        ]
        assert len(words) == 2

    @pytest.mark.asyncio
    async def test_seed_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(NetworkError):
                await VerbformenSource(VERBFORMEN_SEED, client=client).fetch()

    @pytest.mark.asyncio
    async def test_seed_error_status(self):
        async with _client(lambda r: httpx.Response(503)) as client:
            with pytest.raises(NetworkError):
                await VerbformenSource(VERBFORMEN_SEED, client=client).fetch()

    @pytest.mark.asyncio
    async def test_seed_empty(self):
        async with _client(lambda r: httpx.Response(200, text="   ")) as client:
            with pytest.raises(ParseError):
                await VerbformenSource(VERBFORMEN_SEED, client=client).fetch()

    @pytest.mark.asyncio
    async def test_iter_words_is_lazy(self):
        async with _client(_verbformen_handler) as client:
            source = VerbformenSource(VERBFORMEN_SEED, client=client)
            words = source.iter_words()
            first = await words.__anext__()
            await words.aclose()
        assert first.german_word == "Katze"


class TestLeoSource:
    @pytest.mark.asyncio
    async def test_fetch(self):
        async with _client(lambda r: httpx.Response(200, text=LEO_INDEX)) as client:
            words = await LeoSource(LEO_SEED, client=client).fetch()

        assert [(w.article, w.german_word, w.english_meaning, w.difficulty) for w in words] == [
            (Article.DAS, "Haus", "house", Difficulty.BEGINNER),
            (Article.DIE, "Zeitung", "newspaper", Difficulty.INTERMEDIATE),
            (Article.DAS, "Gewissen", "conscience", Difficulty.ADVANCED),
            (Article.DER, "Tisch", "table", Difficulty.INTERMEDIATE),
        ]

    @pytest.mark.asyncio
    async def test_limit(self):
        async with _client(lambda r: httpx.Response(200, text=LEO_INDEX)) as client:
            words = await LeoSource(LEO_SEED, client=client, limit=1).fetch()
        assert [w.german_word for w in words] == ["Haus"]

    @pytest.mark.asyncio
    async def test_no_entries(self):
        async with _client(lambda r: httpx.Response(200, text="<html></html>")) as client:
            words = await LeoSource(LEO_SEED, client=client).fetch()
        assert words == []

    @pytest.mark.asyncio
    async def test_seed_unreachable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            with pytest.raises(NetworkError):
                await LeoSource(LEO_SEED, client=client).fetch()
