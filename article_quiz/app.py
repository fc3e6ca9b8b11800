"""FastAPI application exposing the quiz session."""
from __future__ import annotations

import asyncio
import logging

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from article_quiz.acquisition import build_sources
from article_quiz.config import Settings, apply_settings, load_settings, save_settings
from article_quiz.db import Database
from article_quiz.errors import AnswerRejected, QuizError
from article_quiz.models import Difficulty
from article_quiz.session import QuizSession, learned_view

app = FastAPI(title="German Article Quiz")

# Global state (initialized in startup)
_db: Database | None = None
_settings: Settings | None = None
_session: QuizSession | None = None

log = logging.getLogger("article_quiz.app")


def get_db() -> Database:
    assert _db is not None
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def get_session() -> QuizSession:
    assert _session is not None
    return _session


@app.on_event("startup")
async def startup():
    global _db, _settings, _session
    if _session is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    _db = Database(_settings.db_full_path)
    _session = QuizSession(
        _db,
        build_sources(_settings),
        reveal_seconds=_settings.reveal_seconds,
    )
    await _session.start()


@app.on_event("shutdown")
async def shutdown():
    if _session:
        await _session.close()
    if _db:
        _db.close()


# ── API: Quiz ─────────────────────────────────────────────────────────────

@app.get("/api/quiz")
async def api_quiz():
    return get_session().snapshot().to_dict()


@app.post("/api/quiz/mode")
async def api_toggle_mode():
    session = get_session()
    session.toggle_mode()
    return session.snapshot().to_dict()


@app.post("/api/quiz/answer")
async def api_answer(request: Request):
    try:
        body = await request.json() if await request.body() else {}
    except ValueError:
        raise HTTPException(400, "Answer must be valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(400, "Answer must be a JSON object")
    session = get_session()
    try:
        if body.get("article") is not None:
            result = session.answer_with_article(str(body["article"]).lower())
        elif body.get("text") is not None:
            result = session.answer_with_text(str(body["text"]))
        else:
            raise HTTPException(400, "Provide either 'article' or 'text'")
    except AnswerRejected as e:
        raise HTTPException(409, str(e))
    except ValueError:
        raise HTTPException(400, f"Unknown article: {body.get('article')}")

    return {
        "correct": result.correct,
        "correct_answer": result.correct_answer,
        "snapshot": session.snapshot().to_dict(),
    }


@app.post("/api/quiz/reset")
async def api_reset():
    session = get_session()
    session.reset()
    return session.snapshot().to_dict()


# ── API: Words ────────────────────────────────────────────────────────────

@app.get("/api/learned")
async def api_learned(q: str = "", difficulty: str | None = None):
    level = None
    if difficulty:
        try:
            level = Difficulty(difficulty)
        except ValueError:
            raise HTTPException(400, f"Unknown difficulty: {difficulty}")
    words = learned_view(get_session().learned_words, q, level)
    return {"words": [w.to_dict() for w in words], "count": len(words)}


@app.get("/api/stats")
async def api_stats():
    session = get_session()
    try:
        stats = await asyncio.to_thread(get_db().get_stats)
    except QuizError as e:
        raise HTTPException(503, str(e))
    stats["session_score"] = session.score
    stats["session_questions"] = session.total_questions
    return stats


@app.post("/api/words/refresh")
async def api_refresh_words():
    session = get_session()
    log.info("Refresh requested")
    snapshot = await session.refresh()
    return {"origin": session.origin, "snapshot": snapshot.to_dict()}


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Settings must be valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(400, "Settings must be a JSON object")
    s = get_settings()
    try:
        apply_settings(s, body)
    except ValueError as e:
        raise HTTPException(400, str(e))
    save_settings(s)
    get_session().reveal_seconds = s.reveal_seconds
    return s.to_dict()
