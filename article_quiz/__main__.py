"""CLI entry point for article-quiz.

Usage:
  uv run python -m article_quiz serve [--port PORT] [--host HOST] [--offline]
  uv run python -m article_quiz stop
  uv run python -m article_quiz status
  uv run python -m article_quiz fetch
  uv run python -m article_quiz clear
  uv run python -m article_quiz stats
  uv run python -m article_quiz learned
"""
from __future__ import annotations

import asyncio
import os
import signal
import sys
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "stop":
        _stop()
    elif command == "status":
        _status()
    elif command == "fetch":
        _fetch()
    elif command == "clear":
        _clear()
    elif command == "stats":
        _stats()
    elif command == "learned":
        _learned()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, stop, status, fetch, clear, stats, learned")
        sys.exit(1)


def _option(args: list[str], flag: str, default: str) -> str:
    """Value given after *flag*, or *default* when the flag or its value is missing."""
    if flag not in args:
        return default
    at = args.index(flag) + 1
    return args[at] if at < len(args) else default


def _server_pid() -> int | None:
    """PID of the running quiz server, from PID_FILE.

    A file that is unreadable, or that names a process which no longer
    exists, is removed.
    """
    try:
        pid = int(PID_FILE.read_text())
    except FileNotFoundError:
        return None
    except ValueError:
        pid = 0
    if pid > 0 and _process_exists(pid):
        return pid
    PID_FILE.unlink(missing_ok=True)
    return None


def _process_exists(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except (ProcessLookupError, PermissionError):
        return False
    return True


def _stop() -> bool:
    """Send SIGTERM to the quiz server. Returns True if a signal was delivered."""
    pid = _server_pid()
    if pid is None:
        print("No quiz server is running.")
        return False
    PID_FILE.unlink(missing_ok=True)
    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        print(f"Quiz server (PID {pid}) exited before it could be stopped.")
        return False
    print(f"Quiz server (PID {pid}) asked to stop.")
    return True


def _status():
    pid = _server_pid()
    print(f"Quiz server running with PID {pid}." if pid else "No quiz server is running.")


def _serve(args: list[str]):
    import uvicorn

    existing = _server_pid()
    if existing is not None:
        print(f"Quiz server already running with PID {existing}; run 'stop' first.")
        sys.exit(1)

    if "--offline" in args:
        os.environ["ARTICLE_QUIZ_OFFLINE"] = "1"

    port = int(_option(args, "--port", "8766"))
    host = _option(args, "--host", "127.0.0.1")
    PID_FILE.write_text(str(os.getpid()))

    print(f"Starting German Article Quiz on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(
            "article_quiz.app:app",
            host=host,
            port=port,
            reload=False,
            timeout_graceful_shutdown=5,
        )
    finally:
        PID_FILE.unlink(missing_ok=True)
        os.environ.pop("ARTICLE_QUIZ_OFFLINE", None)


def _open_db():
    from article_quiz.config import load_settings
    from article_quiz.db import Database
    from article_quiz.errors import StoreUnavailable

    settings = load_settings()
    try:
        return settings, Database(settings.db_full_path)
    except StoreUnavailable as e:
        print(f"Error: {e}")
        sys.exit(1)


def _fetch():
    from article_quiz.acquisition import build_sources, refresh_words

    settings, db = _open_db()
    sources = build_sources(settings)
    print(f"Fetching words from {len(sources)} sources...")
    result = asyncio.run(refresh_words(db, sources))
    if result.error:
        print(result.error)
        db.close()
        sys.exit(1)
    print(f"Stored {len(result.words)} words")
    db.close()


def _clear():
    _, db = _open_db()
    n = db.clear()
    print(f"Removed {n} words")
    db.close()


def _stats():
    _, db = _open_db()
    s = db.get_stats()
    db.close()

    print(f"Words:    {s['total_words']}")
    print(f"Learned:  {s['learned_words']}")
    print(f"Open:     {s['unlearned_words']}")
    print("By difficulty:")
    for level, n in s["by_difficulty"].items():
        print(f"  {level:<13} {n}")
    print("By article:")
    for article, n in s["by_article"].items():
        print(f"  {article:<13} {n}")


def _learned():
    from article_quiz.session import learned_view

    _, db = _open_db()
    words = learned_view(db.get_learned_words())
    db.close()
    if not words:
        print("No learned words yet.")
        return
    for w in words:
        print(f"{w.article.value} {w.german_word:<24} {w.english_meaning:<24} {w.difficulty.label}")


if __name__ == "__main__":
    main()
