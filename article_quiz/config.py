from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "db_path": "german_quiz.sqlite3",
    "reveal_seconds": 1.5,
    "candidate_limit": 50,
    "request_timeout": 15.0,
    "user_agent": "article-quiz/0.1 (+vocabulary trainer)",
    "verbformen_url": "https://www.verbformen.com/declension/nouns/",
    "leo_url": "https://dict.leo.org/german-english/",
    "fetch_on_empty": True,
}


@dataclass
class Settings:
    db_path: str = DEFAULTS["db_path"]
    reveal_seconds: float = DEFAULTS["reveal_seconds"]
    candidate_limit: int = DEFAULTS["candidate_limit"]
    request_timeout: float = DEFAULTS["request_timeout"]
    user_agent: str = DEFAULTS["user_agent"]
    verbformen_url: str = DEFAULTS["verbformen_url"]
    leo_url: str = DEFAULTS["leo_url"]
    fetch_on_empty: bool = DEFAULTS["fetch_on_empty"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        p = Path(self.db_path)
        if p.is_absolute():
            return p
        return self.project_root / p

    def to_dict(self) -> dict:
        return {
            "db_path": self.db_path,
            "reveal_seconds": self.reveal_seconds,
            "candidate_limit": self.candidate_limit,
            "request_timeout": self.request_timeout,
            "user_agent": self.user_agent,
            "verbformen_url": self.verbformen_url,
            "leo_url": self.leo_url,
            "fetch_on_empty": self.fetch_on_empty,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def _coerce(name: str, value):
    """Check *value* against the type of the field's default."""
    kind = type(DEFAULTS[name])
    if kind is bool:
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be true or false")
        return value
    if kind is str:
        if not isinstance(value, str) or not value:
            raise ValueError(f"{name} must be a non-empty string")
        return value
    # bool is an int subclass; reject it for numeric fields
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number")
    if kind is int and not isinstance(value, int):
        raise ValueError(f"{name} must be a whole number")
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return kind(value)


def apply_settings(settings: Settings, changes: dict) -> Settings:
    """Update *settings* in place from *changes*, ignoring unknown keys.

    Every known key is checked before any is set, so a bad value leaves
    *settings* untouched. Raises ValueError on the first bad value.
    """
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    checked = {k: _coerce(k, v) for k, v in changes.items() if k in known}
    for k, v in checked.items():
        setattr(settings, k, v)
    return settings


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
