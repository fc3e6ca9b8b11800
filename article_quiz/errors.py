"""Error types raised across the quiz pipeline."""
from __future__ import annotations


class QuizError(Exception):
    """Base class for every error the application raises on purpose."""


class StoreUnavailable(QuizError):
    """The word store could not be opened, created or written."""


class IntegrityError(QuizError):
    """A persisted record is malformed or a write violated a constraint."""


class WordNotFound(QuizError):
    def __init__(self, word_id: str):
        super().__init__(f"No word with id {word_id}")
        self.word_id = word_id


class NetworkError(QuizError):
    """A source's seed page could not be retrieved."""


class ParseError(QuizError):
    """A source's seed page could not be read as HTML."""


class AcquisitionError(QuizError):
    """No words could be obtained from any source."""


class AnswerRejected(QuizError):
    """An answer was submitted when the session cannot grade one."""
