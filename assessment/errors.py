"""Error taxonomy of the assessment client."""

from typing import Optional

from storage.kv import DataCorruptionError

__all__ = [
    "AssessmentError",
    "AnswerValidationError",
    "TransportError",
    "DataCorruptionError",
    "SchemaDriftError",
    "InvalidStateError",
]


class AssessmentError(Exception):
    """Base class for assessment client errors."""


class AnswerValidationError(AssessmentError):
    """Answer is empty or does not match the question's shape."""


class TransportError(AssessmentError):
    """Remote call failed or returned an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SchemaDriftError(AssessmentError):
    """Stored answer text no longer matches any offered option."""


class InvalidStateError(AssessmentError):
    """Operation is not valid in the resolver's current state."""
