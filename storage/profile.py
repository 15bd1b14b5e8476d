"""
Durable profile of reusable answers.

PERSISTENCE:
- One entry per question id, last write wins
- Entries are never removed
"""

import logging
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from api.models.chat import ProfileEntry
from api.models.session import ProfileAnswer
from storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

PROFILE_KEY = "HA_PROFILE_ANSWERS"

_ProfileMap = TypeAdapter(dict[str, ProfileAnswer])


class ProfileStore:
    """Question id -> last human-readable answer, across sessions."""

    def __init__(self, kv: KeyValueStore, key: str = PROFILE_KEY):
        self._kv = kv
        self._key = key

    def set(self, question_id: str, question_text: str, answer_text: str) -> None:
        """Save or overwrite a single profile answer."""
        entries = self._read()
        entries[question_id] = ProfileAnswer(
            question_id=question_id,
            question_text=question_text,
            answer_text=answer_text,
        )
        self._kv.put(self._key, _ProfileMap.dump_python(entries, mode="json"))

    def get(self, question_id: str) -> Optional[ProfileAnswer]:
        """Get one answer by question id."""
        return self._read().get(question_id)

    def get_all(self) -> list[ProfileEntry]:
        """All stored answers as question/answer pairs, in insertion order."""
        return [
            ProfileEntry(question=entry.question_text, answer=entry.answer_text)
            for entry in self._read().values()
        ]

    def has_data(self) -> bool:
        return bool(self._read())

    def _read(self) -> dict[str, ProfileAnswer]:
        raw = self._kv.get(self._key)
        if raw is None:
            return {}
        try:
            return _ProfileMap.validate_python(raw)
        except ValidationError as exc:
            logger.warning("Profile data unreadable, starting empty: %s", exc)
            return {}
