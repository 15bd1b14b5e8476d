"""
Scratchpad for the assessment in progress.

LIFETIME:
- Cleared wholesale once a report is produced or the assessment is abandoned
- One record per question id, first-added order
"""

import logging

from pydantic import TypeAdapter, ValidationError

from api.models.session import SessionRecord
from storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY = "HA_SESSION_CTX"

_RecordList = TypeAdapter(list[SessionRecord])


class SessionScratchpad:
    """Ephemeral question/answer records of the current assessment."""

    def __init__(self, kv: KeyValueStore, key: str = SESSION_KEY):
        self._kv = kv
        self._key = key

    def add(self, record: SessionRecord) -> None:
        """Store a record, replacing an earlier answer to the same question."""
        records = self._read()
        for index, existing in enumerate(records):
            if existing.question_id == record.question_id:
                records[index] = record
                break
        else:
            records.append(record)
        self._kv.put(self._key, _RecordList.dump_python(records, mode="json"))

    def get_all(self) -> list[SessionRecord]:
        return self._read()

    def clear(self) -> None:
        """Discard every record of the current assessment."""
        self._kv.delete(self._key)

    def _read(self) -> list[SessionRecord]:
        raw = self._kv.get(self._key)
        if raw is None:
            return []
        try:
            return _RecordList.validate_python(raw)
        except ValidationError as exc:
            logger.warning("Session scratchpad unreadable, starting empty: %s", exc)
            return []
