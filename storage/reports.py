"""
Durable archive of generated reports.

PERSISTENCE:
- Unique by report id
- Newest first; replacing a report keeps its position
"""

import logging
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from api.models.report import MedicalReport
from api.models.session import StoredReport
from storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

REPORTS_KEY = "HA_REPORTS"

_ReportList = TypeAdapter(list[StoredReport])


class ReportArchive:
    """Ordered collection of reports, keyed by report id."""

    def __init__(self, kv: KeyValueStore, key: str = REPORTS_KEY):
        self._kv = kv
        self._key = key

    def insert(self, report: MedicalReport) -> None:
        """Insert a new report as newest, or replace one with the same id in place."""
        rows = self._read()
        row = StoredReport(
            id=report.report_id,
            generated_at=report.generated_at,
            report_json=report.model_dump_json(),
        )
        for index, existing in enumerate(rows):
            if existing.id == row.id:
                rows[index] = row
                break
        else:
            rows.insert(0, row)
        self._kv.put(self._key, _ReportList.dump_python(rows, mode="json"))

    def get_all(self) -> list[MedicalReport]:
        """All reports, newest first."""
        reports = []
        for row in self._read():
            report = self._load(row)
            if report is not None:
                reports.append(report)
        return reports

    def get(self, report_id: str) -> Optional[MedicalReport]:
        """Get one report by id."""
        for row in self._read():
            if row.id == report_id:
                return self._load(row)
        return None

    def get_latest(self) -> Optional[MedicalReport]:
        """The most recently inserted report."""
        reports = self.get_all()
        return reports[0] if reports else None

    def has_reports(self) -> bool:
        """True if at least one stored report can be read back."""
        return bool(self.get_all())

    def _read(self) -> list[StoredReport]:
        raw = self._kv.get(self._key)
        if raw is None:
            return []
        try:
            return _ReportList.validate_python(raw)
        except ValidationError as exc:
            logger.warning("Report archive unreadable, starting empty: %s", exc)
            return []

    @staticmethod
    def _load(row: StoredReport) -> Optional[MedicalReport]:
        try:
            return MedicalReport.model_validate_json(row.report_json)
        except ValidationError as exc:
            logger.warning("Skipping unreadable report %s: %s", row.id, exc)
            return None
