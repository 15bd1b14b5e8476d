"""Pytest configuration and shared fixtures.

This module provides:
- In-memory key-value store and the three stores built on it
- Question and report factories
- A scripted fake of the remote assessment service
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from api.models.question import Answer, Question, ResponseOption, ResponseType
from api.models.report import MedicalReport, PatientInfo, PossibleCause
from api.models.session import AssessmentStartResponse, SimpleQA, SubmitAnswerResponse
from assessment.errors import TransportError
from storage import MemoryKeyValueStore, ProfileStore, ReportArchive, SessionScratchpad

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


def make_question(
    question_id: str,
    text: str,
    response_type: ResponseType = ResponseType.TEXT,
    options: Optional[list[tuple[str, str]]] = None,
    reusable: bool = False,
) -> Question:
    """Build a question; options are (id, label) pairs."""
    return Question(
        question_id=question_id,
        text=text,
        response_type=response_type,
        response_options=(
            [ResponseOption(id=i, label=label) for i, label in options]
            if options is not None
            else None
        ),
        is_compulsory=not reusable,
    )


def make_report(report_id: str, minutes: int = 0, topic: str = "Headache") -> MedicalReport:
    """Build a report generated `minutes` after BASE_TIME."""
    return MedicalReport(
        report_id=report_id,
        assessment_topic=topic,
        generated_at=BASE_TIME + timedelta(minutes=minutes),
        patient_info=PatientInfo(name="Alex", age=34, gender="Other"),
        summary=[f"Summary of {report_id}"],
        possible_causes=[
            PossibleCause(
                id="c1",
                title="Tension headache",
                severity="mild",
                probability=0.4,
            )
        ],
        advice=["Rest"],
        urgency_level="low",
    )


class FakeAssessmentService:
    """
    Scripted remote service.

    `script` maps a question id to the question returned after it is
    answered; a missing entry or None means completion.
    """

    def __init__(self, first: Question, script: Optional[dict[str, Optional[Question]]] = None):
        self.first = first
        self.script = script or {}
        self.session_counter = 0
        self.submitted: list[tuple[str, Question, Answer]] = []
        self.report_requests: list[list[SimpleQA]] = []
        self.ended: list[str] = []
        # operation name -> errors raised on the next calls, in order
        self.failures: dict[str, list[TransportError]] = {}
        # when set, submit_answer waits on it before replying
        self.submit_gate: Optional[asyncio.Event] = None
        self.submit_started = asyncio.Event()
        # same for start_session and generate_report
        self.start_gate: Optional[asyncio.Event] = None
        self.start_started = asyncio.Event()
        self.report_gate: Optional[asyncio.Event] = None
        self.report_started = asyncio.Event()
        self.report = make_report("report-1")

    def fail(self, operation: str, times: int = 1) -> None:
        self.failures.setdefault(operation, []).extend(
            TransportError(f"{operation} unavailable", status_code=503) for _ in range(times)
        )

    def _maybe_fail(self, operation: str) -> None:
        pending = self.failures.get(operation)
        if pending:
            raise pending.pop(0)

    async def start_session(self) -> AssessmentStartResponse:
        self.start_started.set()
        if self.start_gate is not None:
            await self.start_gate.wait()
        self._maybe_fail("start")
        self.session_counter += 1
        return AssessmentStartResponse(
            session_id=f"session-{self.session_counter}", question=self.first
        )

    async def submit_answer(
        self, session_id: str, question: Question, answer: Answer
    ) -> SubmitAnswerResponse:
        self.submitted.append((session_id, question, answer))
        self.submit_started.set()
        if self.submit_gate is not None:
            await self.submit_gate.wait()
        self._maybe_fail("submit")
        next_question = self.script.get(question.question_id)
        if next_question is None:
            return SubmitAnswerResponse(session_id=session_id, status="completed")
        return SubmitAnswerResponse(session_id=session_id, question=next_question)

    async def generate_report(
        self, session_id: Optional[str], responses: list[SimpleQA]
    ) -> MedicalReport:
        self.report_requests.append(list(responses))
        self.report_started.set()
        if self.report_gate is not None:
            await self.report_gate.wait()
        self._maybe_fail("report")
        return self.report

    async def end_session(self, session_id: str) -> None:
        self.ended.append(session_id)


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def profile(kv) -> ProfileStore:
    return ProfileStore(kv)


@pytest.fixture
def reports(kv) -> ReportArchive:
    return ReportArchive(kv)


@pytest.fixture
def scratchpad(kv) -> SessionScratchpad:
    return SessionScratchpad(kv)


@pytest.fixture
def color_question() -> Question:
    return make_question(
        "q_color",
        "What is your favourite colour?",
        ResponseType.SINGLE_CHOICE,
        options=[("o1", "Blue"), ("o2", "Red")],
        reusable=True,
    )
