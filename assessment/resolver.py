"""
Adaptive question flow.

Decides for every incoming question whether to ask the user or to answer it
from the profile, and keeps the three stores consistent while doing so.

GOVERNANCE:
- Compulsory (non-reusable) questions are always asked, stale profile entries are ignored
- Auto-fill reads the profile, it never rewrites it
- One remote call in flight at a time; submit() is rejected while one is pending
- Responses arriving after abandon() are dropped without touching any store
- Transport failures end in FAILED with collected answers kept for retry()
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from api.models.question import Answer, Question
from api.models.report import MedicalReport
from api.models.session import SessionRecord, SimpleQA, SubmitAnswerResponse
from assessment.answers import answer_from_stored_text, human_answer, validate_answer
from assessment.client import AssessmentService
from assessment.errors import InvalidStateError, TransportError
from config import get_settings
from storage.profile import ProfileStore
from storage.reports import ReportArchive
from storage.sessions import SessionScratchpad

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    """Resolver state."""

    IDLE = "idle"
    RESOLVING = "resolving"  # auto-filling or waiting on the next question
    AWAITING_USER = "awaiting_user"
    SUBMITTING = "submitting"  # user answer in flight
    COMPLETING = "completing"  # report being generated
    DONE = "done"
    FAILED = "failed"


@dataclass
class _Step:
    """The remote step to repeat on retry()."""

    kind: str  # 'start', 'resolve', 'submit' or 'report'
    question: Optional[Question] = None
    answer: Optional[Answer] = None
    auto_filled: bool = False


class FlowResolver:
    """
    Runs one assessment at a time against the remote question source.

    Args:
        service: Remote assessment service
        profile: Durable reusable answers
        scratchpad: Records of the assessment in progress
        reports: Durable report archive
        max_autofill_depth: Cap on consecutive auto-filled questions
    """

    def __init__(
        self,
        service: AssessmentService,
        profile: ProfileStore,
        scratchpad: SessionScratchpad,
        reports: ReportArchive,
        max_autofill_depth: Optional[int] = None,
    ):
        self._service = service
        self._profile = profile
        self._scratchpad = scratchpad
        self._reports = reports
        self._max_autofill_depth = (
            max_autofill_depth
            if max_autofill_depth is not None
            else get_settings().max_autofill_depth
        )

        self.state = FlowState.IDLE
        self.session_id: Optional[str] = None
        self.question: Optional[Question] = None
        self.error: Optional[TransportError] = None
        self.report: Optional[MedicalReport] = None
        # Scratchpad contents at completion, for hand-off to the report view
        self.completed_records: list[SessionRecord] = []
        self.auto_filled_count = 0
        self.visible_count = 0

        self._answered: list[SimpleQA] = []
        self._failed_step: Optional[_Step] = None
        self._generation = 0

    @property
    def answered(self) -> list[SimpleQA]:
        """Question/answer pairs collected so far in this assessment."""
        return list(self._answered)

    async def begin(self) -> FlowState:
        """Start a new assessment and resolve its first question."""
        if self.state not in (FlowState.IDLE, FlowState.DONE, FlowState.FAILED):
            raise InvalidStateError(f"Cannot begin while {self.state.value}")

        self._generation += 1
        self.session_id = None
        self.question = None
        self.error = None
        self.report = None
        self.completed_records = []
        self.auto_filled_count = 0
        self.visible_count = 0
        self._answered = []
        self._failed_step = None

        leftovers = self._scratchpad.get_all()
        if leftovers:
            logger.info(
                "Discarding %d records of an interrupted assessment", len(leftovers)
            )
            self._scratchpad.clear()

        return await self._start(self._generation)

    async def submit(self, answer: Answer) -> FlowState:
        """
        Submit the user's answer to the current question.

        Raises:
            InvalidStateError: no question is awaiting an answer
            AnswerValidationError: answer is empty or of the wrong shape
        """
        if self.state != FlowState.AWAITING_USER or self.question is None:
            raise InvalidStateError(f"Cannot submit while {self.state.value}")

        question = self.question
        validate_answer(question, answer)

        answer_text = human_answer(question, answer)
        self._scratchpad.add(
            SessionRecord(
                question_id=question.question_id,
                question_text=question.text,
                answer_text=answer_text,
                answer_payload=answer,
            )
        )
        if question.reusable:
            self._profile.set(question.question_id, question.text, answer_text)
        self._answered.append(SimpleQA(question=question.text, answer=answer_text))

        self._transition(FlowState.SUBMITTING)
        return await self._submit_and_continue(question, answer, self._generation)

    async def retry(self) -> FlowState:
        """Repeat the remote step that failed, without collecting anything twice."""
        if self.state != FlowState.FAILED or self._failed_step is None:
            raise InvalidStateError(f"Nothing to retry while {self.state.value}")

        step = self._failed_step
        self._failed_step = None
        self.error = None
        generation = self._generation

        if step.kind == "start":
            return await self._start(generation)
        if step.kind == "resolve":
            return await self._resolve(step.question, generation)
        if step.kind == "report":
            return await self._complete(generation)

        self._transition(FlowState.RESOLVING if step.auto_filled else FlowState.SUBMITTING)
        return await self._submit_and_continue(step.question, step.answer, generation)

    async def abandon(self) -> FlowState:
        """Drop the assessment without a report. Safe while a call is in flight."""
        if self.state == FlowState.DONE:
            return self.state

        self._generation += 1
        session_id = self.session_id
        self._scratchpad.clear()
        self._answered = []
        self._failed_step = None
        self.question = None
        self._transition(FlowState.DONE)

        if session_id:
            await self._service.end_session(session_id)
        return self.state

    async def _start(self, generation: int) -> FlowState:
        self._transition(FlowState.RESOLVING)
        try:
            started = await self._service.start_session()
        except TransportError as e:
            return self._fail(generation, e, _Step("start"))
        if self._stale(generation):
            # Abandoned mid-start: close the session the late reply opened
            await self._service.end_session(started.session_id)
            return self.state

        self.session_id = started.session_id
        return await self._resolve(started.question, generation)

    async def _resolve(self, question: Question, generation: int) -> FlowState:
        self._transition(FlowState.RESOLVING)
        depth = 0
        while True:
            stored = self._profile.get(question.question_id) if question.reusable else None
            if stored is None:
                return self._await_user(question)

            depth += 1
            if depth > self._max_autofill_depth:
                error = TransportError(
                    f"Question source sent more than {self._max_autofill_depth} "
                    "consecutive auto-filled questions"
                )
                return self._fail(generation, error, _Step("resolve", question))

            answer = answer_from_stored_text(question, stored.answer_text)
            logger.debug("Auto-filling %s from profile", question.question_id)
            self._scratchpad.add(
                SessionRecord(
                    question_id=question.question_id,
                    question_text=question.text,
                    answer_text=stored.answer_text,
                    answer_payload=answer,
                    auto_filled=True,
                )
            )
            self._answered.append(
                SimpleQA(question=question.text, answer=stored.answer_text)
            )
            self.auto_filled_count += 1

            response = await self._send(question, answer, generation, auto_filled=True)
            if response is None:
                return self.state
            if response.completed:
                return await self._complete(generation)
            question = response.question

    async def _submit_and_continue(
        self, question: Question, answer: Answer, generation: int
    ) -> FlowState:
        auto_filled = self.state == FlowState.RESOLVING
        response = await self._send(question, answer, generation, auto_filled=auto_filled)
        if response is None:
            return self.state
        if response.completed:
            return await self._complete(generation)
        return await self._resolve(response.question, generation)

    async def _send(
        self, question: Question, answer: Answer, generation: int, auto_filled: bool
    ) -> Optional[SubmitAnswerResponse]:
        """Submit one answer; None means the flow failed or was abandoned."""
        try:
            response = await self._service.submit_answer(self.session_id, question, answer)
        except TransportError as e:
            self._fail(generation, e, _Step("submit", question, answer, auto_filled))
            return None
        if self._stale(generation):
            return None
        return response

    async def _complete(self, generation: int) -> FlowState:
        self._transition(FlowState.COMPLETING)
        self.question = None
        try:
            report = await self._service.generate_report(self.session_id, self.answered)
        except TransportError as e:
            return self._fail(generation, e, _Step("report"))
        if self._stale(generation):
            return self.state

        self._reports.insert(report)
        self.completed_records = self._scratchpad.get_all()
        self._scratchpad.clear()
        self.report = report
        self._transition(FlowState.DONE)

        if self.session_id:
            await self._service.end_session(self.session_id)
        return self.state

    def _await_user(self, question: Question) -> FlowState:
        self.question = question
        self.visible_count += 1
        self._transition(FlowState.AWAITING_USER)
        return self.state

    def _fail(self, generation: int, error: TransportError, step: _Step) -> FlowState:
        if self._stale(generation):
            return self.state
        logger.warning("Assessment %s failed: %s", self.session_id, error)
        self.error = error
        self._failed_step = step
        self._transition(FlowState.FAILED)
        return self.state

    def _stale(self, generation: int) -> bool:
        return generation != self._generation

    def _transition(self, state: FlowState) -> None:
        if state != self.state:
            logger.debug("Assessment %s: %s -> %s", self.session_id, self.state.value, state.value)
        self.state = state
