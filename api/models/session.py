"""
Assessment session models.

LIFETIME:
- SessionRecord lives only until a report is produced or the assessment is abandoned
- ProfileAnswer and StoredReport are durable
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from api.models.question import Answer, Question


class SimpleQA(BaseModel):
    """A human-readable question/answer pair."""

    question: str
    answer: str


class SessionRecord(BaseModel):
    """One question answered within the current assessment."""

    question_id: str
    question_text: str
    answer_text: str
    # Full structured answer, enough to resubmit identical semantics
    answer_payload: Answer
    auto_filled: bool = False


class ProfileAnswer(BaseModel):
    """Last answer given to a reusable question."""

    question_id: str
    question_text: str
    answer_text: str


class StoredReport(BaseModel):
    """Archive row: the report is kept as its serialized JSON."""

    id: str
    generated_at: datetime
    report_json: str


# Wire payloads of the remote assessment service


class AssessmentStartResponse(BaseModel):
    """Response with a new session and its first question."""

    session_id: str
    question: Question


class SubmitAnswerRequest(BaseModel):
    """Request to submit an answer."""

    session_id: str
    question: Question
    answer: Answer


class SubmitAnswerResponse(BaseModel):
    """Response after submitting an answer."""

    session_id: str
    status: Optional[str] = None  # "completed" when done
    question: Optional[Question] = None

    @property
    def completed(self) -> bool:
        """No next question means completion, whatever the status says."""
        return self.status == "completed" or self.question is None


class SubmitReportRequest(BaseModel):
    """Request to generate a report from the collected answers."""

    session_id: Optional[str] = None
    responses: list[SimpleQA] = Field(default_factory=list)


class EndSessionRequest(BaseModel):
    """Request to discard a server-side session."""

    session_id: str
