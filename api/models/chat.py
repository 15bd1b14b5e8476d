"""
Chat models.

GOVERNANCE:
- Chat context is derived on demand and never persisted
- At most one report is marked as the one being viewed
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ProfileEntry(BaseModel):
    """Profile answer projected to a question/answer pair."""

    question: str
    answer: str


class ChatReport(BaseModel):
    """Archived report as seen by the conversational assistant."""

    report_id: str
    generated_at: datetime
    is_main: bool = False
    report_data: dict[str, Any] = Field(default_factory=dict)


class ChatContext(BaseModel):
    """Snapshot used to seed a chat session."""

    profile_data: list[ProfileEntry] = Field(default_factory=list)
    reports: list[ChatReport] = Field(default_factory=list)

    @property
    def main_report(self) -> Optional[ChatReport]:
        for report in self.reports:
            if report.is_main:
                return report
        return None


class ChatMessage(BaseModel):
    """A single transcript message."""

    role: Literal["user", "assistant"]
    content: str


class ChatStartRequest(BaseModel):
    """Request to start a chat session."""

    profile_data: list[ProfileEntry] = Field(default_factory=list)
    reports: list[dict[str, Any]] = Field(default_factory=list)


class ChatStartResponse(BaseModel):
    """Response with the chat session and greeting."""

    session_id: str
    message: Optional[str] = None
    is_first: bool = False


class ChatMessageRequest(BaseModel):
    """Request carrying the full transcript."""

    session_id: str
    history: list[ChatMessage]


class ChatMessageResponse(BaseModel):
    """Assistant reply."""

    message: str


class EndChatRequest(BaseModel):
    """Request to discard a chat session."""

    session_id: str
