"""
Follow-up conversation seeded from profile and report history.

GOVERNANCE:
- Building the context never writes to any store
- Exactly one report is marked as viewed whenever the archive is non-empty
"""

import logging
from typing import Optional

from api.models.chat import ChatContext, ChatMessage, ChatReport
from assessment.client import AssessmentClient
from storage.profile import ProfileStore
from storage.reports import ReportArchive

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hi! I'm Remy. How can I help you today?"


class ChatContextBuilder:
    """Assembles the chat seed from profile answers and archived reports."""

    def __init__(self, profile: ProfileStore, reports: ReportArchive):
        self._profile = profile
        self._reports = reports

    def build(self, current_report_id: Optional[str] = None) -> ChatContext:
        """
        Snapshot profile and archive for a new chat session.

        Args:
            current_report_id: Report the user is viewing; the newest report
                is used when omitted or unknown

        Returns:
            Chat context with at most one report marked as main
        """
        archived = self._reports.get_all()
        known_ids = {report.report_id for report in archived}
        if current_report_id not in known_ids:
            current_report_id = archived[0].report_id if archived else None

        reports = [
            ChatReport(
                report_id=report.report_id,
                generated_at=report.generated_at,
                is_main=report.report_id == current_report_id,
                report_data=report.model_dump(
                    mode="json",
                    include={"urgency_level", "summary", "possible_causes", "advice"},
                ),
            )
            for report in archived
        ]
        return ChatContext(profile_data=self._profile.get_all(), reports=reports)


class ChatConversation:
    """Transcript of one chat session with the assistant."""

    def __init__(self, client: AssessmentClient):
        self._client = client
        self.session_id: Optional[str] = None
        self.history: list[ChatMessage] = []

    async def start(self, context: ChatContext) -> str:
        """Open the session and return the assistant's greeting."""
        started = await self._client.start_chat(context.profile_data, context.reports)
        self.session_id = started.session_id
        greeting = started.message or DEFAULT_GREETING
        self.history = [ChatMessage(role="assistant", content=greeting)]
        return greeting

    async def send(self, text: str) -> str:
        """
        Send a user message with the full transcript and return the reply.

        The user message stays in the transcript when the call fails.
        """
        content = text.strip()
        if not content:
            raise ValueError("Message must not be blank")
        if self.session_id is None:
            raise RuntimeError("Chat session has not been started")

        self.history.append(ChatMessage(role="user", content=content))
        reply = await self._client.send_chat_message(self.session_id, self.history)
        self.history.append(ChatMessage(role="assistant", content=reply.message))
        return reply.message

    async def end(self) -> None:
        """Discard the server-side session."""
        if self.session_id is None:
            return
        await self._client.end_chat(self.session_id)
        self.session_id = None
