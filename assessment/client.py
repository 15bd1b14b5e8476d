"""
Client for the remote assessment and chat service.

GOVERNANCE:
- Every failure surfaces as TransportError
- Session cleanup calls are best-effort and never raise
"""

import logging
from typing import Any, Optional, Protocol, Sequence, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from api.models.chat import (
    ChatMessage,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatReport,
    ChatStartRequest,
    ChatStartResponse,
    EndChatRequest,
    ProfileEntry,
)
from api.models.question import Answer, Question
from api.models.report import MedicalReport
from api.models.session import (
    AssessmentStartResponse,
    EndSessionRequest,
    SimpleQA,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    SubmitReportRequest,
)
from assessment.errors import TransportError
from config import get_settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AssessmentService(Protocol):
    """Request/response contract the flow resolver depends on."""

    async def start_session(self) -> AssessmentStartResponse: ...

    async def submit_answer(
        self, session_id: str, question: Question, answer: Answer
    ) -> SubmitAnswerResponse: ...

    async def generate_report(
        self, session_id: Optional[str], responses: Sequence[SimpleQA]
    ) -> MedicalReport: ...

    async def end_session(self, session_id: str) -> None: ...


class AssessmentClient:
    """HTTP client for /assessment and /chat endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AssessmentClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # Assessment

    async def start_session(self) -> AssessmentStartResponse:
        """Create a session and return its first question."""
        data = await self._request("GET", "/assessment/start")
        return self._parse(AssessmentStartResponse, data)

    async def submit_answer(
        self, session_id: str, question: Question, answer: Answer
    ) -> SubmitAnswerResponse:
        """Submit an answer and get the next question or completion."""
        body = SubmitAnswerRequest(session_id=session_id, question=question, answer=answer)
        data = await self._request("POST", "/assessment/answer", body)
        return self._parse(SubmitAnswerResponse, data)

    async def generate_report(
        self, session_id: Optional[str], responses: Sequence[SimpleQA]
    ) -> MedicalReport:
        """Send every collected Q&A pair and receive the report."""
        body = SubmitReportRequest(session_id=session_id, responses=list(responses))
        data = await self._request("POST", "/assessment/report", body)
        return self._parse(MedicalReport, data)

    async def end_session(self, session_id: str) -> None:
        """Discard the server-side session. Best-effort."""
        try:
            await self._request(
                "POST", "/assessment/end", EndSessionRequest(session_id=session_id)
            )
        except TransportError as e:
            logger.warning("Ending session %s failed: %s", session_id, e)

    # Chat

    async def start_chat(
        self, profile_data: Sequence[ProfileEntry], reports: Sequence[ChatReport]
    ) -> ChatStartResponse:
        """Begin a chat seeded with profile and report data."""
        body = ChatStartRequest(
            profile_data=list(profile_data),
            reports=[report.model_dump(mode="json") for report in reports],
        )
        data = await self._request("POST", "/chat/start", body)
        return self._parse(ChatStartResponse, data)

    async def send_chat_message(
        self, session_id: str, history: Sequence[ChatMessage]
    ) -> ChatMessageResponse:
        """Send the full transcript and get the assistant's reply."""
        body = ChatMessageRequest(session_id=session_id, history=list(history))
        data = await self._request("POST", "/chat/message", body)
        return self._parse(ChatMessageResponse, data)

    async def end_chat(self, session_id: str) -> None:
        """Discard the server-side chat session. Best-effort."""
        try:
            await self._request("POST", "/chat/end", EndChatRequest(session_id=session_id))
        except TransportError as e:
            logger.warning("Ending chat %s failed: %s", session_id, e)

    async def _request(
        self, method: str, path: str, body: Optional[BaseModel] = None
    ) -> Any:
        try:
            response = await self._http.request(
                method,
                path,
                json=body.model_dump(mode="json") if body is not None else None,
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            logger.warning("%s %s returned %s", method, path, response.status_code)
            raise TransportError(
                f"API error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {path} returned invalid JSON", status_code=response.status_code
            ) from e

    @staticmethod
    def _parse(model: type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"Malformed {model.__name__} response: {e}") from e
