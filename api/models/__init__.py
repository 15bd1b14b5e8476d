"""API models."""

from api.models.chat import (
    ChatContext,
    ChatMessage,
    ChatReport,
    ChatStartRequest,
    ChatStartResponse,
    ProfileEntry,
)
from api.models.question import (
    Answer,
    MultiChoiceAnswer,
    NumberAnswer,
    Question,
    ResponseOption,
    ResponseType,
    SingleChoiceAnswer,
    TextAnswer,
)
from api.models.report import MedicalReport, PossibleCause
from api.models.session import (
    AssessmentStartResponse,
    SessionRecord,
    SimpleQA,
    SubmitAnswerResponse,
)

__all__ = [
    "Answer",
    "TextAnswer",
    "NumberAnswer",
    "SingleChoiceAnswer",
    "MultiChoiceAnswer",
    "Question",
    "ResponseOption",
    "ResponseType",
    "MedicalReport",
    "PossibleCause",
    "SessionRecord",
    "SimpleQA",
    "AssessmentStartResponse",
    "SubmitAnswerResponse",
    "ChatContext",
    "ChatMessage",
    "ChatReport",
    "ChatStartRequest",
    "ChatStartResponse",
    "ProfileEntry",
]
