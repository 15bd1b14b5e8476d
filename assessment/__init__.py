"""Assessment flow, answers and remote service client."""

from assessment.answers import (
    answer_from_stored_text,
    build_answer,
    human_answer,
    validate_answer,
)
from assessment.chat import ChatContextBuilder, ChatConversation
from assessment.client import AssessmentClient, AssessmentService
from assessment.errors import (
    AnswerValidationError,
    AssessmentError,
    InvalidStateError,
    SchemaDriftError,
    TransportError,
)
from assessment.resolver import FlowResolver, FlowState

__all__ = [
    "AssessmentClient",
    "AssessmentService",
    "FlowResolver",
    "FlowState",
    "ChatContextBuilder",
    "ChatConversation",
    "build_answer",
    "validate_answer",
    "human_answer",
    "answer_from_stored_text",
    "AssessmentError",
    "AnswerValidationError",
    "TransportError",
    "SchemaDriftError",
    "InvalidStateError",
]
