"""
Answer construction, validation and replay.

GOVERNANCE:
- Invalid answers never reach the network
- Auto-filled answers are rebuilt against the question's current options;
  labels that no longer match are replayed verbatim
"""

import logging
from typing import Optional, Sequence

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
from assessment.errors import AnswerValidationError, SchemaDriftError

logger = logging.getLogger(__name__)

MULTI_CHOICE_SEPARATOR = ", "


def build_answer(
    question: Question,
    text: Optional[str] = None,
    option_id: Optional[str] = None,
    option_ids: Optional[Sequence[str]] = None,
) -> Optional[Answer]:
    """
    Build an answer from raw user input.

    Args:
        question: Question being answered
        text: Typed text for text/number questions
        option_id: Chosen option for single choice questions
        option_ids: Chosen options for multi choice questions

    Returns:
        The answer, or None if the input is empty for the question's shape
    """
    response_type = question.response_type

    if response_type in (ResponseType.TEXT, ResponseType.NUMBER):
        value = (text or "").strip()
        if not value:
            return None
        if response_type == ResponseType.NUMBER:
            return NumberAnswer(value=value)
        return TextAnswer(value=value)

    if response_type == ResponseType.SINGLE_CHOICE:
        if not option_id:
            return None
        option = question.find_option(option_id)
        return SingleChoiceAnswer(
            value=option_id,
            selected_option_id=option_id,
            selected_option_label=option.label if option else option_id,
        )

    ids = list(option_ids or [])
    if not ids:
        return None
    labels = []
    for selected in ids:
        option = question.find_option(selected)
        labels.append(option.label if option else selected)
    return MultiChoiceAnswer(
        value=MULTI_CHOICE_SEPARATOR.join(labels),
        selected_option_ids=ids,
        selected_option_labels=labels,
    )


def validate_answer(question: Question, answer: Answer) -> None:
    """Raise AnswerValidationError if the answer cannot be submitted."""
    if answer.type != question.response_type.value:
        raise AnswerValidationError(
            f"Expected a {question.response_type.value} answer, got {answer.type}"
        )

    if isinstance(answer, (TextAnswer, NumberAnswer)):
        if not answer.value.strip():
            raise AnswerValidationError("Please provide an answer before continuing.")
    elif isinstance(answer, SingleChoiceAnswer):
        if not answer.selected_option_id:
            raise AnswerValidationError("Please select an option.")
    elif isinstance(answer, MultiChoiceAnswer):
        if not answer.selected_option_ids:
            raise AnswerValidationError("Please select at least one option.")
        if len(answer.selected_option_ids) != len(answer.selected_option_labels):
            raise AnswerValidationError("Selected option ids and labels differ in length.")


def human_answer(question: Question, answer: Answer) -> str:
    """Human-readable form of an answer, as stored in the profile."""
    if isinstance(answer, (TextAnswer, NumberAnswer)):
        return answer.value.strip()
    if isinstance(answer, SingleChoiceAnswer):
        option = question.find_option(answer.selected_option_id)
        return option.label if option else answer.selected_option_label
    labels = []
    for option_id, label in zip(answer.selected_option_ids, answer.selected_option_labels):
        option = question.find_option(option_id)
        labels.append(option.label if option else label)
    return MULTI_CHOICE_SEPARATOR.join(labels)


def match_option(question: Question, stored: str) -> ResponseOption:
    """
    Find the offered option a stored answer refers to.

    Matches on label or id; the first match wins when several options qualify.

    Raises:
        SchemaDriftError: no offered option matches
    """
    for option in question.options:
        if option.label == stored or option.id == stored:
            return option
    raise SchemaDriftError(
        f"{stored!r} matches no option of question {question.question_id}"
    )


def _match_or_literal(question: Question, stored: str) -> ResponseOption:
    try:
        return match_option(question, stored)
    except SchemaDriftError as exc:
        logger.info("Replaying stored answer verbatim: %s", exc)
        return ResponseOption(id=stored, label=stored)


def answer_from_stored_text(question: Question, stored: str) -> Answer:
    """Rebuild a submittable answer from a stored human-readable answer."""
    if question.response_type == ResponseType.SINGLE_CHOICE:
        option = _match_or_literal(question, stored)
        return SingleChoiceAnswer(
            value=option.id,
            selected_option_id=option.id,
            selected_option_label=stored,
        )

    if question.response_type == ResponseType.MULTI_CHOICE:
        labels = stored.split(MULTI_CHOICE_SEPARATOR)
        ids = [_match_or_literal(question, label).id for label in labels]
        return MultiChoiceAnswer(
            value=stored,
            selected_option_ids=ids,
            selected_option_labels=labels,
        )

    if question.response_type == ResponseType.NUMBER:
        return NumberAnswer(value=stored)
    return TextAnswer(value=stored)
