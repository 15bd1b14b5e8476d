"""
Question and answer models.

INVARIANTS:
- Questions are immutable once received
- Answer shape is tagged by `type` and must match the question's response_type
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ResponseType(str, Enum):
    """Answer shape expected by a question."""

    TEXT = "text"  # free text
    NUMBER = "number"  # numeric, carried as text
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"


class ResponseOption(BaseModel):
    """A selectable option of a choice question."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class Question(BaseModel):
    """A question yielded by the remote assessment service."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    text: str
    response_type: ResponseType
    response_options: Optional[list[ResponseOption]] = None
    # Missing flag means "always ask"
    is_compulsory: bool = True

    @property
    def reusable(self) -> bool:
        """Whether the answer may be cached and replayed in later sessions."""
        return not self.is_compulsory

    @property
    def options(self) -> list[ResponseOption]:
        return list(self.response_options or [])

    def find_option(self, option_id: str) -> Optional[ResponseOption]:
        """Return the offered option with the given id, if any."""
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class TextAnswer(BaseModel):
    """Free text answer."""

    type: Literal["text"] = "text"
    value: str


class NumberAnswer(BaseModel):
    """Numeric answer, kept as the text the user typed."""

    type: Literal["number"] = "number"
    value: str


class SingleChoiceAnswer(BaseModel):
    """One chosen option."""

    type: Literal["single_choice"] = "single_choice"
    value: str
    selected_option_id: str
    selected_option_label: str


class MultiChoiceAnswer(BaseModel):
    """A set of chosen options, ids and labels in the same order."""

    type: Literal["multi_choice"] = "multi_choice"
    value: str
    selected_option_ids: list[str]
    selected_option_labels: list[str]


Answer = Annotated[
    Union[TextAnswer, NumberAnswer, SingleChoiceAnswer, MultiChoiceAnswer],
    Field(discriminator="type"),
]
