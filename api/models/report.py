"""
Medical report models.

GOVERNANCE:
- Reports are produced by the remote service, never edited locally
- Probabilities are bounded to [0, 1]
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HowCommon(BaseModel):
    """Prevalence information for a possible cause."""

    percentage: Optional[float] = None
    description: Optional[str] = None


class CauseDetail(BaseModel):
    """Expandable detail text of a possible cause."""

    about_this: list[str] = Field(default_factory=list)
    how_common: HowCommon = Field(default_factory=HowCommon)
    what_you_can_do_now: list[str] = Field(default_factory=list)
    warning: Optional[str] = None


class PossibleCause(BaseModel):
    """One entry of the report's differential."""

    id: str
    title: str
    short_description: str = ""
    severity: str  # 'mild', 'moderate', 'severe' or service-specific
    probability: float = Field(..., ge=0.0, le=1.0)
    subtitle: Optional[str] = None
    detail: CauseDetail = Field(default_factory=CauseDetail)


class PatientInfo(BaseModel):
    """Patient descriptors echoed back by the report."""

    name: str
    age: int
    gender: str


class MedicalReport(BaseModel):
    """A generated assessment report."""

    model_config = ConfigDict(frozen=True)

    report_id: str
    assessment_topic: str
    generated_at: datetime
    patient_info: PatientInfo
    summary: list[str] = Field(default_factory=list)
    possible_causes: list[PossibleCause] = Field(default_factory=list)
    advice: list[str] = Field(default_factory=list)
    urgency_level: str
