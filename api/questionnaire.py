"""
Scripted questionnaire behind the reference service.

GOVERNANCE:
- Deterministic questions only
- Reports are derived from the submitted answers, no model inference
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from api.models.question import Question, ResponseOption, ResponseType
from api.models.report import CauseDetail, HowCommon, MedicalReport, PatientInfo, PossibleCause
from api.models.session import SimpleQA

QUESTIONS: list[Question] = [
    Question(
        question_id="q_name",
        text="What is your name?",
        response_type=ResponseType.TEXT,
        is_compulsory=False,
    ),
    Question(
        question_id="q_age",
        text="What is your age?",
        response_type=ResponseType.NUMBER,
        is_compulsory=False,
    ),
    Question(
        question_id="q_gender",
        text="What is your gender?",
        response_type=ResponseType.SINGLE_CHOICE,
        response_options=[
            ResponseOption(id="g_female", label="Female"),
            ResponseOption(id="g_male", label="Male"),
            ResponseOption(id="g_other", label="Other"),
        ],
        is_compulsory=False,
    ),
    Question(
        question_id="q_symptoms",
        text="Which symptoms are you experiencing?",
        response_type=ResponseType.MULTI_CHOICE,
        response_options=[
            ResponseOption(id="s_headache", label="Headache"),
            ResponseOption(id="s_fever", label="Fever"),
            ResponseOption(id="s_cough", label="Cough"),
            ResponseOption(id="s_fatigue", label="Fatigue"),
        ],
        is_compulsory=True,
    ),
    Question(
        question_id="q_duration",
        text="How long have you had these symptoms?",
        response_type=ResponseType.SINGLE_CHOICE,
        response_options=[
            ResponseOption(id="d_days", label="Less than a week"),
            ResponseOption(id="d_weeks", label="1-4 weeks"),
            ResponseOption(id="d_months", label="More than a month"),
        ],
        is_compulsory=True,
    ),
]

_CAUSES = {
    "Fever": ("Viral infection", "moderate", 0.55),
    "Cough": ("Upper respiratory tract infection", "mild", 0.45),
    "Headache": ("Tension headache", "mild", 0.35),
    "Fatigue": ("Sleep deprivation", "mild", 0.25),
}


class Questionnaire:
    """Server-side sessions walking through QUESTIONS in order."""

    def __init__(self, questions: Optional[list[Question]] = None):
        self.questions = questions or QUESTIONS
        self._sessions: dict[str, int] = {}

    def start(self) -> tuple[str, Question]:
        """Create a session and return its first question."""
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = 0
        return session_id, self.questions[0]

    def answer(self, session_id: str, question_id: str) -> Optional[Question]:
        """
        Record that a question was answered.

        Returns:
            Next question, or None if the questionnaire is complete
        """
        if session_id not in self._sessions:
            raise KeyError(f"Session {session_id} not found")
        index = self._index_of(question_id)
        self._sessions[session_id] = index + 1
        if index + 1 >= len(self.questions):
            return None
        return self.questions[index + 1]

    def end(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def _index_of(self, question_id: str) -> int:
        for index, question in enumerate(self.questions):
            if question.question_id == question_id:
                return index
        raise ValueError(f"Unknown question {question_id}")


def build_report(responses: list[SimpleQA]) -> MedicalReport:
    """Derive a report from answered question/answer pairs."""
    answers = {qa.question: qa.answer for qa in responses}
    name = answers.get("What is your name?", "Unknown")
    try:
        age = int(float(answers.get("What is your age?", "0")))
    except (ValueError, OverflowError):
        age = 0
    gender = answers.get("What is your gender?", "Unspecified")
    symptoms = [
        s for s in answers.get("Which symptoms are you experiencing?", "").split(", ") if s
    ]

    causes = []
    for symptom in symptoms:
        if symptom not in _CAUSES:
            continue
        title, severity, probability = _CAUSES[symptom]
        causes.append(
            PossibleCause(
                id=f"cause_{len(causes) + 1}",
                title=title,
                short_description=f"Commonly associated with {symptom.lower()}.",
                severity=severity,
                probability=probability,
                detail=CauseDetail(
                    about_this=[f"{title} often presents with {symptom.lower()}."],
                    how_common=HowCommon(description="Common"),
                    what_you_can_do_now=["Rest and stay hydrated."],
                ),
            )
        )
    causes.sort(key=lambda cause: cause.probability, reverse=True)

    urgency = "medium" if any(c.severity == "moderate" for c in causes) else "low"
    return MedicalReport(
        report_id=str(uuid.uuid4()),
        assessment_topic=", ".join(symptoms) or "General check-up",
        generated_at=datetime.now(timezone.utc),
        patient_info=PatientInfo(name=name, age=age, gender=gender),
        summary=[f"{qa.question} {qa.answer}" for qa in responses],
        possible_causes=causes,
        advice=["Consult a healthcare provider if symptoms persist or worsen."],
        urgency_level=urgency,
    )
