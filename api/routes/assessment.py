"""
Assessment routes of the reference service.

GOVERNANCE:
- One question at a time; no question in the response means completion
- Ending an unknown session is not an error
"""

from typing import Optional

from fastapi import APIRouter, HTTPException

from api.models.report import MedicalReport
from api.models.session import (
    AssessmentStartResponse,
    EndSessionRequest,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    SubmitReportRequest,
)
from api.questionnaire import Questionnaire, build_report

router = APIRouter(prefix="/assessment", tags=["assessment"])

# Singleton questionnaire instance
_questionnaire: Optional[Questionnaire] = None


def get_questionnaire() -> Questionnaire:
    """Get or create the questionnaire."""
    global _questionnaire
    if _questionnaire is None:
        _questionnaire = Questionnaire()
    return _questionnaire


@router.get("/start", response_model=AssessmentStartResponse)
def start_assessment():
    """Create a session and return the first question."""
    session_id, question = get_questionnaire().start()
    return AssessmentStartResponse(session_id=session_id, question=question)


@router.post("/answer", response_model=SubmitAnswerResponse)
def submit_answer(request: SubmitAnswerRequest):
    """Record an answer and return the next question or completion."""
    questionnaire = get_questionnaire()
    try:
        next_question = questionnaire.answer(
            request.session_id, request.question.question_id
        )
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if next_question is None:
        return SubmitAnswerResponse(session_id=request.session_id, status="completed")
    return SubmitAnswerResponse(session_id=request.session_id, question=next_question)


@router.post("/report", response_model=MedicalReport)
def generate_report(request: SubmitReportRequest):
    """Generate a report from the collected answers."""
    if not request.responses:
        raise HTTPException(status_code=400, detail="No responses to report on")
    return build_report(request.responses)


@router.post("/end")
def end_assessment(request: EndSessionRequest):
    """Discard a session."""
    get_questionnaire().end(request.session_id)
    return {"status": "ended"}
