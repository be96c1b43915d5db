"""Feedback questionnaire API endpoints.

Start a session, submit answers one question at a time, read sessions
back, and run the post-tour scheduler tick.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from propertypulse.app.config import get_settings
from propertypulse.domain.models import FeedbackResponse, FeedbackSession
from propertypulse.domain.schemas import (
    AbandonSessionRequest,
    FeedbackResponseOut,
    FeedbackSessionList,
    FeedbackSessionOut,
    HealthResponse,
    ReviseResponseRequest,
    SchedulePostTourRequest,
    StartSessionRequest,
    StartSessionResponse,
    SubmitResponseRequest,
    SubmitResponseResult,
)
from propertypulse.infra.database import get_db
from propertypulse.services.feedback_errors import FeedbackError
from propertypulse.services.feedback_session_service import FeedbackSessionService
from propertypulse.services.question_source import QuestionSource, build_question_source

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_question_source() -> QuestionSource:
    """Question source for new sessions, per the configured question mode."""
    return build_question_source(get_settings())


def get_feedback_service(
    db: AsyncSession = Depends(get_db),
    question_source: QuestionSource = Depends(get_question_source),
) -> FeedbackSessionService:
    return FeedbackSessionService(db, question_source=question_source)


async def verify_internal_token(x_internal_token: str = Header(...)):
    """Verify that the request includes a valid internal auth token."""
    settings = get_settings()
    if x_internal_token != settings.internal_token:
        raise HTTPException(status_code=401, detail="Invalid internal token")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _http_error(exc: FeedbackError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


def _serialize_response(r: FeedbackResponse) -> FeedbackResponseOut:
    return FeedbackResponseOut(
        id=r.id,
        session_id=r.session_id,
        sequence=r.sequence,
        question_id=r.question_id,
        question_text=r.question_text,
        question_type=r.question_type,
        response_method=r.response_method,
        response_value=r.response_value,
        response_text=r.response_text,
        ai_generated_question=bool(r.ai_generated_question),
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _serialize_session(
    s: FeedbackSession, responses: Optional[list[FeedbackResponse]] = None
) -> FeedbackSessionOut:
    # Built field by field: touching s.responses would lazy-load outside the greenlet
    return FeedbackSessionOut(
        id=s.id,
        lead_id=s.lead_id,
        property_id=s.property_id,
        session_type=s.session_type,
        question_mode=s.question_mode,
        status=s.status,
        current_question_index=s.current_question_index,
        questions=list(s.questions or []),
        fired_followups=list(s.fired_followups or []),
        preferred_response_method=s.preferred_response_method,
        discovered_budget=s.discovered_budget,
        proposed_move_in_date=s.proposed_move_in_date,
        interest_level=s.interest_level,
        summary=s.summary,
        scheduled_for=s.scheduled_for,
        completed_at=s.completed_at,
        created_at=s.created_at,
        updated_at=s.updated_at,
        responses=[_serialize_response(r) for r in responses] if responses is not None else None,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def feedback_health():
    return HealthResponse(status="ok", service="feedback")


@router.post("/start-session", response_model=StartSessionResponse)
async def start_session(
    body: StartSessionRequest,
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    """Start a discovery or post-tour questionnaire for a lead."""
    try:
        outcome = await service.start_session(
            lead_id=body.lead_id,
            property_id=body.property_id,
            session_type=body.session_type,
        )
    except FeedbackError as exc:
        raise _http_error(exc) from exc

    return StartSessionResponse(
        session_id=outcome.session_id,
        first_question=outcome.first_question,
        initial_questions=outcome.initial_questions,
    )


@router.post("/submit-response", response_model=SubmitResponseResult)
async def submit_response(
    body: SubmitResponseRequest,
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    """Record an answer and return the next question or the closing summary."""
    try:
        outcome = await service.submit_response(
            session_id=body.session_id,
            question_id=body.question_id,
            response_method=body.response_method,
            response_value=body.response_value,
            response_text=body.response_text,
        )
    except FeedbackError as exc:
        raise _http_error(exc) from exc

    return SubmitResponseResult(
        next_question=outcome.next_question,
        is_complete=outcome.is_complete,
        summary=outcome.summary,
        current_question_index=outcome.current_question_index,
        total_questions=outcome.total_questions,
    )


@router.get("/sessions", response_model=FeedbackSessionList)
async def list_sessions(
    lead_id: Optional[int] = Query(None, alias="leadId"),
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    sessions = await service.list_sessions(lead_id)
    return FeedbackSessionList(
        sessions=[_serialize_session(s) for s in sessions],
        count=len(sessions),
    )


@router.get("/sessions/{session_id}", response_model=FeedbackSessionOut)
async def get_session(
    session_id: str,
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    try:
        session, responses = await service.get_session(session_id)
    except FeedbackError as exc:
        raise _http_error(exc) from exc
    return _serialize_session(session, responses)


@router.get("/sessions/{session_id}/responses", response_model=list[FeedbackResponseOut])
async def list_session_responses(
    session_id: str,
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    try:
        responses = await service.list_responses(session_id)
    except FeedbackError as exc:
        raise _http_error(exc) from exc
    return [_serialize_response(r) for r in responses]


@router.put("/sessions/{session_id}/responses/last", response_model=FeedbackResponseOut)
async def revise_last_response(
    session_id: str,
    body: ReviseResponseRequest,
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    """Edit the most recent answer; the question sequence does not move."""
    try:
        response = await service.revise_last_response(
            session_id, body.response_value, body.response_text
        )
    except FeedbackError as exc:
        raise _http_error(exc) from exc
    return _serialize_response(response)


@router.post("/sessions/{session_id}/abandon", response_model=FeedbackSessionOut)
async def abandon_session(
    session_id: str,
    body: Optional[AbandonSessionRequest] = None,
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    try:
        session = await service.abandon_session(session_id, body.reason if body else None)
    except FeedbackError as exc:
        raise _http_error(exc) from exc
    return _serialize_session(session)


@router.post("/schedule-post-tour", response_model=FeedbackSessionOut)
async def schedule_post_tour(
    body: SchedulePostTourRequest,
    service: FeedbackSessionService = Depends(get_feedback_service),
):
    """Queue a post-tour questionnaire that opens after the configured delay."""
    try:
        session = await service.schedule_post_tour_session(
            body.lead_id, body.property_id, body.delay_minutes
        )
    except FeedbackError as exc:
        raise _http_error(exc) from exc
    return _serialize_session(session)


@router.post("/internal/activate-due", dependencies=[Depends(verify_internal_token)])
async def activate_due(service: FeedbackSessionService = Depends(get_feedback_service)):
    """Activate scheduled sessions that are due. Called by the scheduler."""
    activated = await service.activate_due_sessions()
    logger.info("Feedback activation tick: %d activated", len(activated))
    return {"ok": True, "activated": activated}
