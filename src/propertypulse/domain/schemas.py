"""Pydantic v2 schemas for API request/response validation.

Wire format is camelCase (the leasing dashboard's convention); snake_case
field names are accepted on input as well.
"""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from propertypulse.domain.enums import (
    QuestionType,
    ResponseMethod,
    SessionType,
)


class CamelModel(BaseModel):
    """Base model serialising to camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


class Question(CamelModel):
    """A question presented to the prospect."""

    id: str = Field(default_factory=lambda: f"q_{uuid.uuid4().hex[:8]}")
    text: str = Field(min_length=1)
    type: QuestionType = QuestionType.OPEN
    options: list[str] | None = None
    emoji_options: list[str] | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_unknown_type(cls, value):
        # Generated questions sometimes use labels outside the enum
        if isinstance(value, str) and value not in {t.value for t in QuestionType}:
            return QuestionType.OPEN
        return value


# ---------------------------------------------------------------------------
# Feedback sessions
# ---------------------------------------------------------------------------


class StartSessionRequest(CamelModel):
    lead_id: int
    property_id: int | None = None
    session_type: SessionType


class StartSessionResponse(CamelModel):
    session_id: str
    first_question: Question
    initial_questions: list[Question]


class SubmitResponseRequest(CamelModel):
    session_id: str
    question_id: str
    response_method: ResponseMethod
    response_value: str
    response_text: str | None = None


class SubmitResponseResult(CamelModel):
    next_question: Question | None = None
    is_complete: bool
    summary: str | None = None
    current_question_index: int
    total_questions: int


class ReviseResponseRequest(CamelModel):
    response_value: str
    response_text: str | None = None


class AbandonSessionRequest(CamelModel):
    reason: str | None = None


class SchedulePostTourRequest(CamelModel):
    lead_id: int
    property_id: int
    delay_minutes: int | None = Field(default=None, ge=0)


class FeedbackResponseOut(CamelModel):
    id: str
    session_id: str
    sequence: int
    question_id: str
    question_text: str
    question_type: str
    response_method: str
    response_value: str
    response_text: str | None = None
    ai_generated_question: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FeedbackSessionOut(CamelModel):
    id: str
    lead_id: int
    property_id: int | None = None
    session_type: str
    question_mode: str
    status: str
    current_question_index: int
    questions: list[Question] = Field(default_factory=list)
    fired_followups: list[str] = Field(default_factory=list)
    preferred_response_method: str | None = None
    discovered_budget: float | None = None
    proposed_move_in_date: date | None = None
    interest_level: int | None = None
    summary: str | None = None
    scheduled_for: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    responses: list[FeedbackResponseOut] | None = None


class FeedbackSessionList(CamelModel):
    sessions: list[FeedbackSessionOut]
    count: int


# ---------------------------------------------------------------------------
# Question generator structured output
# ---------------------------------------------------------------------------


class InitialQuestionsPayload(CamelModel):
    """Structured output of the opening-question prompt."""

    questions: list[Question] = Field(default_factory=list)


class NextQuestionPayload(CamelModel):
    """Structured output of the next-question prompt."""

    next_question: Question | None = None
    discovered_budget: float | None = Field(default=None, gt=0)
    proposed_move_in_date: date | None = None
    interest_level: int | None = Field(default=None, ge=1, le=10)
    is_complete: bool = False
    summary: str | None = None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
