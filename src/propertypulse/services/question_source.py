"""Question sources: where a feedback session's questions come from.

StaticQuestionSource serves the fixed banks. GeminiQuestionSource asks the
feedback agent and validates what comes back; any failure surfaces as
QuestionSourceUnavailable so the engine can fall back.
"""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from propertypulse.agents.feedback_agent import FeedbackQuestionAgent
from propertypulse.domain.enums import QuestionMode
from propertypulse.domain.schemas import InitialQuestionsPayload, NextQuestionPayload, Question
from propertypulse.services.contracts import ExtractedSignals, NextQuestionResult
from propertypulse.services.feedback_errors import QuestionSourceUnavailable
from propertypulse.services.question_bank import COMPLETION_SUMMARY, fixed_questions

logger = logging.getLogger(__name__)


@dataclass
class QuestionSourceConfig:
    """Explicit configuration for an AI question source."""
    api_key: str = ""
    model_name: str = "gemini-3-flash-preview"
    timeout_seconds: float = 20.0
    max_questions: int = 12


class QuestionSource:
    """Interface shared by all question sources."""

    mode: QuestionMode = QuestionMode.FIXED
    ai_generated: bool = False

    async def generate_initial_questions(
        self, session_type, lead_context: dict | None, property_context: dict | None
    ) -> list[Question]:
        raise NotImplementedError

    async def generate_next_question(
        self,
        session,
        responses,
        latest_response: str,
        lead_context: dict | None,
        property_context: dict | None,
    ) -> NextQuestionResult:
        raise NotImplementedError


class StaticQuestionSource(QuestionSource):
    """The fixed discovery / post-tour questionnaires."""

    mode = QuestionMode.FIXED
    ai_generated = False

    async def generate_initial_questions(self, session_type, lead_context, property_context):
        return fixed_questions(session_type)

    async def generate_next_question(
        self, session, responses, latest_response, lead_context, property_context
    ):
        """Next question in the issued list, or completion once it runs out."""
        issued = list(session.questions or [])
        next_index = session.current_question_index + 1
        if next_index < len(issued):
            return NextQuestionResult(next_question=Question.model_validate(issued[next_index]))
        return NextQuestionResult(is_complete=True, summary=COMPLETION_SUMMARY)


def _session_context(session) -> dict:
    return {
        "id": session.id,
        "sessionType": session.session_type,
        "questions": list(session.questions or []),
        "currentQuestionIndex": session.current_question_index,
    }


def _response_context(responses) -> list[dict]:
    return [
        {"questionText": r.question_text, "responseValue": r.response_value}
        for r in responses
    ]


class GeminiQuestionSource(QuestionSource):
    """Adaptive questions written by the feedback agent."""

    mode = QuestionMode.AI
    ai_generated = True

    def __init__(self, config: QuestionSourceConfig, agent: FeedbackQuestionAgent | None = None):
        self.config = config
        self.agent = agent or FeedbackQuestionAgent(
            api_key=config.api_key,
            model_name=config.model_name,
            timeout_seconds=config.timeout_seconds,
        )

    async def generate_initial_questions(self, session_type, lead_context, property_context):
        result = await self.agent.generate_initial_questions(
            session_type=session_type,
            lead_context=lead_context,
            property_context=property_context,
        )
        if not result.ok:
            raise QuestionSourceUnavailable(result.error)

        data = result.data
        if isinstance(data, list):
            data = {"questions": data}
        try:
            payload = InitialQuestionsPayload.model_validate(data)
        except ValidationError as exc:
            raise QuestionSourceUnavailable(f"Malformed initial questions: {exc}") from exc

        if not payload.questions:
            raise QuestionSourceUnavailable("No initial questions returned")
        return payload.questions

    async def generate_next_question(
        self, session, responses, latest_response, lead_context, property_context
    ):
        result = await self.agent.generate_next_question(
            session=_session_context(session),
            responses=_response_context(responses),
            latest_response=latest_response,
            lead_context=lead_context,
            property_context=property_context,
            max_questions=self.config.max_questions,
        )
        if not result.ok:
            raise QuestionSourceUnavailable(result.error)

        try:
            payload = NextQuestionPayload.model_validate(result.data)
        except ValidationError as exc:
            raise QuestionSourceUnavailable(f"Malformed next question: {exc}") from exc

        if not payload.is_complete and payload.next_question is None:
            raise QuestionSourceUnavailable("Session not complete but no next question given")

        return NextQuestionResult(
            next_question=None if payload.is_complete else payload.next_question,
            extracted_signals=ExtractedSignals(
                budget=payload.discovered_budget,
                move_in_date=payload.proposed_move_in_date,
                interest_level=payload.interest_level,
            ),
            is_complete=payload.is_complete,
            summary=payload.summary,
        )


def build_question_source(settings, mode=None) -> QuestionSource:
    """Build the source for ``mode``, defaulting to the mode configured for new sessions."""
    if QuestionMode(mode or settings.feedback_question_mode) == QuestionMode.AI:
        return GeminiQuestionSource(
            QuestionSourceConfig(
                api_key=settings.gemini_api_key,
                model_name=settings.gemini_model,
                timeout_seconds=settings.question_source_timeout_seconds,
                max_questions=settings.feedback_max_questions,
            )
        )
    return StaticQuestionSource()
