"""Feedback Question Agent - writes adaptive questionnaire questions with Gemini."""

import logging
from datetime import date

from propertypulse.agents.base import AgentResult, BaseAgent
from propertypulse.agents.prompts.feedback import (
    DISCOVERY_INITIAL_TEMPLATE,
    INITIAL_QUESTIONS_SYSTEM_PROMPT,
    NEXT_QUESTION_SYSTEM_PROMPT,
    NEXT_QUESTION_TEMPLATE,
    POST_TOUR_INITIAL_TEMPLATE,
)
from propertypulse.domain.enums import SessionType
from propertypulse.domain.schemas import InitialQuestionsPayload, NextQuestionPayload

logger = logging.getLogger(__name__)


def _ctx(context: dict | None, key: str, default: str = "unknown") -> str:
    value = (context or {}).get(key)
    return default if value in (None, "") else str(value)


class FeedbackQuestionAgent(BaseAgent):
    """Generates opening and follow-up questions for feedback sessions.

    Returns raw parsed JSON in ``AgentResult.data``; validation against
    the payload schemas is the caller's job.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-3-flash-preview",
        timeout_seconds: float = 20.0,
    ):
        super().__init__(
            agent_name="feedback_questions",
            api_key=api_key,
            model_name=model_name,
            temperature=0.6,
            timeout_seconds=timeout_seconds,
        )

    async def generate_initial_questions(
        self,
        session_type: str,
        lead_context: dict | None,
        property_context: dict | None,
    ) -> AgentResult:
        """Ask for one or two opening questions for a new session."""
        template = (
            DISCOVERY_INITIAL_TEMPLATE
            if SessionType(session_type) == SessionType.DISCOVERY
            else POST_TOUR_INITIAL_TEMPLATE
        )
        prompt = template.format(
            lead_name=_ctx(lead_context, "name", "the prospect"),
            lead_preferences=_ctx(lead_context, "preferences", "none"),
            property_name=_ctx(property_context, "name", "one of our properties"),
            property_address=_ctx(property_context, "address"),
            property_bedrooms=_ctx(property_context, "bedrooms"),
            property_rent=_ctx(property_context, "rent"),
        )

        logger.info("[%s] Generating initial %s questions", self.agent_name, session_type)
        return await self.generate_json(
            prompt=prompt,
            system_instruction=INITIAL_QUESTIONS_SYSTEM_PROMPT,
            response_schema=InitialQuestionsPayload.model_json_schema(by_alias=True),
            lead_id=(lead_context or {}).get("id"),
        )

    async def generate_next_question(
        self,
        session: dict,
        responses: list[dict],
        latest_response: str,
        lead_context: dict | None,
        property_context: dict | None,
        max_questions: int = 12,
    ) -> AgentResult:
        """Ask for the next question plus any budget/timeline/interest signals.

        Args:
            session: Serialised session (id, sessionType, questions...).
            responses: Prior responses as {questionText, responseValue} dicts.
            latest_response: The answer just submitted.
            lead_context: Lead fields (name, preferences...).
            property_context: Property fields (name, address, rent...).
            max_questions: Upper bound on questions per session.
        """
        response_context = "\n".join(
            f"Q: {r.get('questionText')} A: {r.get('responseValue')}" for r in responses
        ) or "(none)"

        prompt = NEXT_QUESTION_TEMPLATE.format(
            session_type=session.get("sessionType", "discovery"),
            property_name=_ctx(property_context, "name", "the property"),
            lead_name=_ctx(lead_context, "name", "the prospect"),
            today=date.today().isoformat(),
            question_count=len(session.get("questions") or []),
            max_questions=max_questions,
            response_context=response_context,
            latest_response=latest_response,
        )

        return await self.generate_json(
            prompt=prompt,
            system_instruction=NEXT_QUESTION_SYSTEM_PROMPT,
            response_schema=NextQuestionPayload.model_json_schema(by_alias=True),
            session_id=session.get("id"),
            lead_id=(lead_context or {}).get("id"),
        )
