"""Unit tests for the static and Gemini question sources."""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from propertypulse.agents.base import AgentResult
from propertypulse.agents.feedback_agent import FeedbackQuestionAgent
from propertypulse.app.config import Settings
from propertypulse.domain.enums import QuestionMode, QuestionType
from propertypulse.services.feedback_errors import QuestionSourceUnavailable
from propertypulse.services.question_bank import COMPLETION_SUMMARY
from propertypulse.services.question_source import (
    GeminiQuestionSource,
    QuestionSourceConfig,
    StaticQuestionSource,
    build_question_source,
)


# ── Helpers ──────────────────────────────────────────────────────────────

LEAD = {"id": 7, "name": "Jordan Lee", "preferences": "2BR, pet friendly"}
PROPERTY = {"id": 3, "name": "Maple Court #4", "address": "123 Maple Ct", "bedrooms": "2 Bedroom", "rent": 2200.0}


def _session(questions=None, index=0):
    return SimpleNamespace(
        id="sess-1",
        session_type="discovery",
        questions=questions or [{"id": "q1", "text": "First?", "type": "open"}],
        current_question_index=index,
    )


def _responses():
    return [SimpleNamespace(question_text="First?", response_value="Something with a yard")]


@pytest.fixture
def gemini_source():
    config = QuestionSourceConfig(api_key="test-key", timeout_seconds=5)
    return GeminiQuestionSource(config, agent=FeedbackQuestionAgent(api_key="test-key"))


# ═══════════════════════════════════════════════════════════════════════
# StaticQuestionSource
# ═══════════════════════════════════════════════════════════════════════


class TestStaticQuestionSource:

    async def test_discovery_bank_in_order(self):
        questions = await StaticQuestionSource().generate_initial_questions("discovery", {}, {})
        assert [q.id for q in questions] == [
            "discovery_property_type",
            "discovery_move_in",
            "discovery_budget",
            "discovery_amenities",
            "discovery_tour_interest",
        ]

    async def test_post_tour_bank(self):
        questions = await StaticQuestionSource().generate_initial_questions("post_tour", {}, {})
        assert len(questions) == 5
        assert questions[0].type == QuestionType.INTEREST_LEVEL

    async def test_next_is_following_issued_question(self):
        issued = [{"id": "a", "text": "A?"}, {"id": "b", "text": "B?", "type": "budget"}]
        result = await StaticQuestionSource().generate_next_question(
            _session(issued, index=0), [], "x", {}, {}
        )
        assert result.is_complete is False
        assert result.next_question.id == "b"
        assert result.extracted_signals.is_empty

    async def test_completes_when_list_exhausted(self):
        issued = [{"id": "a", "text": "A?"}]
        result = await StaticQuestionSource().generate_next_question(
            _session(issued, index=0), [], "x", {}, {}
        )
        assert result.is_complete is True
        assert result.summary == COMPLETION_SUMMARY


# ═══════════════════════════════════════════════════════════════════════
# GeminiQuestionSource
# ═══════════════════════════════════════════════════════════════════════


class TestGeminiInitialQuestions:

    async def test_valid_payload(self, gemini_source):
        mock_result = AgentResult.success(
            data={
                "questions": [
                    {"id": "needs", "text": "What matters most in your next home?", "type": "open"},
                    {"id": "when", "text": "When do you want to move?", "type": "move_in_date",
                     "emojiOptions": ["🚀", "📅"]},
                ]
            },
            tokens_used=120,
            latency_ms=300,
        )
        with patch.object(gemini_source.agent, "generate_json", new_callable=AsyncMock, return_value=mock_result) as mock_gen:
            questions = await gemini_source.generate_initial_questions("discovery", LEAD, PROPERTY)

        assert [q.id for q in questions] == ["needs", "when"]
        assert questions[1].emoji_options == ["🚀", "📅"]
        prompt = mock_gen.call_args.kwargs["prompt"]
        assert "Jordan Lee" in prompt
        assert "Maple Court #4" in prompt

    async def test_bare_list_accepted(self, gemini_source):
        mock_result = AgentResult.success(data=[{"id": "impression", "text": "How was the tour?"}])
        with patch.object(gemini_source.agent, "generate_json", new_callable=AsyncMock, return_value=mock_result):
            questions = await gemini_source.generate_initial_questions("post_tour", LEAD, PROPERTY)
        assert questions[0].id == "impression"
        assert questions[0].type == QuestionType.OPEN

    async def test_unknown_type_coerced_to_open(self, gemini_source):
        mock_result = AgentResult.success(data={"questions": [{"id": "x", "text": "Rate it?", "type": "scale"}]})
        with patch.object(gemini_source.agent, "generate_json", new_callable=AsyncMock, return_value=mock_result):
            questions = await gemini_source.generate_initial_questions("discovery", LEAD, PROPERTY)
        assert questions[0].type == QuestionType.OPEN

    async def test_agent_failure_raises(self, gemini_source):
        with patch.object(
            gemini_source.agent, "generate_json", new_callable=AsyncMock,
            return_value=AgentResult.failure("quota exceeded"),
        ):
            with pytest.raises(QuestionSourceUnavailable):
                await gemini_source.generate_initial_questions("discovery", LEAD, PROPERTY)

    async def test_empty_list_raises(self, gemini_source):
        with patch.object(
            gemini_source.agent, "generate_json", new_callable=AsyncMock,
            return_value=AgentResult.success(data={"questions": []}),
        ):
            with pytest.raises(QuestionSourceUnavailable):
                await gemini_source.generate_initial_questions("discovery", LEAD, PROPERTY)

    async def test_missing_api_key_fails_without_network(self):
        source = GeminiQuestionSource(QuestionSourceConfig(api_key=""))
        with pytest.raises(QuestionSourceUnavailable):
            await source.generate_initial_questions("discovery", LEAD, PROPERTY)


class TestGeminiNextQuestion:

    async def test_next_question_with_signals(self, gemini_source):
        mock_result = AgentResult.success(
            data={
                "nextQuestion": {"id": "budget_probe", "text": "What monthly rent feels right?", "type": "budget"},
                "discoveredBudget": 2400,
                "proposedMoveInDate": "2026-05-01",
                "interestLevel": 8,
                "isComplete": False,
                "summary": None,
            }
        )
        with patch.object(gemini_source.agent, "generate_json", new_callable=AsyncMock, return_value=mock_result) as mock_gen:
            result = await gemini_source.generate_next_question(
                _session(), _responses(), "Something with a yard", LEAD, PROPERTY
            )

        assert result.is_complete is False
        assert result.next_question.id == "budget_probe"
        assert result.extracted_signals.budget == 2400
        assert result.extracted_signals.move_in_date == date(2026, 5, 1)
        assert result.extracted_signals.interest_level == 8
        prompt = mock_gen.call_args.kwargs["prompt"]
        assert "Q: First? A: Something with a yard" in prompt
        assert mock_gen.call_args.kwargs["session_id"] == "sess-1"

    async def test_completion_is_passed_through(self, gemini_source):
        mock_result = AgentResult.success(
            data={"nextQuestion": None, "isComplete": True, "summary": "Thanks, we'll be in touch!"}
        )
        with patch.object(gemini_source.agent, "generate_json", new_callable=AsyncMock, return_value=mock_result):
            result = await gemini_source.generate_next_question(
                _session(), _responses(), "done", LEAD, PROPERTY
            )
        assert result.is_complete is True
        assert result.next_question is None
        assert result.summary == "Thanks, we'll be in touch!"

    async def test_incomplete_without_question_raises(self, gemini_source):
        mock_result = AgentResult.success(data={"nextQuestion": None, "isComplete": False})
        with patch.object(gemini_source.agent, "generate_json", new_callable=AsyncMock, return_value=mock_result):
            with pytest.raises(QuestionSourceUnavailable):
                await gemini_source.generate_next_question(
                    _session(), _responses(), "hmm", LEAD, PROPERTY
                )

    async def test_out_of_range_interest_raises(self, gemini_source):
        mock_result = AgentResult.success(
            data={"nextQuestion": {"text": "Anything else?"}, "interestLevel": 42, "isComplete": False}
        )
        with patch.object(gemini_source.agent, "generate_json", new_callable=AsyncMock, return_value=mock_result):
            with pytest.raises(QuestionSourceUnavailable):
                await gemini_source.generate_next_question(
                    _session(), _responses(), "hmm", LEAD, PROPERTY
                )

    async def test_json_parse_failure_raises(self, gemini_source):
        with patch.object(
            gemini_source.agent, "generate_json", new_callable=AsyncMock,
            return_value=AgentResult.failure("JSON parse error: Expecting value"),
        ):
            with pytest.raises(QuestionSourceUnavailable):
                await gemini_source.generate_next_question(
                    _session(), _responses(), "hmm", LEAD, PROPERTY
                )


# ═══════════════════════════════════════════════════════════════════════
# Builder
# ═══════════════════════════════════════════════════════════════════════


class TestBuildQuestionSource:

    def test_fixed_mode(self):
        source = build_question_source(Settings(_env_file=None, feedback_question_mode="fixed"))
        assert isinstance(source, StaticQuestionSource)
        assert source.mode == QuestionMode.FIXED

    def test_explicit_mode_overrides_configured_mode(self):
        settings = Settings(_env_file=None, feedback_question_mode="ai")
        assert isinstance(build_question_source(settings, mode="fixed"), StaticQuestionSource)
        assert isinstance(
            build_question_source(Settings(_env_file=None), mode=QuestionMode.AI),
            GeminiQuestionSource,
        )

    def test_ai_mode_carries_explicit_config(self):
        settings = Settings(
            _env_file=None,
            feedback_question_mode="ai",
            gemini_api_key="abc",
            question_source_timeout_seconds=7.5,
            feedback_max_questions=9,
        )
        source = build_question_source(settings)
        assert isinstance(source, GeminiQuestionSource)
        assert source.ai_generated is True
        assert source.config.api_key == "abc"
        assert source.agent.api_key == "abc"
        assert source.agent.timeout_seconds == 7.5
        assert source.config.max_questions == 9
