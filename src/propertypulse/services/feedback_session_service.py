"""Feedback Session Engine.

Drives one prospect through a bounded, adaptive questionnaire: issues
questions, records answers, extracts budget / move-in / interest signals
and decides when the session is complete.

Fixed-mode sessions issue the whole bank up front and append follow-ups
from the keyword rules once it runs out. AI-mode sessions issue one
question at a time and let the question source decide when to stop. A
failing source never strands a session: it is completed with the
fallback summary instead.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from propertypulse.app.config import get_settings
from propertypulse.domain.enums import (
    LeadInteractionType,
    QuestionMode,
    SessionStatus,
    SessionType,
)
from propertypulse.domain.models import FeedbackResponse, FeedbackSession
from propertypulse.domain.schemas import Question
from propertypulse.services.contracts import (
    ExtractedSignals,
    NextQuestionResult,
    ResponsePayload,
    StartOutcome,
    SubmitOutcome,
)
from propertypulse.services.feedback_errors import (
    ConcurrentSessionUpdate,
    DuplicateResponse,
    EmptyResponse,
    NothingToRevise,
    QuestionMismatch,
    QuestionSourceUnavailable,
    SessionCreationFailed,
    SessionNotFound,
)
from propertypulse.services.followup_rules import plan_followups
from propertypulse.services.lead_directory import LeadDirectory, lead_context, property_context
from propertypulse.services.question_bank import (
    COMPLETION_SUMMARY,
    FALLBACK_SUMMARY,
    fallback_opener,
)
from propertypulse.services.question_source import QuestionSource, build_question_source
from propertypulse.services.session_state_machine import SessionStateMachine
from propertypulse.services.session_store import FeedbackSessionStore
from propertypulse.services.signal_extractor import extract_signals, resolve_preferred_method

logger = logging.getLogger(__name__)


def _issued_entry(question: Question, ai_generated: bool) -> dict:
    entry = question.model_dump(mode="json", exclude_none=True)
    entry["ai_generated"] = ai_generated
    return entry


def _unique_id(question: Question, issued: list[dict]) -> Question:
    """Generated questions may reuse an id already issued in this session."""
    taken = {q["id"] for q in issued}
    if question.id not in taken:
        return question
    suffix = 2
    while f"{question.id}_{suffix}" in taken:
        suffix += 1
    return question.model_copy(update={"id": f"{question.id}_{suffix}"})


class FeedbackSessionService:
    """Feedback questionnaire engine bound to one database session."""

    def __init__(
        self,
        db: AsyncSession,
        question_source: QuestionSource | None = None,
        settings=None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        # New sessions use self.source; existing ones keep the mode they were created with
        self.source = question_source or build_question_source(self.settings)
        self._sources = {self.source.mode: self.source}
        self.store = FeedbackSessionStore(db)
        self.directory = LeadDirectory(db)
        self.state_machine = SessionStateMachine()
        self.timeout_seconds = self.settings.question_source_timeout_seconds
        self.max_questions = self.settings.feedback_max_questions

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _unit_of_work(self, session_id: str | None = None):
        """Commit on success; roll back and translate version conflicts."""
        try:
            yield
            await self.db.commit()
        except StaleDataError as exc:
            await self.db.rollback()
            logger.warning("Concurrent update on feedback session %s: %s", session_id, exc)
            raise ConcurrentSessionUpdate(session_id) from exc
        except Exception:
            await self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Session creation
    # ------------------------------------------------------------------

    async def _resolve_participants(self, lead_id, property_id, session_type):
        try:
            session_type = SessionType(session_type)
        except ValueError as exc:
            raise SessionCreationFailed(f"Unknown session type: {session_type}") from exc

        if lead_id is None:
            raise SessionCreationFailed("lead_id is required")
        if session_type == SessionType.POST_TOUR and property_id is None:
            raise SessionCreationFailed("property_id is required for post_tour sessions")

        lead = await self.directory.get_lead(lead_id)
        if lead is None:
            raise SessionCreationFailed(f"Lead {lead_id} not found")

        prop = None
        if property_id is not None:
            prop = await self.directory.get_property(property_id)
            if prop is None:
                raise SessionCreationFailed(f"Property {property_id} not found")

        return session_type, lead, prop

    def _source_for(self, question_mode) -> QuestionSource:
        """Question source for a session's stored mode."""
        mode = QuestionMode(question_mode)
        if mode not in self._sources:
            self._sources[mode] = build_question_source(self.settings, mode=mode)
        return self._sources[mode]

    async def _call_source(self, coro, session_id: str | None):
        """Await a question-source call under the timeout.

        Returns None when the source failed in any way.
        """
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Question source timed out after %ss (session %s)",
                self.timeout_seconds, session_id,
            )
        except QuestionSourceUnavailable as exc:
            logger.warning("Question source unavailable (session %s): %s", session_id, exc)
        except Exception as exc:
            logger.warning(
                "Question source raised %s (session %s): %s",
                type(exc).__name__, session_id, exc,
            )
        return None

    async def _opening_questions(
        self, source: QuestionSource, session_type: SessionType, lead, prop
    ) -> list[dict]:
        """Questions issued when a session becomes active."""
        if source.mode == QuestionMode.FIXED:
            questions = await source.generate_initial_questions(
                session_type.value, lead_context(lead), property_context(prop)
            )
            return [_issued_entry(q, False) for q in questions]

        questions = await self._call_source(
            source.generate_initial_questions(
                session_type.value, lead_context(lead), property_context(prop)
            ),
            session_id=None,
        )
        if not questions:
            logger.info("Using fallback %s opener", session_type.value)
            return [_issued_entry(fallback_opener(session_type), False)]
        # Later AI questions come one at a time from generate_next_question
        return [_issued_entry(questions[0], source.ai_generated)]

    async def start_session(self, lead_id, property_id, session_type) -> StartOutcome:
        """Create an active session and issue its opening question(s).

        Raises:
            SessionCreationFailed: lead/property missing or unresolvable.
        """
        session_type, lead, prop = await self._resolve_participants(
            lead_id, property_id, session_type
        )
        issued = await self._opening_questions(self.source, session_type, lead, prop)

        async with self._unit_of_work():
            session = await self.store.create_session(
                lead_id=lead.id,
                property_id=prop.id if prop else None,
                session_type=session_type.value,
                question_mode=self.source.mode.value,
                status=SessionStatus.ACTIVE.value,
                questions=issued,
            )
            await self.directory.log_interaction(
                lead.id,
                LeadInteractionType.FEEDBACK_STARTED.value,
                f"Started {session_type.value} feedback session",
                {"session_id": session.id, "property_id": session.property_id},
            )

        questions = [Question.model_validate(q) for q in issued]
        return StartOutcome(
            session_id=session.id,
            first_question=questions[0],
            initial_questions=questions,
        )

    async def schedule_post_tour_session(
        self,
        lead_id,
        property_id,
        delay_minutes: int | None = None,
        now: datetime | None = None,
    ) -> FeedbackSession:
        """Create a post-tour session that activates ``delay_minutes`` from now."""
        session_type, lead, prop = await self._resolve_participants(
            lead_id, property_id, SessionType.POST_TOUR
        )
        if delay_minutes is None:
            delay_minutes = self.settings.post_tour_delay_minutes
        now = now or datetime.now(timezone.utc)
        scheduled_for = now + timedelta(minutes=delay_minutes)

        async with self._unit_of_work():
            session = await self.store.create_session(
                lead_id=lead.id,
                property_id=prop.id,
                session_type=session_type.value,
                question_mode=self.source.mode.value,
                status=SessionStatus.SCHEDULED.value,
                scheduled_for=scheduled_for,
            )
            await self.directory.log_interaction(
                lead.id,
                LeadInteractionType.FEEDBACK_SCHEDULED.value,
                f"Post-tour feedback scheduled in {delay_minutes} minutes",
                {"session_id": session.id, "property_id": prop.id},
            )
        return session

    async def activate_due_sessions(self, now: datetime | None = None) -> list[str]:
        """Activate every scheduled session whose time has come.

        Returns the ids of the sessions activated. A session another
        worker touched first is skipped.
        """
        now = now or datetime.now(timezone.utc)
        due_ids = [s.id for s in await self.store.list_due_scheduled(now)]
        activated = []
        for session_id in due_ids:
            try:
                async with self._unit_of_work(session_id):
                    session = await self.store.get_session(session_id)
                    if session is None or session.status != SessionStatus.SCHEDULED.value:
                        continue
                    lead = await self.directory.get_lead(session.lead_id)
                    prop = await self.directory.get_property(session.property_id)
                    issued = await self._opening_questions(
                        self._source_for(session.question_mode),
                        SessionType(session.session_type),
                        lead,
                        prop,
                    )
                    self.state_machine.transition(session, SessionStatus.ACTIVE)
                    await self.store.update_session(
                        session, questions=issued, current_question_index=0
                    )
                    await self.directory.log_interaction(
                        session.lead_id,
                        LeadInteractionType.FEEDBACK_STARTED.value,
                        f"Started scheduled {session.session_type} feedback session",
                        {"session_id": session_id, "property_id": session.property_id},
                    )
            except ConcurrentSessionUpdate:
                continue
            activated.append(session_id)

        if activated:
            logger.info("Activated %d scheduled feedback session(s)", len(activated))
        return activated

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def _get_accepting(self, session_id: str) -> FeedbackSession:
        session = await self.store.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        if not self.state_machine.accepts_responses(session.status):
            raise SessionNotFound(session_id, session.status)
        return session

    @staticmethod
    def _apply_signals(signals: ExtractedSignals) -> dict:
        """Field updates for non-null signals; a null never overwrites."""
        updates = {}
        if signals.budget is not None:
            updates["discovered_budget"] = float(signals.budget)
        if signals.move_in_date is not None:
            updates["proposed_move_in_date"] = signals.move_in_date
        if signals.interest_level is not None:
            updates["interest_level"] = int(signals.interest_level)
        return updates

    async def _decide_next(
        self,
        session: FeedbackSession,
        issued: list[dict],
        fired: list[str],
        latest: str,
    ) -> NextQuestionResult:
        """Next question or completion after the pending one was answered.

        May extend ``issued`` and ``fired`` in place with follow-ups.
        """
        answered = session.current_question_index + 1
        responses = await self.store.list_responses(session.id)

        if session.question_mode == QuestionMode.FIXED.value:
            if answered >= len(issued):
                for name, question in plan_followups(responses, fired):
                    issued.append(_issued_entry(_unique_id(question, issued), False))
                    fired.append(name)
                    logger.info("Follow-up %s fired for session %s", name, session.id)
        elif answered >= self.max_questions:
            logger.info(
                "Session %s reached %d questions, completing", session.id, self.max_questions
            )
            return NextQuestionResult(is_complete=True, summary=COMPLETION_SUMMARY)

        # The source reads the issued list as extended above
        session.questions = list(issued)
        lead = await self.directory.get_lead(session.lead_id)
        prop = await self.directory.get_property(session.property_id)
        result = await self._call_source(
            self._source_for(session.question_mode).generate_next_question(
                session, responses, latest, lead_context(lead), property_context(prop)
            ),
            session_id=session.id,
        )
        if result is None or (not result.is_complete and result.next_question is None):
            return NextQuestionResult(is_complete=True, summary=FALLBACK_SUMMARY)
        return result

    async def submit_response(
        self,
        session_id: str,
        question_id: str,
        response_method,
        response_value: str,
        response_text: str | None = None,
        now: datetime | None = None,
    ) -> SubmitOutcome:
        """Record an answer to the pending question and advance the session.

        Raises:
            EmptyResponse: blank value, whatever the method.
            SessionNotFound: unknown session, or not active.
            DuplicateResponse: question already answered.
            QuestionMismatch: question is not the pending one.
            ConcurrentSessionUpdate: another request advanced the session first.
        """
        if not (response_value or "").strip():
            raise EmptyResponse()
        payload = ResponsePayload.build(response_method, response_value)
        now = now or datetime.now(timezone.utc)

        async with self._unit_of_work(session_id):
            session = await self._get_accepting(session_id)
            issued = list(session.questions or [])
            index = session.current_question_index
            pending = issued[index] if index < len(issued) else None

            if pending is None or pending["id"] != question_id:
                if any(q["id"] == question_id for q in issued[:index]):
                    raise DuplicateResponse(question_id)
                raise QuestionMismatch(question_id, pending["id"] if pending else None)

            await self.store.append_response(
                session.id,
                sequence=index,
                question_id=pending["id"],
                question_text=pending["text"],
                question_type=pending.get("type", "open"),
                response_method=payload.method.value,
                response_value=payload.value,
                response_text=response_text,
                ai_generated_question=bool(pending.get("ai_generated")),
            )

            heuristic = extract_signals(
                payload.value, response_text, pending.get("type"), now=now
            )

            latest = " ".join(part for part in (payload.value, response_text) if part)
            fired = list(session.fired_followups or [])
            result = await self._decide_next(session, issued, fired, latest)

            signals = result.extracted_signals.merged_over(heuristic)
            updates = self._apply_signals(signals)
            updates["preferred_response_method"] = resolve_preferred_method(
                session.preferred_response_method, payload.method
            )

            next_question = None
            summary = None
            if result.is_complete:
                summary = result.summary or COMPLETION_SUMMARY
                self.state_machine.transition(session, SessionStatus.COMPLETED)
                updates["summary"] = summary
                updates["completed_at"] = now
            else:
                next_index = index + 1
                already_issued = (
                    next_index < len(issued)
                    and issued[next_index]["id"] == result.next_question.id
                )
                if not already_issued:
                    # A generated question replaces anything issued but unanswered
                    del issued[next_index:]
                    issued.append(
                        _issued_entry(
                            _unique_id(result.next_question, issued),
                            self._source_for(session.question_mode).ai_generated,
                        )
                    )
                next_question = Question.model_validate(issued[next_index])

            await self.store.update_session(
                session,
                questions=issued,
                fired_followups=fired,
                current_question_index=index + 1,
                **updates,
            )

            await self.directory.log_interaction(
                session.lead_id,
                LeadInteractionType.FEEDBACK_RESPONSE.value,
                f"Answered feedback question {pending['id']} via {payload.method.value}",
                {
                    "session_id": session.id,
                    "question_id": pending["id"],
                    "response_method": payload.method.value,
                },
            )
            if result.is_complete:
                await self.directory.log_interaction(
                    session.lead_id,
                    LeadInteractionType.FEEDBACK_COMPLETED.value,
                    f"Completed {session.session_type} feedback session",
                    {
                        "session_id": session.id,
                        "summary": summary,
                        "discovered_budget": session.discovered_budget,
                        "interest_level": session.interest_level,
                    },
                )

        logger.info(
            "Session %s answered %s (index=%d, complete=%s)",
            session_id, question_id, index + 1, result.is_complete,
        )
        return SubmitOutcome(
            next_question=next_question,
            is_complete=result.is_complete,
            summary=summary,
            current_question_index=index + 1,
            total_questions=len(issued),
        )

    async def revise_last_response(
        self,
        session_id: str,
        response_value: str,
        response_text: str | None = None,
        now: datetime | None = None,
    ) -> FeedbackResponse:
        """Edit the most recent answer of an active session and re-extract."""
        if not (response_value or "").strip():
            raise EmptyResponse()
        now = now or datetime.now(timezone.utc)

        async with self._unit_of_work(session_id):
            session = await self._get_accepting(session_id)
            last = await self.store.last_response(session.id)
            if last is None:
                raise NothingToRevise(session_id)

            await self.store.update_response(
                last, response_value=response_value, response_text=response_text
            )
            signals = extract_signals(
                response_value, response_text, last.question_type, now=now
            )
            if not signals.is_empty:
                await self.store.update_session(session, **self._apply_signals(signals))

        logger.info("Session %s revised answer to %s", session_id, last.question_id)
        return last

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def abandon_session(
        self, session_id: str, reason: str | None = None, now: datetime | None = None
    ) -> FeedbackSession:
        """Terminate an active or scheduled session.

        Raises:
            SessionNotFound: unknown session.
            InvalidSessionTransition: already completed or abandoned.
        """
        now = now or datetime.now(timezone.utc)
        async with self._unit_of_work(session_id):
            session = await self.store.get_session(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            self.state_machine.transition(session, SessionStatus.ABANDONED)
            await self.store.update_session(session, completed_at=now)
            await self.directory.log_interaction(
                session.lead_id,
                LeadInteractionType.FEEDBACK_ABANDONED.value,
                f"Abandoned {session.session_type} feedback session",
                {"session_id": session.id, "reason": reason},
            )
        logger.info("Session %s abandoned (%s)", session_id, reason or "no reason given")
        return session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_session(self, session_id: str) -> tuple[FeedbackSession, list[FeedbackResponse]]:
        session = await self.store.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        responses = await self.store.list_responses(session_id)
        return session, responses

    async def list_sessions(self, lead_id: int | None = None) -> list[FeedbackSession]:
        return await self.store.list_sessions(lead_id)

    async def list_responses(self, session_id: str) -> list[FeedbackResponse]:
        _, responses = await self.get_session(session_id)
        return responses
