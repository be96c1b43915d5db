"""Persistence for feedback sessions and their responses."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propertypulse.domain.enums import SessionStatus
from propertypulse.domain.models import FeedbackResponse, FeedbackSession

logger = logging.getLogger(__name__)


class FeedbackSessionStore:
    """Session Store: reads and writes FeedbackSession / FeedbackResponse rows.

    Writes are flushed, never committed; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(self, **fields) -> FeedbackSession:
        now = datetime.now(timezone.utc)
        values = {
            "id": str(uuid.uuid4()),
            "current_question_index": 0,
            "questions": [],
            "fired_followups": [],
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        session = FeedbackSession(**values)
        self.db.add(session)
        await self.db.flush()
        logger.info(
            "Created %s feedback session %s for lead %s (status=%s)",
            session.session_type, session.id, session.lead_id, session.status,
        )
        return session

    async def get_session(self, session_id: str) -> FeedbackSession | None:
        result = await self.db.execute(
            select(FeedbackSession).where(FeedbackSession.id == session_id)
        )
        return result.scalar_one_or_none()

    async def update_session(self, session: FeedbackSession, **fields) -> FeedbackSession:
        """Apply field changes, bump ``updated_at`` and flush."""
        for key, value in fields.items():
            setattr(session, key, value)
        session.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return session

    async def list_sessions(self, lead_id: int | None = None) -> list[FeedbackSession]:
        """All sessions, newest first, optionally for one lead."""
        query = select(FeedbackSession)
        if lead_id is not None:
            query = query.where(FeedbackSession.lead_id == lead_id)
        query = query.order_by(FeedbackSession.created_at.desc(), FeedbackSession.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_due_scheduled(self, now: datetime) -> list[FeedbackSession]:
        result = await self.db.execute(
            select(FeedbackSession)
            .where(
                FeedbackSession.status == SessionStatus.SCHEDULED.value,
                FeedbackSession.scheduled_for <= now,
            )
            .order_by(FeedbackSession.scheduled_for)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def append_response(self, session_id: str, **fields) -> FeedbackResponse:
        now = datetime.now(timezone.utc)
        response = FeedbackResponse(
            id=str(uuid.uuid4()),
            session_id=session_id,
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.db.add(response)
        await self.db.flush()
        return response

    async def list_responses(self, session_id: str) -> list[FeedbackResponse]:
        result = await self.db.execute(
            select(FeedbackResponse)
            .where(FeedbackResponse.session_id == session_id)
            .order_by(FeedbackResponse.sequence, FeedbackResponse.created_at)
        )
        return list(result.scalars().all())

    async def last_response(self, session_id: str) -> FeedbackResponse | None:
        result = await self.db.execute(
            select(FeedbackResponse)
            .where(FeedbackResponse.session_id == session_id)
            .order_by(FeedbackResponse.sequence.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def update_response(self, response: FeedbackResponse, **fields) -> FeedbackResponse:
        for key, value in fields.items():
            setattr(response, key, value)
        response.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return response
