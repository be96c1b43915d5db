"""Shared test infrastructure for the PropertyPulse test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- test_settings: Settings isolated from the local .env file
- make_lead / make_property: factories for the leasing CRM rows
- make_service: FeedbackSessionService bound to db_session
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from propertypulse.infra.database import Base

import propertypulse.domain.models  # noqa: F401

from propertypulse.app.config import Settings
from propertypulse.domain.models import Lead, Property
from propertypulse.services.feedback_session_service import FeedbackSessionService
from propertypulse.services.question_source import StaticQuestionSource


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def test_settings():
    """Settings that ignore any developer .env file."""
    return Settings(
        _env_file=None,
        feedback_question_mode="fixed",
        gemini_api_key="",
        question_source_timeout_seconds=1.0,
        feedback_max_questions=12,
        post_tour_delay_minutes=60,
        scheduled_activation_interval_seconds=0,
        internal_token="test-internal-token",
    )


# ---------------------------------------------------------------------------
# Lead / property factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_property(db_session):
    """Factory that creates a Property row.

    Usage:
        prop = await make_property(id=3, name="Maple Court #4")
    """
    async def _factory(
        id: int | None = None,
        name: str = "Maple Court #4",
        address: str = "123 Maple Ct, Austin, TX",
        bedrooms: str = "2 Bedroom",
        rent: float = 2200.0,
    ) -> Property:
        prop = Property(
            id=id,
            name=name,
            address=address,
            bedrooms=bedrooms,
            rent=rent,
            description="Bright corner unit with in-unit laundry",
            available=True,
        )
        db_session.add(prop)
        await db_session.flush()
        return prop

    return _factory


@pytest.fixture
def make_lead(db_session):
    """Factory that creates a Lead row.

    Usage:
        lead = await make_lead(id=7, name="Jordan Lee")
    """
    async def _factory(
        id: int | None = None,
        name: str = "Jordan Lee",
        email: str = "jordan@test.com",
        phone: str = "+15125550100",
        property_id: int | None = None,
    ) -> Lead:
        lead = Lead(
            id=id,
            name=name,
            email=email,
            phone=phone,
            status="new",
            source="website",
            property_id=property_id,
        )
        db_session.add(lead)
        await db_session.flush()
        return lead

    return _factory


# ---------------------------------------------------------------------------
# Engine factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_service(db_session, test_settings):
    """Factory for a FeedbackSessionService on the test database.

    Usage:
        service = make_service()                      # fixed bank
        service = make_service(source=stub, feedback_max_questions=3)
    """
    def _factory(source=None, **overrides) -> FeedbackSessionService:
        settings = test_settings.model_copy(update=overrides) if overrides else test_settings
        return FeedbackSessionService(
            db_session,
            question_source=source or StaticQuestionSource(),
            settings=settings,
        )

    return _factory
