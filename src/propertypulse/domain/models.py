"""SQLAlchemy ORM models for PropertyPulse.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
- DateTime for timestamps (no TIMESTAMPTZ)

Leads and properties keep the integer serial keys of the leasing CRM that
owns them; this service only reads them.
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from propertypulse.infra.database import Base


# ---------------------------------------------------------------------------
# Leasing CRM (read-mostly collaborators)
# ---------------------------------------------------------------------------


class Property(Base):
    """Rental unit listed by the property manager."""

    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    bedrooms = Column(String(50), nullable=False)
    rent = Column(Float, nullable=False)
    image_url = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    available = Column(Boolean, default=True)


class Lead(Base):
    """Prospective tenant."""

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    status = Column(String(50), nullable=False, default="new")
    source = Column(String(100), nullable=True)
    preferences = Column(Text, nullable=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True)

    interactions = relationship("LeadInteraction", back_populates="lead")


class LeadInteraction(Base):
    """Advisory activity log entry attached to a lead."""

    __tablename__ = "lead_interactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    interaction_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=func.now())

    lead = relationship("Lead", back_populates="interactions")


# ---------------------------------------------------------------------------
# Feedback questionnaire
# ---------------------------------------------------------------------------


class FeedbackSession(Base):
    """One prospect's run through a discovery or post-tour questionnaire."""

    __tablename__ = "feedback_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)
    session_type = Column(String(20), nullable=False)  # discovery, post_tour
    question_mode = Column(String(10), nullable=False, default="fixed")  # fixed, ai
    status = Column(String(20), nullable=False, default="active", index=True)
    current_question_index = Column(Integer, nullable=False, default=0)
    questions = Column(JSON, default=list)  # issued questions, text frozen when issued
    fired_followups = Column(JSON, default=list)
    preferred_response_method = Column(String(20), nullable=True)
    discovered_budget = Column(Float, nullable=True)
    proposed_move_in_date = Column(Date, nullable=True)
    interest_level = Column(Integer, nullable=True)
    summary = Column(Text, nullable=True)
    scheduled_for = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    responses = relationship(
        "FeedbackResponse",
        back_populates="session",
        order_by="FeedbackResponse.sequence",
    )


class FeedbackResponse(Base):
    """A single answer recorded against an issued question."""

    __tablename__ = "feedback_responses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String(36), ForeignKey("feedback_sessions.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    question_id = Column(String(100), nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(30), nullable=False, default="open")
    response_method = Column(String(20), nullable=False)
    response_value = Column(Text, nullable=False)
    response_text = Column(Text, nullable=True)
    ai_generated_question = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    session = relationship("FeedbackSession", back_populates="responses")


# ---------------------------------------------------------------------------
# Agent telemetry
# ---------------------------------------------------------------------------


class AgentLog(Base):
    """Telemetry log for AI agent actions."""

    __tablename__ = "agent_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    agent_name = Column(String(100), nullable=False)
    action = Column(String(200), nullable=False)
    input_summary = Column(Text)
    output_summary = Column(Text)
    tokens_used = Column(Integer)
    latency_ms = Column(Integer)
    related_session_id = Column(String(36))
    related_lead_id = Column(Integer)
    created_at = Column(DateTime, default=func.now())
