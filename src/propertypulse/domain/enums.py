"""Domain enumerations for the PropertyPulse feedback service.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class SessionType(str, Enum):
    """Which questionnaire a prospect is taken through."""

    DISCOVERY = "discovery"
    POST_TOUR = "post_tour"


class SessionStatus(str, Enum):
    """Lifecycle status of a feedback session."""

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuestionMode(str, Enum):
    """Where a session's questions come from."""

    FIXED = "fixed"
    AI = "ai"


class ResponseMethod(str, Enum):
    """How the prospect captured an answer."""

    TEXT = "text"
    VOICE = "voice"
    DROPDOWN = "dropdown"
    EMOJI = "emoji"


class QuestionType(str, Enum):
    """Kind of question; drives option rendering and signal extraction."""

    OPEN = "open"
    BUDGET = "budget"
    MOVE_IN_DATE = "move_in_date"
    INTEREST_LEVEL = "interest_level"
    MULTIPLE_CHOICE = "multiple_choice"


class LeadInteractionType(str, Enum):
    """Advisory lead-log entries written by the feedback flow."""

    FEEDBACK_STARTED = "feedback_started"
    FEEDBACK_SCHEDULED = "feedback_scheduled"
    FEEDBACK_RESPONSE = "feedback_response"
    FEEDBACK_COMPLETED = "feedback_completed"
    FEEDBACK_ABANDONED = "feedback_abandoned"
