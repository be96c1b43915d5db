"""Typed dataclasses for feedback engine I/O contracts."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from propertypulse.domain.enums import ResponseMethod
from propertypulse.domain.schemas import Question


@dataclass(frozen=True)
class ResponsePayload:
    """A captured answer: exactly one capture method and its string value."""
    method: ResponseMethod
    value: str

    @classmethod
    def build(cls, method, value: str) -> "ResponsePayload":
        return cls(method=ResponseMethod(method), value=value)


@dataclass
class ExtractedSignals:
    """Structured facts inferred from a response. None means "not stated"."""
    budget: float | None = None
    move_in_date: date | None = None
    interest_level: int | None = None

    def merged_over(self, other: "ExtractedSignals") -> "ExtractedSignals":
        """Return self's values, falling back to ``other`` where self is empty."""
        return ExtractedSignals(
            budget=self.budget if self.budget is not None else other.budget,
            move_in_date=self.move_in_date if self.move_in_date is not None else other.move_in_date,
            interest_level=(
                self.interest_level if self.interest_level is not None else other.interest_level
            ),
        )

    @property
    def is_empty(self) -> bool:
        return self.budget is None and self.move_in_date is None and self.interest_level is None


@dataclass
class NextQuestionResult:
    """What a question source decided after the latest response."""
    next_question: Optional[Question] = None
    extracted_signals: ExtractedSignals = field(default_factory=ExtractedSignals)
    is_complete: bool = False
    summary: str | None = None


@dataclass
class StartOutcome:
    session_id: str
    first_question: Question
    initial_questions: list[Question]


@dataclass
class SubmitOutcome:
    next_question: Optional[Question]
    is_complete: bool
    summary: str | None
    current_question_index: int
    total_questions: int
