"""Feedback session state machine: validates status transitions.

    scheduled -> active | abandoned
    active    -> completed | abandoned
"""

from propertypulse.domain.enums import SessionStatus
from propertypulse.services.feedback_errors import FeedbackError


class InvalidSessionTransition(FeedbackError):
    """Raised when a feedback session status transition is not allowed."""

    status_code = 409

    def __init__(
        self,
        current_status: SessionStatus,
        target_status: SessionStatus,
        reason: str,
    ):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current_status.value} to {target_status.value}: {reason}"
        )


S = SessionStatus

TRANSITION_MAP: dict[SessionStatus, set[SessionStatus]] = {
    S.SCHEDULED: {S.ACTIVE, S.ABANDONED},
    S.ACTIVE: {S.COMPLETED, S.ABANDONED},
}

TERMINAL_STATES: set[SessionStatus] = {S.COMPLETED, S.ABANDONED}

# Only an active session records responses
ACCEPTING_STATES: set[SessionStatus] = {S.ACTIVE}


def _as_status(value) -> SessionStatus:
    if isinstance(value, SessionStatus):
        return value
    return SessionStatus(value)


class SessionStateMachine:
    """Validates feedback session status transitions."""

    def validate_transition(self, current_status, target_status) -> bool:
        """Return True if the transition is valid. Raise InvalidSessionTransition if not."""
        current = _as_status(current_status)
        target = _as_status(target_status)

        allowed_targets = TRANSITION_MAP.get(current)
        if allowed_targets is None:
            raise InvalidSessionTransition(
                current, target, f"No transitions allowed from {current.value}"
            )
        if target not in allowed_targets:
            raise InvalidSessionTransition(
                current,
                target,
                f"Transition from {current.value} to {target.value} is not allowed",
            )
        return True

    def get_allowed_transitions(self, current_status) -> list[SessionStatus]:
        """Return the statuses reachable from ``current_status``."""
        return sorted(TRANSITION_MAP.get(_as_status(current_status), set()), key=lambda s: s.value)

    def accepts_responses(self, current_status) -> bool:
        return _as_status(current_status) in ACCEPTING_STATES

    def transition(self, session, target_status) -> None:
        """Validate and apply a status change on a session row."""
        self.validate_transition(session.status, target_status)
        session.status = _as_status(target_status).value
