"""Unit tests for the SessionStateMachine."""

from types import SimpleNamespace

import pytest

from propertypulse.domain.enums import SessionStatus
from propertypulse.services.session_state_machine import (
    ACCEPTING_STATES,
    TERMINAL_STATES,
    TRANSITION_MAP,
    InvalidSessionTransition,
    SessionStateMachine,
)

S = SessionStatus


@pytest.fixture
def sm():
    return SessionStateMachine()


class TestValidTransitions:

    @pytest.mark.parametrize(
        "from_status,to_status",
        [(from_s, to_s) for from_s, targets in TRANSITION_MAP.items() for to_s in targets],
    )
    def test_all_valid_transitions(self, sm, from_status, to_status):
        assert sm.validate_transition(from_status, to_status) is True

    def test_accepts_string_statuses(self, sm):
        assert sm.validate_transition("active", "completed") is True


class TestInvalidTransitions:

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATES, key=lambda s: s.value))
    @pytest.mark.parametrize("target", list(S))
    def test_nothing_leaves_terminal_states(self, sm, terminal, target):
        with pytest.raises(InvalidSessionTransition) as exc_info:
            sm.validate_transition(terminal, target)
        assert exc_info.value.status_code == 409

    def test_active_cannot_return_to_scheduled(self, sm):
        with pytest.raises(InvalidSessionTransition):
            sm.validate_transition(S.ACTIVE, S.SCHEDULED)

    def test_scheduled_cannot_complete_directly(self, sm):
        with pytest.raises(InvalidSessionTransition) as exc_info:
            sm.validate_transition(S.SCHEDULED, S.COMPLETED)
        assert exc_info.value.current_status == S.SCHEDULED
        assert exc_info.value.target_status == S.COMPLETED


class TestHelpers:

    def test_allowed_transitions(self, sm):
        assert sm.get_allowed_transitions(S.ACTIVE) == [S.ABANDONED, S.COMPLETED]
        assert sm.get_allowed_transitions(S.COMPLETED) == []

    def test_only_active_accepts_responses(self, sm):
        assert ACCEPTING_STATES == {S.ACTIVE}
        assert sm.accepts_responses("active") is True
        for status in (S.SCHEDULED, S.COMPLETED, S.ABANDONED):
            assert sm.accepts_responses(status) is False

    def test_transition_sets_string_status(self, sm):
        session = SimpleNamespace(status="active")
        sm.transition(session, S.COMPLETED)
        assert session.status == "completed"

    def test_transition_rejects_invalid(self, sm):
        session = SimpleNamespace(status="completed")
        with pytest.raises(InvalidSessionTransition):
            sm.transition(session, S.ABANDONED)
        assert session.status == "completed"
