"""Domain errors raised by the feedback session engine.

Each error carries the HTTP status the API layer should answer with.
"""


class FeedbackError(Exception):
    """Base class for feedback engine errors."""

    status_code = 400


class SessionCreationFailed(FeedbackError):
    """Lead or property reference is missing or does not resolve."""

    status_code = 400


class SessionNotFound(FeedbackError):
    """Session id is unknown, or the session no longer accepts responses."""

    status_code = 404

    def __init__(self, session_id: str, status: str | None = None):
        self.session_id = session_id
        self.status = status
        if status is None:
            message = f"Feedback session {session_id} not found"
        else:
            message = f"Feedback session {session_id} is {status} and not accepting responses"
        super().__init__(message)


class EmptyResponse(FeedbackError):
    """Response value is blank after trimming."""

    status_code = 422

    def __init__(self):
        super().__init__("Response value must not be empty")


class DuplicateResponse(FeedbackError):
    """The question has already been answered in this session."""

    status_code = 409

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question {question_id} has already been answered")


class QuestionMismatch(FeedbackError):
    """The answered question is not the one currently pending."""

    status_code = 409

    def __init__(self, question_id: str, expected_id: str | None):
        self.question_id = question_id
        self.expected_id = expected_id
        super().__init__(
            f"Question {question_id} is not the pending question (expected {expected_id})"
        )


class NothingToRevise(FeedbackError):
    """No response has been recorded yet."""

    status_code = 409

    def __init__(self, session_id: str):
        super().__init__(f"Feedback session {session_id} has no response to revise")


class ConcurrentSessionUpdate(FeedbackError):
    """Another request updated the session first; the caller may retry."""

    status_code = 409

    def __init__(self, session_id: str):
        super().__init__(f"Feedback session {session_id} was modified concurrently, retry")


class QuestionSourceUnavailable(Exception):
    """The question source failed, timed out, or returned malformed output.

    Never surfaced to API callers; the engine completes the session instead.
    """
