from typing import Any, Optional


class InterviewError(Exception):
    """Base error for the interview service; carries an HTTP status and code."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, detail: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.detail is not None:
            payload["detail"] = self.detail
        return {"error": payload}


class ValidationError(InterviewError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(InterviewError):
    status_code = 401
    code = "AUTH_REQUIRED"


class NotFoundError(InterviewError):
    status_code = 404
    code = "NOT_FOUND"


class InvalidStateError(InterviewError):
    """Operation not allowed in the session's current phase."""

    status_code = 409
    code = "INVALID_STATE"


class AIUnavailableError(Exception):
    """Raised by the AI transport; callers always recover with a fallback."""
