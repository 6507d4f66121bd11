"""Error types raised by the goals and challenges engine."""

from typing import Optional


class GrowthError(Exception):
    """Base error for the goals and challenges engine."""

    pass


class NotAuthenticated(GrowthError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Please log in to continue"):
        super().__init__(message)


class ValidationError(GrowthError, ValueError):
    """Raised when a required field is missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class QueryFailure(GrowthError):
    """Raised when a store query could not complete."""

    def __init__(self, label: str, cause: Optional[BaseException] = None):
        message = f"Query failed: {label}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)
        self.label = label
        self.cause = cause


def require_user(user_id: Optional[str]) -> str:
    """Return the user id, or raise NotAuthenticated if there is no session."""
    if not user_id or not str(user_id).strip():
        raise NotAuthenticated()
    return str(user_id)
