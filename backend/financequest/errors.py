"""Domain errors shared by the market, trading and game layers.

The HTTP layer maps these onto status codes in ``main.py``; nothing below
knows about FastAPI.
"""


class FinanceQuestError(Exception):
    """Base class for every error raised on purpose by this package."""


class ValidationError(FinanceQuestError):
    """A trade or game precondition failed. The message is user-facing."""

    def __init__(self, message: str, code: str = "validation_error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ConflictingPosition(ValidationError):
    """Long and short on the same symbol at once."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="conflicting_position")


class NotFoundError(FinanceQuestError):
    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class ForbiddenError(FinanceQuestError):
    def __init__(self, message: str = "You do not own this resource") -> None:
        super().__init__(message)


class RateLimited(FinanceQuestError):
    """Local request quota exhausted. Callers should defer, not retry right away."""

    def __init__(self, remaining: int = 0, window_seconds: float | None = None) -> None:
        super().__init__("MarketStack rate limit reached. Please try again later.")
        self.remaining = remaining
        self.window_seconds = window_seconds


class ExternalApiError(FinanceQuestError):
    def __init__(self, service: str, message: str, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(f"{service} API Error: {message}")
        self.service = service
        self.message = message
        self.code = code
        self.status_code = status_code
