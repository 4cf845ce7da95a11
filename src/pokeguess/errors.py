"""
Exceptions raised by the guessing game.

Every failure is local to the operation that raised it; nothing here is
retried or recovered internally.
"""

from typing import Any, Optional


class PokeGuessError(Exception):
    """Base exception for all game errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(PokeGuessError):
    """Raised when a round configuration is out of bounds.

    Always raised before any network activity.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class UpstreamError(PokeGuessError):
    """Raised when the record/image API does not report success."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs: Any):
        super().__init__(f"API Error: {message}", **kwargs)
        self.status_code = status_code
        self.reason = message


class PresentationError(PokeGuessError):
    """Raised when the chat surface rejects a publish or update."""

    pass
