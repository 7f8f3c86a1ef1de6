# ai_court/core/exceptions.py
"""Custom exceptions for the AI court system."""

from typing import Optional


class AICourtError(Exception):
    """Base exception for all AI court errors."""
    pass

class ConfigurationError(AICourtError):
    """Raised when there's a configuration error."""
    pass

class ProviderError(AICourtError):
    """Base exception for transport/provider errors."""
    pass

class NetworkError(ProviderError):
    """Raised when the upstream endpoint could not be reached (DNS, refused, timeout)."""

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"Network error: {cause}")

    @property
    def user_message(self) -> str:
        return "Could not reach the AI service. Check your connection and try again."


class ApiError(ProviderError):
    """Raised when the upstream endpoint answers with a non-2xx status."""

    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"
    CLIENT = "client"

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error: {status_code} - {body}")

    @property
    def category(self) -> str:
        """User-facing failure category for the status code."""
        if self.status_code in (401, 403):
            return self.AUTH
        if self.status_code == 429:
            return self.RATE_LIMITED
        if self.status_code >= 500:
            return self.UPSTREAM
        return self.CLIENT

    @property
    def retryable(self) -> bool:
        return self.category in (self.RATE_LIMITED, self.UPSTREAM)

    @property
    def user_message(self) -> str:
        messages = {
            self.AUTH: "The AI service rejected the credentials. Check the API key configuration.",
            self.RATE_LIMITED: "Too many requests. Please wait a moment and try again.",
            self.UPSTREAM: "The AI service is temporarily unavailable. Please try again.",
        }
        return messages.get(self.category, f"The AI service rejected the request ({self.status_code}).")


class StreamError(AICourtError):
    """Raised when a response stream is malformed or unreadable."""
    pass

class SynthesisError(AICourtError):
    """Raised when the structured verdict could not be parsed. Never leaves the synthesizer."""
    pass

class ValidationError(AICourtError):
    """Raised when validation fails."""
    pass

class InvalidInputError(ValidationError):
    """Raised when user input is empty or malformed; no upstream call is made."""
    pass

class MessageSealedError(ValidationError):
    """Raised when a completed message is mutated."""
    pass

class RoundError(AICourtError):
    """Base exception for round-related errors."""
    pass

class TrialStateError(RoundError):
    """Raised when an operation is not allowed in the current trial phase."""
    pass

class UsageLimitExceededError(AICourtError):
    """Raised when the daily usage cap for a feature is reached."""

    def __init__(self, feature: str, limit: Optional[int] = None):
        self.feature = feature
        self.limit = limit
        super().__init__(f"Daily usage limit reached for '{feature}'")


INTERRUPTED_TEXT = "The response was interrupted before it finished."

def user_facing_message(error: Exception) -> str:
    """Text shown inline in place of a failed AI turn."""
    message = getattr(error, "user_message", None)
    if message:
        return message
    return str(error) or "An unknown error occurred."
