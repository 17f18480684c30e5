"""
Exception types raised by the interview client.
"""
from typing import Optional


class InterviewClientError(Exception):
    """Base class for every error the client reports to the user."""


class ValidationError(InterviewClientError):
    """Input rejected locally; no network call was made."""

    def __init__(self, message: str, title: str = "Invalid input"):
        super().__init__(message)
        self.title = title


class GatewayError(InterviewClientError):
    """Transport failure, non-2xx response, or malformed response body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayTimeout(GatewayError):
    """The request did not complete within the client-side time limit."""


class CapabilityUnavailableError(InterviewClientError):
    """A speech capability is not available in this runtime."""


class SessionStateError(InterviewClientError):
    """A session transition was invoked from a state where it is not valid."""
