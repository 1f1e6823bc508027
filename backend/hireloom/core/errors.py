"""
Exception hierarchy for the assessment system.

Agents convert these into FAILURE responses; the API layer maps them
to HTTP status codes.
"""

from typing import Optional


class HireloomError(Exception):
    """Base class for all domain errors."""


class ValidationError(HireloomError, ValueError):
    """Input rejected before any state was committed."""


class GenerationError(HireloomError):
    """The question generator could not produce questions."""


class DeliveryError(HireloomError):
    """
    The email collaborator reported a non-success response.

    Attributes:
        status_code: HTTP status returned by the collaborator, if any
        body: Raw response body or error text for diagnosis
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TestNotFoundError(HireloomError, LookupError):
    """A test id could not be resolved."""

    __test__ = False


class InvalidTransitionError(HireloomError):
    """An exam action was attempted from a state that does not allow it."""
