"""
Error taxonomy for the assessment pipeline.

Only data-provider failures are raised. Thin comparable evidence is
expressed through the analysis result (confidence, sample size, verdict)
and a missing AVM is recovered locally, so neither appears here.
"""


class AssessmentError(Exception):
    """Base class for errors surfaced to the caller."""

    user_message = "An error occurred while analyzing the property. Please try again."

    def __init__(self, message: str = "", user_message: str = None):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class InputError(AssessmentError, ValueError):
    """Malformed address or missing required field. Not retryable."""

    user_message = "Address is required and must be a string"


class PropertyNotFoundError(AssessmentError):
    """No property record matches the requested address or ID."""

    user_message = "Property not found. Please check the address and try again."


class RateLimitedError(AssessmentError):
    """Upstream data provider quota exhausted. Transient; caller may retry."""

    user_message = (
        "Service temporarily unavailable due to high demand. "
        "Please try again in a few minutes."
    )
    retryable = True
