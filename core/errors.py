"""Custom exception types for the vendor intake controller."""

from __future__ import annotations


class IntakeError(Exception):
    """Base exception for intake controller issues."""


class ExtractionError(IntakeError):
    """Base exception for extraction related issues."""


EXTRACTION_UNAVAILABLE_MESSAGE = "Failed to parse website. Please try again."


class ExtractionStreamError(ExtractionError):
    """Raised when the extraction stream cannot be opened or read.

    Transport failures are terminal for the current parse attempt; the
    document keeps whatever was merged before the failure.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or EXTRACTION_UNAVAILABLE_MESSAGE)


class StreamDecodeError(ExtractionError):
    """Raised when a single stream frame is not a valid message."""

    def __init__(self, message: str, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


SUBMIT_FAILED_MESSAGE = "Failed to submit questionnaire. Please try again."


class SubmitError(IntakeError):
    """Raised by submit collaborators to reject the finished document."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or SUBMIT_FAILED_MESSAGE)
