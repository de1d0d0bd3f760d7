"""Failure kinds surfaced to callers, each with a user-facing message."""
from __future__ import annotations


class TalentMatchError(Exception):
    """Base class; ``user_message`` is safe to show, ``str(exc)`` may not be."""

    status_code = 500
    user_message = "Something went wrong. Please try again."

    def __init__(self, detail: str = "", *, user_message: str | None = None) -> None:
        if user_message is not None:
            self.user_message = user_message
        super().__init__(detail or self.user_message)


class InvalidRequest(TalentMatchError):
    status_code = 400
    user_message = "The request is missing required fields."


class PayloadTooLarge(TalentMatchError):
    status_code = 413
    user_message = "The uploaded file is too large. The limit is 5 MB."


class UnsupportedFormat(TalentMatchError):
    status_code = 415
    user_message = "Unsupported file type. Please use PDF, DOCX, or TXT."


class ExtractionFailed(TalentMatchError):
    status_code = 422
    user_message = (
        "Could not extract text from the document. "
        "Please ensure the file is not corrupted."
    )


class JobNotFound(TalentMatchError):
    status_code = 404
    user_message = "Job not found."


class ResumeNotFound(TalentMatchError):
    status_code = 404
    user_message = "Resume not found for this user."


class ResumeRequired(TalentMatchError):
    status_code = 404
    user_message = "Please upload your resume first."


class GenerationUnavailable(TalentMatchError):
    status_code = 502
    user_message = "The AI assistant is unavailable right now. Please try again later."


def describe_error(exc: BaseException) -> tuple[int, str]:
    """Map an exception to ``(status_code, message)`` for the caller."""
    if isinstance(exc, TalentMatchError):
        return exc.status_code, exc.user_message
    return TalentMatchError.status_code, TalentMatchError.user_message
