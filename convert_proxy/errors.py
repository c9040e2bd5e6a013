"""
Failures raised inside the orchestrator and turned into results at its boundary.
"""

from typing import Iterable

from .models import ConversionResult, ErrorCode


class ConversionError(Exception):
    """Terminal conversion failure with an HTTP-style status code."""

    code = 400
    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_result(self) -> ConversionResult:
        return ConversionResult.failure(self.code, self.message, self.error_code)


class ValidationError(ConversionError):
    """Bad input shape (missing URL, unknown host, unknown type)."""


class UnsupportedFormatError(ConversionError):
    error_code = ErrorCode.UNSUPPORTED_FORMAT

    def __init__(self, fmt: str, media_type: str, allowed: Iterable[str]):
        super().__init__(
            f"Invalid format '{fmt}' for {media_type}. "
            f"Available formats: {', '.join(allowed)}"
        )


class QuotaExceededError(ConversionError):
    code = 429
    error_code = ErrorCode.QUOTA_EXCEEDED

    def __init__(self, limit: int):
        super().__init__(f"Daily download limit ({limit}) exceeded. Try again later.")
        self.limit = limit


class ContentRestrictedError(ConversionError):
    error_code = ErrorCode.CONTENT_RESTRICTED

    def __init__(self):
        super().__init__("Video not available or restricted by YouTube")


class DurationExceededError(ConversionError):
    error_code = ErrorCode.DURATION_EXCEEDED

    def __init__(self):
        super().__init__("Video exceeds maximum duration (3 hours)")


class ExhaustionError(ConversionError):
    code = 500
    error_code = ErrorCode.RETRIES_EXHAUSTED

    def __init__(self):
        super().__init__("Max retries exceeded. Please try again later.")


class EmptyUpstreamResponseError(ConversionError):
    """The upstream accepted a submission but answered with a null body."""

    code = 500
    error_code = ErrorCode.SERVER_ERROR

    def __init__(self):
        super().__init__("Upstream returned an empty response")
