"""
Unified exception hierarchy for the LMS assessment backend.

All domain exceptions inherit from LmsError and carry:
- error_code: machine-readable string (e.g. "COURSE_NOT_FOUND")
- status_code: HTTP status code
- message: human-readable description
- context: optional structured metadata dict
"""

from typing import Optional, Dict, Any


class LmsError(Exception):
    """Base exception for all LMS domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)


class ValidationError(LmsError):
    """400-level validation / bad-request errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "MISSING_FIELDS",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=400, context=context)


class NotFoundError(LmsError):
    """404 resource-not-found errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "NOT_FOUND",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=404, context=context)


class ConflictError(LmsError):
    """409 errors for requests that collide with one already in progress."""

    def __init__(
        self,
        message: str,
        error_code: str = "REQUEST_IN_PROGRESS",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=409, context=context)


class ConfigurationError(LmsError):
    """Missing or invalid environment configuration. Never retried."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIGURATION_ERROR",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class StorageError(LmsError):
    """500-level database / storage failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORAGE_ERROR",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class GenerationError(LmsError):
    """500-level question generation failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERATION_FAILED",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class ProviderError(GenerationError):
    """The language-model provider failed (network, auth, rate limit, outage)."""

    def __init__(
        self,
        message: str,
        error_code: str = "PROVIDER_ERROR",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, context=context)


class ProviderErrorPage(ProviderError):
    """The provider answered with an HTML error page instead of a completion."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            "API returned an error page. Please check your API key and configuration.",
            error_code="PROVIDER_ERROR_PAGE",
            context=context,
        )


class ResponseFormatError(GenerationError):
    """The completion text could not be turned into a question record."""


class NoJSONFoundError(ResponseFormatError):
    """No brace-delimited object in the completion."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            "Invalid response format from the API: no JSON object found. Please try again.",
            error_code="NO_JSON_FOUND",
            context=context,
        )


class MalformedJSONError(ResponseFormatError):
    """A brace-delimited object was found but is not valid JSON."""

    def __init__(self, detail: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Invalid response format from the API: {detail}. Please try again.",
            error_code="MALFORMED_JSON",
            context=context,
        )


class QuestionShapeError(ResponseFormatError):
    """Parsed JSON does not describe a usable multiple-choice question."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Invalid question structure: {message}",
            error_code="INVALID_QUESTION_STRUCTURE",
            context=context,
        )
