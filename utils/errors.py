"""
Exception hierarchy for CreatorPulse

Each error carries the HTTP-style status code the dashboard and CLI use to
decide how to present it (bad input, missing record, throttled, upstream down).
"""
from typing import Any, Dict, Optional


class CreatorPulseError(Exception):
    """Base class for all expected application errors"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Error payload in the same shape the storage and pipeline results use"""
        payload: Dict[str, Any] = {"error": self.message, "status": self.status_code}
        if self.details:
            payload["details"] = self.details
        return payload


class SourceValidationError(CreatorPulseError):
    status_code = 400
    default_message = "Please check your input and try again"


class DraftValidationError(CreatorPulseError):
    status_code = 400
    default_message = "Invalid draft"


class NoActiveSourcesError(CreatorPulseError):
    status_code = 400
    default_message = "No active sources found. Please add and activate sources first."


class SourceNotFoundError(CreatorPulseError):
    status_code = 404
    default_message = "Source not found"


class DraftNotFoundError(CreatorPulseError):
    status_code = 404
    default_message = "Draft not found"


class ImageGenerationTimeout(CreatorPulseError):
    status_code = 408
    default_message = "Image generation timed out"


class DuplicateSourceError(CreatorPulseError):
    status_code = 409
    default_message = "This source already exists in your list"


class RateLimitError(CreatorPulseError):
    status_code = 429
    default_message = "Please wait a moment before generating again"

    def __init__(self, retry_after: int = 0, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message or f"Please wait {retry_after} seconds before generating again")


class UpstreamServiceError(CreatorPulseError):
    """A third-party API call failed; the upstream text is kept in details"""

    status_code = 500
    default_message = "External service request failed"


class ImageGenerationError(UpstreamServiceError):
    default_message = "Image generation failed"


class StyleValidationError(CreatorPulseError):
    status_code = 400
    default_message = "Invalid style samples"


class StyleSampleNotFoundError(CreatorPulseError):
    status_code = 404
    default_message = "Style sample not found"


class SettingsValidationError(CreatorPulseError):
    status_code = 400
    default_message = "Invalid settings"
