"""Custom exception hierarchy for MentorHub.

Transport and generation failures are system faults and surface as 500-class
responses; state errors indicate caller misuse and surface as 4xx responses.
"""

from typing import Optional, Dict, Any


class MentorHubException(Exception):
    """Base exception for all MentorHub-specific exceptions."""

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.details = details or {}


class TransportError(MentorHubException):
    """Raised when an HTTP call fails after retries or with a non-retryable error.

    ``status_code`` is ``None`` when no response was received (connection
    failure, timeout).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        attempts: int = 1,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.status_code = status_code
        self.attempts = attempts


class NotFoundError(MentorHubException):
    """Raised when a referenced session or assessment does not exist."""

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.resource_id = resource_id


class InvalidStateError(MentorHubException):
    """Raised when an operation targets a session in the wrong state."""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.current_state = current_state


class GenerationParseError(MentorHubException):
    """Raised when generated text does not decode to the expected JSON shape.

    Call sites recover from it locally with a fallback value.
    """

    def __init__(
        self,
        message: str,
        raw: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.raw = raw


class DivisionUndefined(MentorHubException):
    """Raised when a skill area has no answers to score."""

    def __init__(
        self,
        message: str,
        skill_area: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.skill_area = skill_area


class ConfigurationError(MentorHubException):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, request_id, details)
        self.config_key = config_key
