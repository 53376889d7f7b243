"""
Error taxonomy for the onboarding conversation.

Backend failures are raised as one of the exceptions below and turned into
an assistant message by the conversation manager, so a failed turn never
breaks the transcript.
"""
from enum import Enum
from typing import Optional, Tuple


class FailureCategory(str, Enum):
    """User-facing failure categories."""
    CONFIGURATION = "configuration"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SESSION_EXPIRED = "session_expired"
    GENERIC = "generic"


class OnboardingError(Exception):
    """Base class for all onboarding failures."""

    category = FailureCategory.GENERIC

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(OnboardingError):
    """Service credentials are absent or malformed."""

    category = FailureCategory.CONFIGURATION

    def __init__(self, message: str = "", setting: str = "VOICEFLOW_API_KEY", status_code: Optional[int] = None):
        super().__init__(message or f"{setting} not configured", status_code)
        self.setting = setting


class AuthError(OnboardingError):
    """The backend rejected our credentials (401/403)."""

    category = FailureCategory.AUTH


class NotFoundError(OnboardingError):
    """The backend could not find the project or user (404)."""

    category = FailureCategory.NOT_FOUND


class NetworkError(OnboardingError):
    """The backend is unreachable."""

    category = FailureCategory.NETWORK


class BackendTimeoutError(OnboardingError):
    """The backend did not answer in time."""

    category = FailureCategory.TIMEOUT


class SessionExpiredError(OnboardingError):
    """The conversation session is missing, unknown or expired."""

    category = FailureCategory.SESSION_EXPIRED


class UpstreamError(OnboardingError):
    """The dialogue runtime answered with a non-success status."""

    def __init__(self, message: str, status_code: int, body: Optional[dict] = None):
        super().__init__(message, status_code)
        self.body = body or {}


USER_MESSAGES = {
    FailureCategory.CONFIGURATION: (
        "The travel assistant isn't set up yet: {setting} is missing or invalid. "
        "Please add it to the server configuration and restart."
    ),
    FailureCategory.AUTH: (
        "Your session is no longer authorized. Please sign in again to continue."
    ),
    FailureCategory.NOT_FOUND: (
        "I couldn't find the conversation project. Please check the project configuration."
    ),
    FailureCategory.NETWORK: (
        "I can't reach the travel assistant right now. Please check your connection and try again."
    ),
    FailureCategory.TIMEOUT: (
        "The travel assistant took too long to respond. Please try again."
    ),
    FailureCategory.SESSION_EXPIRED: (
        "Your conversation session has expired. Please restart the onboarding to continue."
    ),
    FailureCategory.GENERIC: (
        "Sorry, I had a bit of a hiccup. Could you say that again?"
    ),
}


def categorize(exc: BaseException) -> FailureCategory:
    """Pick the failure category for any exception."""
    if isinstance(exc, UpstreamError) and exc.status_code is not None:
        return _category_for_status(exc.status_code)
    if isinstance(exc, OnboardingError) and exc.category != FailureCategory.GENERIC:
        return exc.category
    if isinstance(exc, TimeoutError):
        return FailureCategory.TIMEOUT
    if isinstance(exc, ConnectionError):
        return FailureCategory.NETWORK

    text = str(exc).lower()
    if "not configured" in text:
        return FailureCategory.CONFIGURATION
    if "401" in text or "403" in text or "unauthorized" in text or "forbidden" in text:
        return FailureCategory.AUTH
    if "404" in text or "not found" in text:
        return FailureCategory.NOT_FOUND
    if "timeout" in text or "timed out" in text:
        return FailureCategory.TIMEOUT
    if "network" in text or "connect" in text or "fetch" in text:
        return FailureCategory.NETWORK
    return FailureCategory.GENERIC


def _category_for_status(status_code: int) -> FailureCategory:
    if status_code in (401, 403):
        return FailureCategory.AUTH
    if status_code == 404:
        return FailureCategory.NOT_FOUND
    if status_code in (408, 504):
        return FailureCategory.TIMEOUT
    if status_code in (502, 503):
        return FailureCategory.NETWORK
    return FailureCategory.GENERIC


def describe_failure(exc: BaseException) -> Tuple[FailureCategory, str]:
    """Return (category, user-facing message) for an exception."""
    category = categorize(exc)
    template = USER_MESSAGES[category]
    if category == FailureCategory.CONFIGURATION:
        setting = getattr(exc, "setting", None) or _setting_from_text(str(exc))
        return category, template.format(setting=setting)
    return category, template


def _setting_from_text(text: str) -> str:
    if "project key" in text.lower():
        return "VOICEFLOW_PROJECT_KEY"
    return "VOICEFLOW_API_KEY"
