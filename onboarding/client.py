"""
Voiceflow API Client.
Python client for the onboarding server's /api/voiceflow endpoints.
The session cookie set by the server is kept in the underlying httpx client.
"""
import logging
from typing import Any, Optional

import httpx

from .errors import (
    AuthError,
    BackendTimeoutError,
    ConfigurationError,
    NetworkError,
    NotFoundError,
    OnboardingError,
    SessionExpiredError,
)
from .models.traces import InteractResult, SessionStart
from .services.dialogue import DialogueBackend

logger = logging.getLogger(__name__)

API_BASE = "/api/voiceflow"


class VoiceflowApiClient(DialogueBackend):
    """Async client for the onboarding conversation API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if base_url is None:
            from .config import settings
            base_url = settings.api_base_url
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_BASE,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "VoiceflowApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, fallback: str, json: Optional[dict] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"{fallback}: request timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"{fallback}: network error ({e})") from e

        if not response.is_success:
            raise _error_from_response(response, fallback)
        return response.json()

    async def init_session(self) -> SessionStart:
        """Initialize a new session and return the greeting."""
        data = await self._request("POST", "/session", "Failed to initialize Voiceflow session")
        return SessionStart.model_validate(data)

    async def send_message(self, text: str) -> InteractResult:
        """Send a message and get the parsed response."""
        data = await self._request(
            "POST", "/interact", "Failed to send message to Voiceflow", json={"message": text}
        )
        return InteractResult.model_validate(data)

    async def send_action(self, action_type: str, payload: Any = None) -> InteractResult:
        """Send an action (e.g. launch, intent)."""
        action = {"type": action_type}
        if payload is not None:
            action["payload"] = payload
        data = await self._request(
            "POST", "/interact", "Failed to send action to Voiceflow", json={"action": action}
        )
        return InteractResult.model_validate(data)

    async def get_state(self) -> dict:
        """Get the current conversation state."""
        data = await self._request("GET", "/state", "Failed to get Voiceflow state")
        return data["state"]

    async def delete_session(self) -> None:
        """Reset/delete the current session."""
        await self._request("DELETE", "/session", "Failed to delete Voiceflow session")
        self._client.cookies.clear()

    async def end_session(self) -> None:
        await self.delete_session()

    async def check_status(self) -> dict:
        """Check Voiceflow service status."""
        return await self._request("GET", "/status", "Failed to check Voiceflow status")


def _error_from_response(response: httpx.Response, fallback: str) -> OnboardingError:
    """Map an error response onto the onboarding error taxonomy."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail", body) if isinstance(body, dict) else {}
    if not isinstance(detail, dict):
        detail = {"error": str(detail)}

    message = detail.get("error") or fallback
    code = detail.get("code") or ""
    status = response.status_code
    logger.debug(f"API error {status} {code}: {message}")

    if code.startswith("config/") or "not configured" in message.lower():
        setting = "VOICEFLOW_PROJECT_KEY" if code == "config/project-key" else "VOICEFLOW_API_KEY"
        return ConfigurationError(message, setting=setting, status_code=status)
    if code.startswith("session/") or status == 410:
        return SessionExpiredError(message, status)
    if status in (401, 403):
        return AuthError(message, status)
    if status == 404:
        return NotFoundError(message, status)
    if status == 504:
        return BackendTimeoutError(message, status)
    if status in (502, 503):
        return NetworkError(message, status)
    return OnboardingError(message, status)
