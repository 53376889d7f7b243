"""
Voiceflow Runtime Client.
Talks to the hosted Dialog Manager API on behalf of the onboarding server.
"""
import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..config import Settings, is_valid_api_key
from ..errors import (
    BackendTimeoutError,
    ConfigurationError,
    NetworkError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


class VoiceflowRuntime:
    """Async client for the Voiceflow state/interact endpoints."""

    def __init__(self, config: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.base_url = config.voiceflow_runtime_url.rstrip("/")
        self.max_retries = config.voiceflow_max_retries
        self.retry_delay = config.voiceflow_retry_delay
        self._transport = transport

    def ensure_configured(self):
        """Raise ConfigurationError unless both keys are usable."""
        if not is_valid_api_key(self.config.voiceflow_api_key):
            raise ConfigurationError(
                "Voiceflow API key not configured properly",
                setting="VOICEFLOW_API_KEY",
            )
        if not self.config.voiceflow_project_key:
            raise ConfigurationError(
                "Voiceflow project key not configured",
                setting="VOICEFLOW_PROJECT_KEY",
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.config.voiceflow_timeout,
            transport=self._transport,
        )

    def _headers(self) -> dict:
        return {
            "Authorization": self.config.voiceflow_api_key,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _user_path(user_id: str) -> str:
        return f"/state/user/{quote(user_id, safe='')}"

    def _interact_body(self, action: dict) -> dict:
        return {
            "action": action,
            "config": {"tts": True, "stripSSML": True},
            "versionID": self.config.version_id,
        }

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> httpx.Response:
        """Send a request, retrying transport failures only."""
        attempt = 0
        async with self._client() as client:
            while True:
                try:
                    return await client.request(method, path, headers=self._headers(), json=json)
                except httpx.TimeoutException as e:
                    error: Exception = BackendTimeoutError(f"Voiceflow request timed out: {e}")
                except httpx.TransportError as e:
                    error = NetworkError(f"Voiceflow unreachable: {e}")

                if attempt >= self.max_retries:
                    raise error
                attempt += 1
                logger.warning(
                    f"Voiceflow API call failed, retrying... ({attempt}/{self.max_retries})"
                )
                await asyncio.sleep(self.retry_delay)

    @staticmethod
    def _raise_for_status(response: httpx.Response, message: str):
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"body": body}
        logger.error(
            f"{message}: status={response.status_code} reason={response.reason_phrase} error={body}"
        )
        raise UpstreamError(message, status_code=response.status_code, body=body)

    async def launch(self, user_id: str) -> list[dict[str, Any]]:
        """Start (or restart) the conversation for a runtime user."""
        self.ensure_configured()
        response = await self._request(
            "POST",
            f"{self._user_path(user_id)}/interact",
            json=self._interact_body({"type": "launch"}),
        )
        self._raise_for_status(response, "Failed to initialize Voiceflow session")
        return response.json()

    async def interact(self, user_id: str, action: dict) -> list[dict[str, Any]]:
        """Send an action (text, intent, launch...) and return the traces."""
        self.ensure_configured()
        response = await self._request(
            "POST",
            f"{self._user_path(user_id)}/interact",
            json=self._interact_body(action),
        )
        self._raise_for_status(response, "Failed to send message to Voiceflow")
        return response.json()

    async def send_text(self, user_id: str, message: str) -> list[dict[str, Any]]:
        return await self.interact(user_id, {"type": "text", "payload": message})

    async def get_state(self, user_id: str) -> dict[str, Any]:
        """Fetch the runtime state (stack, storage, variables)."""
        self.ensure_configured()
        response = await self._request("GET", self._user_path(user_id))
        self._raise_for_status(response, "Failed to fetch Voiceflow state")
        return response.json()

    async def delete_state(self, user_id: str) -> bool:
        """Delete the runtime state. Returns False when the runtime refused."""
        self.ensure_configured()
        response = await self._request("DELETE", self._user_path(user_id))
        if not response.is_success:
            logger.warning(f"Voiceflow state delete returned {response.status_code} for {user_id}")
            return False
        return True


def get_runtime(config: Settings) -> VoiceflowRuntime:
    """Create a runtime client for the given settings."""
    return VoiceflowRuntime(config)
