"""Shared pytest fixtures: configured settings, a fake runtime and the API app."""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from onboarding.api.voiceflow import get_session_store, get_voiceflow_runtime
from onboarding.config import Settings, get_settings
from onboarding.main import app
from onboarding.models.session import SessionStore
from onboarding.models.traces import InteractResult, SessionStart
from onboarding.services.dialogue import DialogueBackend
from onboarding.services.voiceflow_runtime import VoiceflowRuntime


VALID_API_KEY = "VF.DM.65f0c0ffee1234567890abcd"

GREETING_TRACES = [
    {"type": "speak", "payload": {"message": "Welcome! Let's build your travel profile.", "src": "https://tts.example.com/1.mp3"}},
]


def make_settings(**overrides) -> Settings:
    values = {
        "voiceflow_api_key": VALID_API_KEY,
        "voiceflow_project_key": "proj-onboarding",
        "voiceflow_runtime_url": "https://runtime.test",
        "voiceflow_retry_delay": 0,
        "debug": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeRuntime:
    """Scripted stand-in for the Voiceflow runtime, served over httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.launch_traces = list(GREETING_TRACES)
        self.interact_traces = [{"type": "text", "payload": {"message": "Got it."}}]
        self.state = {"stack": [], "storage": {}, "variables": {"email": "a@b.com"}}
        self.status_code = 200
        self.failures_before_success = 0
        self.failure = httpx.ConnectError

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failures_before_success > 0:
            self.failures_before_success -= 1
            raise self.failure("runtime down", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"message": "upstream said no"})

        if request.method == "POST" and request.url.path.endswith("/interact"):
            body = json.loads(request.content)
            if body["action"]["type"] == "launch":
                return httpx.Response(200, json=self.launch_traces)
            return httpx.Response(200, json=self.interact_traces)
        if request.method == "GET":
            return httpx.Response(200, json=self.state)
        if request.method == "DELETE":
            return httpx.Response(200, json={})
        return httpx.Response(405)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]


class FakeBackend(DialogueBackend):
    """In-memory dialogue backend for conversation manager tests."""

    def __init__(self, start=None, results=None, error=None):
        self.start = start or SessionStart(session_id="sess-1", initial_messages=["Hi there!"], initial_tts_urls=[""])
        self.results = list(results or [])
        self.error = error
        self.sent: list[str] = []
        self.ended = False

    async def init_session(self) -> SessionStart:
        if self.error:
            raise self.error
        return self.start

    async def send_message(self, text: str) -> InteractResult:
        self.sent.append(text)
        if self.error:
            raise self.error
        if self.results:
            return self.results.pop(0)
        return InteractResult(messages=["Thanks!"], tts_urls=[""])

    async def end_session(self) -> None:
        self.ended = True


@pytest.fixture
def fake_runtime():
    return FakeRuntime()


@pytest.fixture
def settings_override():
    return make_settings()


@pytest.fixture
def api_client(fake_runtime, settings_override):
    """TestClient wired to the fake runtime and a fresh session store."""
    store = SessionStore()
    app.dependency_overrides[get_settings] = lambda: settings_override
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_voiceflow_runtime] = lambda: VoiceflowRuntime(
        settings_override, transport=fake_runtime.transport()
    )
    with TestClient(app) as client:
        client.session_store = store
        yield client
    app.dependency_overrides.clear()
