"""Tests for the /api/voiceflow endpoints."""
import uuid
from datetime import datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import make_settings
from onboarding.api.voiceflow import get_session_store, get_voiceflow_runtime
from onboarding.config import get_settings
from onboarding.main import app
from onboarding.models.session import SessionStore
from onboarding.services.voiceflow_runtime import VoiceflowRuntime


COOKIE = "voiceflow_session_id"


class TestCreateSession:
    """Test session initialization."""

    def test_creates_session_and_sets_cookie(self, api_client, fake_runtime):
        response = api_client.post("/api/voiceflow/session")

        assert response.status_code == 200
        data = response.json()
        assert data["initialMessages"] == ["Welcome! Let's build your travel profile."]
        assert data["initialTtsUrls"] == ["https://tts.example.com/1.mp3"]
        assert data["voiceflowUserId"] == f"onboarding_{data['sessionId']}"
        assert data["expiresAt"] > 0
        assert api_client.cookies.get(COOKIE) == data["sessionId"]
        assert len(api_client.session_store) == 1

        body = fake_runtime.bodies()[0]
        assert body["action"] == {"type": "launch"}
        assert body["config"] == {"tts": True, "stripSSML": True}
        assert body["versionID"] == "proj-onboarding"
        assert fake_runtime.requests[0].headers["Authorization"].startswith("VF.DM.")

    def test_reuses_existing_cookie(self, api_client):
        first = api_client.post("/api/voiceflow/session").json()
        second = api_client.post("/api/voiceflow/session").json()

        assert first["sessionId"] == second["sessionId"]
        assert len(api_client.session_store) == 1

    def test_malformed_cookie_gets_new_session(self, api_client, fake_runtime):
        api_client.cookies.set(COOKIE, "x/../../../../admin")

        data = api_client.post("/api/voiceflow/session").json()

        assert data["sessionId"] != "x/../../../../admin"
        assert str(uuid.UUID(data["sessionId"])) == data["sessionId"]
        assert fake_runtime.requests[0].url.raw_path == f"/state/user/onboarding_{data['sessionId']}/interact".encode()

    def test_uuid_cookie_reused_after_restart(self, api_client):
        previous = str(uuid.uuid4())
        api_client.cookies.set(COOKIE, previous)

        data = api_client.post("/api/voiceflow/session").json()

        assert data["sessionId"] == previous

    def test_abandoned_sessions_evicted(self, api_client):
        store = api_client.session_store
        abandoned = store.create()
        abandoned.expires_at = datetime.now() - timedelta(seconds=1)

        api_client.post("/api/voiceflow/session")

        assert len(store) == 1
        assert store.get(abandoned.session_id) is None

    def test_profile_data_in_greeting(self, api_client, fake_runtime):
        fake_runtime.launch_traces = [
            {"type": "text", "payload": {"message": "Welcome back, Alex"}},
            {"type": "profile_data", "payload": {"data": {"contactInfo": {"firstName": "Alex"}}}},
        ]

        data = api_client.post("/api/voiceflow/session").json()

        assert data["initialTtsUrls"] == [""]
        assert data["profileData"] == {"contactInfo": {"firstName": "Alex"}}

    def test_upstream_failure_forgets_session(self, api_client, fake_runtime):
        fake_runtime.status_code = 401

        response = api_client.post("/api/voiceflow/session")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "upstream/error"
        assert len(api_client.session_store) == 0
        assert api_client.cookies.get(COOKIE) is None

    def test_unreachable_runtime(self, api_client, fake_runtime):
        fake_runtime.failures_before_success = 10

        response = api_client.post("/api/voiceflow/session")

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "upstream/unreachable"
        assert len(fake_runtime.requests) == 3

    def test_timeout(self, api_client, fake_runtime):
        fake_runtime.failures_before_success = 10
        fake_runtime.failure = httpx.ReadTimeout

        response = api_client.post("/api/voiceflow/session")

        assert response.status_code == 504
        assert response.json()["detail"]["code"] == "upstream/timeout"


class TestNotConfigured:
    """Test responses when credentials are missing."""

    def _client(self, **overrides):
        config = make_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: config
        app.dependency_overrides[get_session_store] = lambda: SessionStore()
        app.dependency_overrides[get_voiceflow_runtime] = lambda: VoiceflowRuntime(config)
        return TestClient(app)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_missing_api_key(self):
        response = self._client(voiceflow_api_key="").post("/api/voiceflow/session")

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["code"] == "config/api-key"
        assert "not configured" in detail["error"]
        assert any("VF.DM." in step for step in detail["instructions"])

    def test_placeholder_api_key(self):
        response = self._client(voiceflow_api_key="VF.DM.XXXXXXXXXXXXXXXXXXXX").post("/api/voiceflow/session")
        assert response.json()["detail"]["code"] == "config/api-key"

    def test_missing_project_key(self):
        response = self._client(voiceflow_project_key="").post("/api/voiceflow/session")

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "config/project-key"

    def test_status_reports_missing_key(self):
        response = self._client(voiceflow_api_key="").get("/api/voiceflow/status")

        data = response.json()
        assert data["status"] == "not_configured"
        assert data["configuration"]["apiKey"] == "missing"
        assert len(data["setupInstructions"]) == 5


class TestInteract:
    """Test sending messages."""

    def test_requires_session(self, api_client):
        response = api_client.post("/api/voiceflow/interact", json={"message": "hi"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "session/missing"

    def test_unknown_session(self, api_client):
        api_client.cookies.set(COOKIE, "not-a-session")

        response = api_client.post("/api/voiceflow/interact", json={"message": "hi"})

        assert response.status_code == 410
        assert response.json()["detail"]["code"] == "session/expired"

    def test_empty_request(self, api_client):
        api_client.post("/api/voiceflow/session")

        response = api_client.post("/api/voiceflow/interact", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "request/empty"

    def test_message(self, api_client, fake_runtime):
        fake_runtime.interact_traces = [
            {"type": "speak", "payload": {"message": "Tokyo sounds amazing!", "src": "https://tts/2.mp3"}},
            {"type": "text", "payload": {"message": "When are you going?"}},
            {"type": "profile_data", "payload": {"data": {"trips": [{"destination": "Tokyo"}]}}},
            {"type": "choice", "payload": {"buttons": [{"name": "Yes"}]}},
        ]
        session = api_client.post("/api/voiceflow/session").json()

        response = api_client.post("/api/voiceflow/interact", json={"message": "Tokyo in June"})

        assert response.status_code == 200
        data = response.json()
        assert data["messages"] == ["Tokyo sounds amazing!", "When are you going?"]
        assert data["ttsUrls"] == ["https://tts/2.mp3", ""]
        assert data["profileData"] == {"trips": [{"destination": "Tokyo"}]}
        assert data["choices"] == ["Yes"]
        assert data["isComplete"] == False
        assert len(data["traces"]) == 4

        request = fake_runtime.requests[-1]
        assert request.url.path == f"/state/user/{session['voiceflowUserId']}/interact"
        assert fake_runtime.bodies()[-1]["action"] == {"type": "text", "payload": "Tokyo in June"}

    def test_action(self, api_client, fake_runtime):
        api_client.post("/api/voiceflow/session")

        api_client.post("/api/voiceflow/interact", json={"action": {"type": "intent", "payload": {"intent": {"name": "yes"}}}})

        assert fake_runtime.bodies()[-1]["action"] == {"type": "intent", "payload": {"intent": {"name": "yes"}}}

    def test_upstream_status_passed_through(self, api_client, fake_runtime):
        api_client.post("/api/voiceflow/session")
        fake_runtime.status_code = 404

        response = api_client.post("/api/voiceflow/interact", json={"message": "hi"})

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "Failed to send message to Voiceflow"


class TestStateAndDelete:
    """Test state lookup and session deletion."""

    def test_get_state(self, api_client):
        api_client.post("/api/voiceflow/session")

        response = api_client.get("/api/voiceflow/state")

        assert response.status_code == 200
        assert response.json()["state"]["variables"] == {"email": "a@b.com"}

    def test_delete_session(self, api_client, fake_runtime):
        api_client.post("/api/voiceflow/session")

        response = api_client.delete("/api/voiceflow/session")

        assert response.json() == {"success": True, "message": "Session deleted successfully"}
        assert fake_runtime.requests[-1].method == "DELETE"
        assert len(api_client.session_store) == 0

        assert api_client.post("/api/voiceflow/interact", json={"message": "hi"}).status_code in (400, 410)

    def test_delete_survives_runtime_failure(self, api_client, fake_runtime):
        api_client.post("/api/voiceflow/session")
        fake_runtime.failures_before_success = 10

        response = api_client.delete("/api/voiceflow/session")

        assert response.status_code == 200
        assert len(api_client.session_store) == 0


class TestStatusAndHealth:
    def test_status_ready(self, api_client):
        data = api_client.get("/api/voiceflow/status").json()

        assert data["status"] == "ready"
        assert data["configuration"]["projectKey"] == "proj-onboarding"
        assert data["setupInstructions"] is None

    def test_health(self, api_client):
        assert api_client.get("/health").json() == {"status": "healthy", "engine": "voiceflow"}
