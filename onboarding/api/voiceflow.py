"""
API Routes for the Voiceflow-backed onboarding conversation.
"""
import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Optional

from ..config import Settings, get_settings, get_voiceflow_status, API_KEY_SETUP_STEPS
from ..errors import (
    BackendTimeoutError,
    ConfigurationError,
    NetworkError,
    UpstreamError,
)
from ..models.session import SessionStore, VoiceflowSession, session_store
from ..models.traces import InteractResult, SessionStart
from ..services.traces import parse_traces
from ..services.voiceflow_runtime import VoiceflowRuntime, get_runtime


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voiceflow", tags=["voiceflow"])


# Request/Response Models
class InteractAction(BaseModel):
    type: str = Field(..., description="'launch', 'text', 'intent', ...")
    payload: Optional[Any] = None


class InteractRequest(BaseModel):
    message: Optional[str] = None
    action: Optional[InteractAction] = None


class DeleteSessionResponse(BaseModel):
    success: bool
    message: str


class StateResponse(BaseModel):
    state: dict


class StatusResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    message: str
    configuration: dict
    setup_instructions: Optional[list[str]] = None


# Dependencies

def get_session_store() -> SessionStore:
    return session_store


def get_voiceflow_runtime(config: Settings = Depends(get_settings)) -> VoiceflowRuntime:
    return get_runtime(config)


def _error(status_code: int, error: str, code: str, message: Optional[str] = None, **extra) -> HTTPException:
    detail = {"error": error, "code": code}
    if message:
        detail["message"] = message
    detail.update(extra)
    return HTTPException(status_code=status_code, detail=detail)


def _configuration_error(e: ConfigurationError) -> HTTPException:
    if e.setting == "VOICEFLOW_PROJECT_KEY":
        return _error(
            500, str(e), "config/project-key",
            message="Please set VOICEFLOW_PROJECT_KEY",
            instructions=["Use your Voiceflow project ID (found in project URL or settings)"],
        )
    return _error(
        500, str(e), "config/api-key",
        message="Please set VOICEFLOW_API_KEY with a valid API key from Voiceflow Dashboard",
        instructions=list(API_KEY_SETUP_STEPS),
    )


def _upstream_error(e: Exception, fallback: str, config: Settings) -> HTTPException:
    """Translate runtime failures into HTTP errors for the client."""
    if isinstance(e, ConfigurationError):
        return _configuration_error(e)
    if isinstance(e, UpstreamError):
        return _error(
            e.status_code, fallback, "upstream/error",
            details=e.body if config.debug else None,
        )
    if isinstance(e, BackendTimeoutError):
        return _error(504, fallback, "upstream/timeout")
    if isinstance(e, NetworkError):
        return _error(502, fallback, "upstream/unreachable")
    return _error(500, fallback, "internal", details=str(e) if config.debug else None)


def _require_session(request: Request, config: Settings, store: SessionStore) -> VoiceflowSession:
    session_id = request.cookies.get(config.session_cookie_name)
    if not session_id:
        raise _error(400, "No session found. Please initialize a session first.", "session/missing")
    session = store.get(session_id)
    if not session:
        raise _error(410, "Session expired or unknown. Please initialize a new session.", "session/expired")
    return session


def _reusable_session_id(cookie: Optional[str], store: SessionStore) -> Optional[str]:
    """The cookie value if it names a live session or is a UUID we could have issued."""
    if not cookie:
        return None
    if store.get(cookie):
        return cookie
    try:
        return str(uuid.UUID(cookie))
    except ValueError:
        logger.warning("Ignoring malformed session cookie")
        return None


# Endpoints

@router.post("/session", response_model=SessionStart)
async def create_session(
    request: Request,
    response: Response,
    config: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    runtime: VoiceflowRuntime = Depends(get_voiceflow_runtime),
):
    """Initialize a Voiceflow session and return the greeting."""
    try:
        runtime.ensure_configured()
    except ConfigurationError as e:
        raise _configuration_error(e)

    expired = store.cleanup_expired()
    if expired:
        logger.info(f"Evicted {expired} expired session(s)")

    # Reuse the cookie for continuity across page refreshes
    existing_id = _reusable_session_id(request.cookies.get(config.session_cookie_name), store)
    session = store.create(existing_id)
    logger.info(f"Session created: session_id={session.session_id}")

    try:
        traces = await runtime.launch(session.voiceflow_user_id)
    except Exception as e:
        store.delete(session.session_id)
        logger.error(f"Session initialization failed for {session.session_id}: {e}")
        raise _upstream_error(e, "Failed to initialize Voiceflow session", config)

    parsed = parse_traces(traces)
    logger.info(f"Session initialized: session_id={session.session_id}")

    response.set_cookie(
        key=config.session_cookie_name,
        value=session.session_id,
        max_age=config.session_max_age_seconds,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
    )

    return SessionStart(
        session_id=session.session_id,
        voiceflow_user_id=session.voiceflow_user_id,
        expires_at=session.expires_at_ms(),
        initial_messages=parsed.messages,
        initial_tts_urls=parsed.tts_urls,
        profile_data=parsed.profile_data,
    )


@router.post("/interact", response_model=InteractResult)
async def interact(
    body: InteractRequest,
    request: Request,
    config: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    runtime: VoiceflowRuntime = Depends(get_voiceflow_runtime),
):
    """Send a message or action and return the parsed response."""
    session = _require_session(request, config, store)

    if body.action:
        action = body.action.model_dump(exclude_none=True)
    elif body.message:
        action = {"type": "text", "payload": body.message}
    else:
        raise _error(400, "Either message or action is required", "request/empty")

    logger.info(f"Sending interaction: session_id={session.session_id} action={action['type']}")

    try:
        traces = await runtime.interact(session.voiceflow_user_id, action)
    except Exception as e:
        raise _upstream_error(e, "Failed to send message to Voiceflow", config)

    parsed = parse_traces(traces)
    logger.info(
        f"Interaction successful: session_id={session.session_id} "
        f"messages={len(parsed.messages)} has_profile_data={bool(parsed.profile_data)} "
        f"complete={parsed.is_complete}"
    )

    return InteractResult(
        **parsed.model_dump(),
        traces=[t for t in traces if isinstance(t, dict)],
    )


@router.get("/state", response_model=StateResponse)
async def get_state(
    request: Request,
    config: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    runtime: VoiceflowRuntime = Depends(get_voiceflow_runtime),
):
    """Get the current conversation state from the runtime."""
    session = _require_session(request, config, store)
    try:
        state = await runtime.get_state(session.voiceflow_user_id)
    except Exception as e:
        raise _upstream_error(e, "Failed to fetch Voiceflow state", config)
    return StateResponse(state=state)


@router.delete("/session", response_model=DeleteSessionResponse)
async def delete_session(
    request: Request,
    response: Response,
    config: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    runtime: VoiceflowRuntime = Depends(get_voiceflow_runtime),
):
    """Reset the runtime state and forget the session."""
    session = _require_session(request, config, store)
    try:
        await runtime.delete_state(session.voiceflow_user_id)
    except Exception as e:
        # The local session goes away regardless
        logger.warning(f"Runtime state delete failed for {session.session_id}: {e}")

    store.delete(session.session_id)
    response.delete_cookie(config.session_cookie_name)
    logger.info(f"Session deleted: session_id={session.session_id}")

    return DeleteSessionResponse(success=True, message="Session deleted successfully")


@router.get("/status", response_model=StatusResponse)
async def status(config: Settings = Depends(get_settings)):
    """Report whether the Voiceflow credentials are usable."""
    return StatusResponse(**get_voiceflow_status(config))
