"""
Session management - conversation state on the client side and the
cookie-to-runtime-user mapping on the server side.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timedelta
import uuid

from ..config import settings
from .message import Message, MessageType


class ConversationState(BaseModel):
    """Transcript and progress of one onboarding conversation."""
    session_id: Optional[str] = Field(
        None,
        description="Backend session identifier, None until initialized"
    )
    messages: list[Message] = Field(
        default_factory=list,
        description="Chat history, in insertion order"
    )
    current_step: int = Field(
        default=0,
        ge=0,
        description="Index into the onboarding topics"
    )
    is_awaiting_confirmation: bool = False
    is_loading: bool = False
    is_complete: bool = False
    updated_at: datetime = Field(default_factory=datetime.now)

    def add_message(
        self,
        role: str,
        content: str,
        type: Optional[MessageType] = None,
        tts_url: Optional[str] = None
    ) -> Message:
        """Add a message to the conversation."""
        msg = Message(role=role, content=content, type=type, tts_url=tts_url or None)
        self.messages.append(msg)
        self.updated_at = datetime.now()
        return msg

    def clear(self):
        """Drop the transcript and progress."""
        self.session_id = None
        self.messages = []
        self.current_step = 0
        self.is_awaiting_confirmation = False
        self.is_loading = False
        self.is_complete = False
        self.updated_at = datetime.now()


class VoiceflowSession(BaseModel):
    """Server-side record linking a session cookie to a runtime user."""
    session_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Value of the session cookie"
    )
    voiceflow_user_id: str = Field(..., description="Runtime user id")
    created_at: datetime = Field(default_factory=datetime.now)
    expires_at: datetime = Field(...)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now()) >= self.expires_at

    def expires_at_ms(self) -> int:
        return int(self.expires_at.timestamp() * 1000)


# In-memory session storage (would be replaced with database in production)
class SessionStore:
    """Simple in-memory session store."""

    def __init__(self, max_age_seconds: int = 60 * 60 * 24 * 7):
        self._sessions: dict[str, VoiceflowSession] = {}
        self.max_age = timedelta(seconds=max_age_seconds)

    def create(self, session_id: Optional[str] = None, user_prefix: str = "onboarding") -> VoiceflowSession:
        """Create (or renew) a session, reusing the cookie value when given."""
        session_id = session_id or str(uuid.uuid4())
        now = datetime.now()
        session = VoiceflowSession(
            session_id=session_id,
            voiceflow_user_id=f"{user_prefix}_{session_id}",
            created_at=now,
            expires_at=now + self.max_age,
        )
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[VoiceflowSession]:
        """Get a live session by ID; expired sessions are dropped."""
        session = self._sessions.get(session_id)
        if session and session.is_expired():
            self.delete(session_id)
            return None
        return session

    def delete(self, session_id: str):
        """Delete a session."""
        self._sessions.pop(session_id, None)

    def cleanup_expired(self) -> int:
        now = datetime.now()
        expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


# Global session store, sessions live as long as the cookie
session_store = SessionStore(settings.session_max_age_seconds)
