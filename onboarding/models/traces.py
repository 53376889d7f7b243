"""
Dialogue runtime payloads: traces and the parsed results built from them.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Optional
from enum import Enum


class TraceType(str, Enum):
    """Trace kinds the onboarding flow understands."""
    TEXT = "text"
    SPEAK = "speak"
    VISUAL = "visual"
    CHOICE = "choice"
    END = "end"
    PROFILE_DATA = "profile_data"


class Trace(BaseModel):
    """One unit of a runtime response. Unknown kinds are kept as plain strings."""
    model_config = ConfigDict(extra="allow")

    type: str
    payload: Any = None

    def payload_get(self, key: str) -> Any:
        if isinstance(self.payload, dict):
            return self.payload.get(key)
        return None


class ParsedResponse(BaseModel):
    """Messages, speech and extracted data from a batch of traces."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    messages: list[str] = Field(default_factory=list)
    tts_urls: list[str] = Field(default_factory=list)
    profile_data: dict[str, Any] = Field(default_factory=dict)
    is_complete: bool = False
    choices: list[str] = Field(default_factory=list)


class SessionStart(BaseModel):
    """Result of initializing a conversation session."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    voiceflow_user_id: Optional[str] = None
    expires_at: Optional[int] = Field(None, description="Epoch milliseconds")
    initial_messages: list[str] = Field(default_factory=list)
    initial_tts_urls: list[str] = Field(default_factory=list)
    profile_data: dict[str, Any] = Field(default_factory=dict)


class InteractResult(ParsedResponse):
    """Result of one conversation turn, with the raw traces for debugging."""
    traces: list[dict[str, Any]] = Field(default_factory=list)
