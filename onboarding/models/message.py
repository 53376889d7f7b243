"""Chat transcript messages."""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Literal, Optional
from datetime import datetime
import uuid


MessageType = Literal["text", "confirmation", "followup", "completion"]


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


class Message(BaseModel):
    """A single message in the conversation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_short_id)
    role: Literal["user", "assistant"] = Field(..., description="'user' or 'assistant'")
    content: str = Field(..., description="Message content")
    type: Optional[MessageType] = None
    tts_url: Optional[str] = Field(None, description="Speech audio for assistant messages")
    timestamp: datetime = Field(default_factory=datetime.now)
