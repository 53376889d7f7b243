"""Data models for travel onboarding."""
from .message import Message
from .profile import (
    TravelProfile,
    TravelGroup,
    TravelMember,
    GroupType,
    ContactInfo,
    LocationInfo,
    Trip,
    PastTrip,
    BudgetPreferences,
    classify_group,
)
from .session import ConversationState, VoiceflowSession, SessionStore
from .traces import Trace, TraceType, ParsedResponse, SessionStart, InteractResult

__all__ = [
    "Message",
    "TravelProfile",
    "TravelGroup",
    "TravelMember",
    "GroupType",
    "ContactInfo",
    "LocationInfo",
    "Trip",
    "PastTrip",
    "BudgetPreferences",
    "classify_group",
    "ConversationState",
    "VoiceflowSession",
    "SessionStore",
    "Trace",
    "TraceType",
    "ParsedResponse",
    "SessionStart",
    "InteractResult",
]
