"""Services for travel onboarding."""
from .conversation import ConversationManager
from .dialogue import DialogueBackend
from .profile_merge import merge_profile_data, format_profile_for_display
from .profile_store import ProfileStore
from .steps import StepTracker, ONBOARDING_TOPICS
from .traces import parse_traces
from .voiceflow_runtime import VoiceflowRuntime

__all__ = [
    "ConversationManager",
    "DialogueBackend",
    "merge_profile_data",
    "format_profile_for_display",
    "ProfileStore",
    "StepTracker",
    "ONBOARDING_TOPICS",
    "parse_traces",
    "VoiceflowRuntime",
]
