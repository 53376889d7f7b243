"""
Conversation Manager - drives the onboarding conversation.

Owns the transcript and loading state, calls the dialogue backend, forwards
extracted data to the profile store and moves the step tracker.
"""
import logging
from typing import Optional

from ..errors import FailureCategory, describe_failure
from ..models.message import Message
from ..models.session import ConversationState
from ..models.traces import InteractResult, SessionStart
from .dialogue import DialogueBackend
from .profile_store import ProfileStore
from .speech import TtsPlayer
from .steps import ONBOARDING_TOPICS, OnboardingTopic, StepTracker

logger = logging.getLogger(__name__)


class ConversationManager:
    """
    Conversation Session Manager.

    Every backend call happens inside start() or send_message(); failures
    are turned into an assistant message and never raised to the caller.
    A send issued while another call is in flight is dropped.
    """

    def __init__(
        self,
        backend: DialogueBackend,
        store: Optional[ProfileStore] = None,
        state: Optional[ConversationState] = None,
        player: Optional[TtsPlayer] = None,
        topics: tuple[OnboardingTopic, ...] = ONBOARDING_TOPICS
    ):
        self.backend = backend
        self.store = store or ProfileStore()
        self.state = state or ConversationState()
        self.player = player
        self.steps = StepTracker(topics, self.state.current_step)

    @property
    def messages(self) -> list[Message]:
        return self.state.messages

    @property
    def profile(self):
        return self.store.profile

    async def start(self) -> Optional[SessionStart]:
        """
        Initialize the backend session and show the greeting.

        Returns:
            The session start payload, or None if the call failed or
            another call is in flight
        """
        if self.state.is_loading:
            logger.warning("Session start ignored: a request is already pending")
            return None

        self.state.is_loading = True
        try:
            start = await self.backend.init_session()
            self.state.session_id = start.session_id
            self._append_assistant(start.initial_messages, start.initial_tts_urls)
            if not self.state.messages:
                self.state.add_message("assistant", self.steps.topic.prompt, type="text")
            self.store.apply_extracted(start.profile_data)
            logger.info(f"Conversation started: session_id={start.session_id}")
            return start
        except Exception as e:
            self._report_failure(e)
            return None
        finally:
            self.state.is_loading = False

    async def send_message(self, text: str) -> Optional[InteractResult]:
        """
        Send one user turn.

        Returns:
            The backend result, or None when the text was empty, a request
            was pending, or the call failed
        """
        text = (text or "").strip()
        if not text:
            return None
        if self.state.is_loading:
            logger.warning("Message dropped: a request is already pending")
            return None

        self.state.add_message("user", text)
        self.state.is_loading = True
        try:
            result = await self.backend.send_message(text)
            appended = self._append_assistant(result.messages, result.tts_urls)
            self.store.apply_extracted(result.profile_data)
            self._advance(result, appended)
            return result
        except Exception as e:
            self._report_failure(e)
            return None
        finally:
            self.state.is_loading = False

    def set_step(self, step: int) -> Message:
        """Jump to a topic and replay its prompt."""
        topic = self.steps.set_step(step)
        self.state.current_step = self.steps.current
        self.state.is_awaiting_confirmation = False
        return self.state.add_message("assistant", topic.prompt, type="text")

    async def reset(self):
        """Forget the transcript, progress and profile, and end the backend session."""
        if self.player:
            self.player.stop()
        if self.state.session_id:
            try:
                await self.backend.end_session()
            except Exception as e:
                logger.warning(f"Could not end backend session: {e}")
        self.state.clear()
        self.steps.set_step(0)
        self.store.reset()

    async def restart_session(self) -> Optional[SessionStart]:
        await self.reset()
        return await self.start()

    def _append_assistant(self, messages: list[str], tts_urls: list[str]) -> list[Message]:
        appended = []
        for index, content in enumerate(messages):
            tts_url = tts_urls[index] if index < len(tts_urls) else ""
            appended.append(self.state.add_message("assistant", content, type="text", tts_url=tts_url))

        speech = [m.tts_url for m in appended if m.tts_url]
        if self.player and speech:
            self.player.play(speech[-1])
        return appended

    def _advance(self, result: InteractResult, appended: list[Message]):
        """Update completion, confirmation and step after a turn."""
        if result.is_complete:
            self.state.is_complete = True
            self.state.is_awaiting_confirmation = False
            self.steps.finish()
            self.state.current_step = self.steps.current
            if appended:
                appended[-1].type = "completion"
            logger.info("Onboarding conversation complete")
            return

        if result.choices:
            # The runtime asks the traveler to confirm what it extracted
            self.state.is_awaiting_confirmation = True
            if appended:
                appended[-1].type = "confirmation"
        elif self.state.is_awaiting_confirmation:
            self.state.is_awaiting_confirmation = False
            self.steps.advance()
            self.state.current_step = self.steps.current

    def _report_failure(self, exc: Exception):
        category, message = describe_failure(exc)
        logger.error(f"Conversation call failed ({category.value}): {exc}")
        if category == FailureCategory.SESSION_EXPIRED:
            self.state.session_id = None
        self.state.add_message("assistant", message, type="text")
