from abc import ABC, abstractmethod

from ..models.traces import InteractResult, SessionStart


class DialogueBackend(ABC):
    """A conversation backend the session manager can drive."""

    @abstractmethod
    async def init_session(self) -> SessionStart:
        ...

    @abstractmethod
    async def send_message(self, text: str) -> InteractResult:
        ...

    async def end_session(self) -> None:
        """Drop the backend session. Backends without sessions ignore this."""
        return None
