"""
Trip Planner - per-trip planning chat.
Each upcoming trip keeps its own planner conversation in the profile.
"""
import logging
from typing import Optional

from .llm_client import LLMClient, get_llm_client
from .profile_store import ProfileStore
from ..models.message import Message
from ..models.profile import Trip

logger = logging.getLogger(__name__)


PLANNER_SYSTEM_PROMPT = """You are a friendly travel planner helping a traveler plan one trip.
Destination: {destination}
Timeframe: {timeframe}
Purpose: {purpose}

Keep answers short (2-3 sentences). Ask one follow-up question about flights,
lodging, dining or activities. Do not invent bookings or prices."""

PLANNER_FALLBACK = "Sorry, I couldn't work on your trip plan just now. Could you try again?"

# Recent planner messages sent as context
HISTORY_LIMIT = 10


class TripPlanner:
    """Answers planner chat messages for a trip."""

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or get_llm_client()

    def _build_messages(self, trip: Trip, user_message: str) -> list[dict]:
        system = PLANNER_SYSTEM_PROMPT.format(
            destination=trip.destination or "an undecided destination",
            timeframe=trip.timeframe.description or "flexible",
            purpose=trip.purpose.value,
        )
        messages = [{"role": "system", "content": system}]
        for msg in trip.planner_messages[-HISTORY_LIMIT:]:
            messages.append({"role": msg.role, "content": msg.content})
        messages.append({"role": "user", "content": user_message})
        return messages

    async def reply(self, trip: Trip, user_message: str) -> str:
        """Get the planner's answer to a message about this trip."""
        try:
            answer = await self.llm.chat(self._build_messages(trip, user_message))
        except Exception as e:
            logger.error(f"Planner LLM call failed: {e}")
            return PLANNER_FALLBACK
        return answer.strip() or PLANNER_FALLBACK

    async def send(self, store: ProfileStore, trip_index: int, text: str) -> Optional[Message]:
        """
        Record a user message on the trip and append the planner's reply.

        Returns:
            The assistant message, or None for blank input
        """
        text = (text or "").strip()
        if not text:
            return None
        trip = store.profile.upcoming_trips[trip_index] if store.profile.upcoming_trips else None
        if trip is None:
            raise IndexError("No upcoming trips")

        answer = await self.reply(trip, text)
        store.add_planner_message(trip_index, "user", text)
        return store.add_planner_message(trip_index, "assistant", answer, type="text")
