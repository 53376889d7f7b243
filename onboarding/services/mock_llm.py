"""
Mock LLM Client - keyword intent responder for the trip planner chat.
Works offline; the destination is read from the system prompt.
"""
import re
import logging
from typing import Optional

logger = logging.getLogger(__name__)


PLANNING_INTENTS = [
    (("flight", "fly", "airline", "ticket"), "flights"),
    (("hotel", "stay", "room", "airbnb", "resort"), "lodging"),
    (("food", "eat", "restaurant", "dinner", "lunch", "breakfast"), "dining"),
    (("do", "see", "visit", "activity", "tour"), "activities"),
]

TOPIC_REPLIES = {
    "flights": "I can help you find flights to {destination}. Do you have preferred airlines or specific times you'd like to fly?",
    "lodging": "For {destination}, are you looking for a luxury hotel, a boutique stay, or something more budget-friendly?",
    "dining": "{destination} has great food scenes! Are you interested in fine dining, local street food, or family-friendly spots?",
    "activities": "There's a lot to do in {destination}. I can suggest museums, outdoor adventures, or relaxing spots. What's your vibe?",
}

GREETING_REPLY = "Hello! I'm your dedicated planner for {destination}. What should we tackle first: flights, hotels, or activities?"
DEFAULT_REPLY = "I've noted that for your {destination} trip. I can help organize that into your itinerary. Anything else specific you want to add?"

_DESTINATION_RE = re.compile(r"^Destination: (.+)$", re.MULTILINE)


def detect_topic(message: str) -> Optional[str]:
    """First planning topic whose keywords appear as words in the message."""
    words = set(re.findall(r"[a-z]+", message.lower()))
    for keywords, topic in PLANNING_INTENTS:
        if any(k in words for k in keywords):
            return topic
    return None


def keyword_reply(message: str, destination: str) -> str:
    topic = detect_topic(message)
    if topic:
        return TOPIC_REPLIES[topic].format(destination=destination)
    words = set(re.findall(r"[a-z]+", message.lower()))
    if words & {"hello", "hi", "hey"}:
        return GREETING_REPLY.format(destination=destination)
    return DEFAULT_REPLY.format(destination=destination)


class MockLLMClient:
    """Answers planner chat messages without a model."""

    def __init__(self):
        self.model = "mock-keyword-planner"

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        user_msg = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        system_msg = next((m["content"] for m in messages if m["role"] == "system"), "")

        match = _DESTINATION_RE.search(system_msg)
        destination = match.group(1).strip() if match else "your destination"
        logger.debug(f"Mock planner reply for destination={destination}")
        return keyword_reply(user_msg, destination)
