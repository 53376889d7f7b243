"""
Onboarding topics and the step tracker.
The step index is for progress display and prompt replay only; moving to a
step does not require the earlier ones to be answered.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OnboardingTopic:
    id: str
    label: str
    prompt: str
    is_open_ended: bool = False


ONBOARDING_TOPICS: tuple[OnboardingTopic, ...] = (
    OnboardingTopic(
        id="contactInfo",
        label="Contact",
        prompt=(
            "Welcome! Let's start building your travel profile. First, I need to confirm your "
            "primary contact details. Please share your first and last name, phone number, email "
            "address, and date of birth. This information will be used to populate your bookings."
        ),
    ),
    OnboardingTopic(
        id="travelGroup",
        label="Travel Group",
        prompt=(
            "Tell me about your primary travel group. Is it just yourself, with a partner, or "
            "family? Please let me know the name and age of each person, including children. "
            "Don't worry, we'll build out details as we go. Let me know when you're done with "
            "your description by simply saying something like 'I'm done', 'Finished', or "
            "'That's it'."
        ),
        is_open_ended=True,
    ),
    OnboardingTopic(
        id="location",
        label="Location",
        prompt=(
            "Tell me about where you live by sharing your City, State, and Zip Code. You can "
            "also give me your full address if you'd like. What airports or travel terminals "
            "do you usually travel from?"
        ),
    ),
    OnboardingTopic(
        id="upcomingTrips",
        label="Upcoming Trips",
        prompt=(
            "Do you have any trips you'll be planning in the next year, or would like to plan? "
            "If yes, let me know when and where and the nature of the trip (business, family "
            "vacation, etc.), or give me an idea of what you had in mind if you're not sure."
        ),
    ),
    OnboardingTopic(
        id="pastTrips",
        label="Last Trip",
        prompt=(
            "Tell me a little about your last trip or vacation. Where did you go, what did you "
            "like and not like about it? Did you have any special needs based on yourself or "
            "others you were traveling with?"
        ),
    ),
    OnboardingTopic(
        id="budgetPreferences",
        label="Budget",
        prompt=(
            "Tell me about your budget requirements and spending preferences. Do you prefer "
            "cheaper airline seats but more budget for lodging and food? What are your "
            "priorities spending-wise? If you have a specific budget number range, please share."
        ),
    ),
)


class StepTracker:
    """Linear index over a fixed list of onboarding topics."""

    def __init__(self, topics: tuple[OnboardingTopic, ...] = ONBOARDING_TOPICS, current: int = 0):
        if not topics:
            raise ValueError("StepTracker needs at least one topic")
        self.topics = topics
        self.current = 0
        self.set_step(current)

    @property
    def last_index(self) -> int:
        return len(self.topics) - 1

    @property
    def topic(self) -> OnboardingTopic:
        return self.topics[self.current]

    def set_step(self, step: int) -> OnboardingTopic:
        """Jump to any topic, backward or forward."""
        if not 0 <= step <= self.last_index:
            raise ValueError(f"Step {step} out of range 0..{self.last_index}")
        self.current = step
        return self.topic

    def advance(self) -> Optional[OnboardingTopic]:
        """Move to the next topic; None when already on the last one."""
        if self.current >= self.last_index:
            return None
        return self.set_step(self.current + 1)

    def finish(self) -> OnboardingTopic:
        return self.set_step(self.last_index)

    def progress(self) -> list[dict]:
        """Per-topic status for a progress indicator."""
        return [
            {
                "step": index + 1,
                "id": topic.id,
                "label": topic.label,
                "status": "complete" if index < self.current else "active" if index == self.current else "pending",
            }
            for index, topic in enumerate(self.topics)
        ]
