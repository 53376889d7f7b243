"""Tests for the onboarding step tracker."""
import pytest

from onboarding.services.steps import ONBOARDING_TOPICS, StepTracker


class TestStepTracker:
    """Test moving between onboarding topics."""

    def test_topics(self):
        assert [t.id for t in ONBOARDING_TOPICS] == [
            "contactInfo", "travelGroup", "location", "upcomingTrips", "pastTrips", "budgetPreferences",
        ]
        assert ONBOARDING_TOPICS[1].is_open_ended == True

    def test_set_step_any_direction(self):
        steps = StepTracker()
        assert steps.set_step(4).id == "pastTrips"
        assert steps.set_step(1).id == "travelGroup"
        assert steps.current == 1

    def test_out_of_range(self):
        steps = StepTracker()
        with pytest.raises(ValueError):
            steps.set_step(6)
        with pytest.raises(ValueError):
            steps.set_step(-1)
        assert steps.current == 0

    def test_advance_stops_at_last(self):
        steps = StepTracker(current=4)
        assert steps.advance().id == "budgetPreferences"
        assert steps.advance() is None
        assert steps.current == 5

    def test_finish(self):
        steps = StepTracker()
        steps.finish()
        assert steps.current == steps.last_index

    def test_progress(self):
        steps = StepTracker(current=2)
        statuses = [item["status"] for item in steps.progress()]
        assert statuses == ["complete", "complete", "active", "pending", "pending", "pending"]
        assert steps.progress()[0]["step"] == 1
