"""Tests for the travel profile models and group classification."""
import pytest
from pydantic import ValidationError

from onboarding.models.profile import (
    GroupType,
    PriorityLevel,
    SchoolInfo,
    TravelGroup,
    TravelMember,
    TravelProfile,
    classify_group,
)


class TestClassifyGroup:
    """Test group type derivation."""

    def test_single_adult_is_solo(self):
        assert classify_group([{"name": "Alex", "age": 30}]) == GroupType.SOLO

    def test_empty_group_is_solo(self):
        assert classify_group([]) == GroupType.SOLO

    def test_two_adults_are_partners(self):
        members = [{"name": "Alex", "age": 30}, {"name": "Sam", "age": 29}]
        assert classify_group(members) == GroupType.PARTNER

    def test_three_adults_are_a_group(self):
        members = [{"name": n, "age": 40} for n in ("A", "B", "C")]
        assert classify_group(members) == GroupType.GROUP

    def test_any_minor_makes_a_family(self):
        """A minor wins over the member count, even alone."""
        assert classify_group([{"name": "Kid", "age": 10}]) == GroupType.FAMILY
        members = [{"name": n, "age": 40} for n in ("A", "B", "C")] + [{"name": "D", "age": 17}]
        assert classify_group(members) == GroupType.FAMILY

    def test_minor_flag_without_age(self):
        assert classify_group([{"name": "Kid", "isMinor": True}]) == GroupType.FAMILY

    def test_accepts_member_models(self):
        members = [TravelMember(name="Alex", age=30), TravelMember(name="Mia", age=8)]
        assert classify_group(members) == GroupType.FAMILY


class TestTravelMember:
    """Test the minor flag and school info rules."""

    def test_age_sets_minor_flag(self):
        assert TravelMember(name="Mia", age=9).is_minor == True
        assert TravelMember(name="Alex", age=18).is_minor == False

    def test_explicit_flag_kept_without_age(self):
        member = TravelMember(name="Kid", is_minor=True)
        assert member.age is None
        assert member.is_minor == True

    def test_adult_drops_school_info(self):
        member = TravelMember(name="Alex", age=30, school_info=SchoolInfo(school_name="UT"))
        assert member.school_info is None

    def test_age_edit_flips_minor_and_clears_school(self):
        member = TravelMember(name="Mia", age=16, school_info=SchoolInfo(school_name="Austin High"))
        assert member.school_info.school_name == "Austin High"

        member.set_age(20)

        assert member.is_minor == False
        assert member.school_info is None

        member.set_age(12)
        assert member.is_minor == True

    def test_age_bounds(self):
        with pytest.raises(ValidationError):
            TravelMember(name="Nobody", age=-1)
        with pytest.raises(ValidationError):
            TravelMember(name="Nobody", age=200)


class TestTravelGroup:
    """Test that the group type follows its members."""

    def test_type_derived_on_construction(self):
        group = TravelGroup(type=GroupType.GROUP, members=[TravelMember(name="Alex", age=30)])
        assert group.type == GroupType.SOLO

    def test_add_and_remove_members(self):
        group = TravelGroup()
        group.add_member(TravelMember(name="Alex", age=30))
        assert group.type == GroupType.SOLO

        group.add_member(TravelMember(name="Sam", age=31))
        assert group.type == GroupType.PARTNER

        group.add_member(TravelMember(name="Mia", age=9))
        assert group.type == GroupType.FAMILY

        removed = group.remove_member(2)
        assert removed.name == "Mia"
        assert group.type == GroupType.PARTNER

    def test_update_member_age_reclassifies(self):
        group = TravelGroup(members=[TravelMember(name="Alex", age=40), TravelMember(name="Jo", age=16)])
        assert group.type == GroupType.FAMILY

        group.update_member(1, age=20)

        assert group.type == GroupType.PARTNER
        assert group.members[1].is_minor == False

    def test_school_name_only_for_minors(self):
        group = TravelGroup(members=[TravelMember(name="Alex", age=40), TravelMember(name="Mia", age=9)])

        group.update_member(0, school_name="UT Austin")
        group.update_member(1, school_name="Austin ISD")

        assert group.members[0].school_info is None
        assert group.members[1].school_info.school_name == "Austin ISD"


class TestTravelProfile:
    """Test the aggregate profile."""

    def test_empty_profile(self):
        profile = TravelProfile()
        assert profile.filled_sections() == []
        assert profile.has_minors() == False

    def test_camel_case_round_trip(self):
        profile = TravelProfile.model_validate({
            "name": "Alex",
            "contactInfo": {"firstName": "Alex", "dateOfBirth": "1985-04-12"},
            "location": {"city": "Austin", "zipCode": "78701", "preferredAirports": ["AUS"]},
        })

        assert profile.contact_info.first_name == "Alex"
        assert profile.location.zip_code == "78701"

        dumped = profile.model_dump(by_alias=True, exclude_none=True)
        assert dumped["contactInfo"]["dateOfBirth"] == "1985-04-12"
        assert dumped["location"]["preferredAirports"] == ["AUS"]
        assert profile.filled_sections() == ["contactInfo", "location"]

    def test_budget_defaults_to_medium(self):
        profile = TravelProfile.model_validate({"budgetPreferences": {}})
        priorities = profile.budget_preferences.priority_categories
        assert set(priorities) == {"flights", "lodging", "food", "activities"}
        assert all(level == PriorityLevel.MEDIUM for level in priorities.values())
