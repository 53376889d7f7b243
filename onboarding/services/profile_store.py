"""
Profile Store - holds the traveler profile and applies changes to it.

Changes come from two places: direct edits of individual fields, and data
extracted from the conversation (see apply_extracted). Group membership
changes always go through TravelGroup so the group type stays derived.
"""
import json
import logging
import re
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..models.message import Message, MessageType
from ..models.profile import (
    BUDGET_CATEGORIES,
    BudgetPreferences,
    BudgetRange,
    ContactInfo,
    LocationInfo,
    MAX_AGE,
    MIN_AGE,
    PastTrip,
    PriorityLevel,
    SchoolInfo,
    Timeframe,
    TravelGroup,
    TravelMember,
    TravelProfile,
    Trip,
    TripPurpose,
)
from .profile_merge import merge_profile_data
from .school_calendar import check_school_conflict

logger = logging.getLogger(__name__)


# Sections that are replaced wholesale by update_section
SECTION_MODELS = {
    "contact_info": ContactInfo,
    "location": LocationInfo,
    "travel_group": TravelGroup,
    "budget_preferences": BudgetPreferences,
}

CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY"}

_AMOUNT = r"(\d[\d,]*(?:\.\d+)?)\s*(k)?"
_RANGE_RE = re.compile(_AMOUNT + r"\s*(?:-|–|to)\s*[$€£¥]?\s*" + _AMOUNT, re.IGNORECASE)
_SINGLE_RE = re.compile(_AMOUNT, re.IGNORECASE)


def parse_budget_range(text: str) -> Optional[BudgetRange]:
    """Parse '$3,000 - 5k' style text into a BudgetRange."""
    if not text:
        return None
    currency = "USD"
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            currency = code
            break
    for code in ("USD", "EUR", "GBP", "JPY", "CAD", "AUD"):
        if code in text.upper():
            currency = code
            break

    match = _RANGE_RE.search(text)
    if match:
        low = _amount(match.group(1), match.group(2))
        high = _amount(match.group(3), match.group(4))
    else:
        match = _SINGLE_RE.search(text)
        if not match:
            return None
        low = high = _amount(match.group(1), match.group(2))

    if low > high:
        low, high = high, low
    return BudgetRange(min=low, max=high, currency=currency)


def _amount(digits: str, thousands: Optional[str]) -> float:
    value = float(digits.replace(",", ""))
    return value * 1000 if thousands else value


class ProfileStore:
    """Holds a TravelProfile and the raw extracted data behind it."""

    def __init__(self, profile: Optional[TravelProfile] = None):
        self.profile = profile or TravelProfile()
        self.extracted: dict = {}

    # Extracted data

    def apply_extracted(self, data: Optional[dict]) -> TravelProfile:
        """Fold one batch of extracted conversation data into the profile."""
        if not data:
            return self.profile

        self.extracted = merge_profile_data(self.extracted, data)

        contact = data.get("contactInfo")
        if isinstance(contact, dict):
            self.update_contact(**_snake_keys(contact, ContactInfo))
            if not self.profile.name:
                full_name = " ".join(
                    str(p) for p in (contact.get("firstName"), contact.get("lastName")) if p
                )
                if full_name:
                    self.profile.name = full_name

        location = data.get("location")
        if isinstance(location, dict):
            airport = location.get("nearestAirport")
            self.update_location(**_snake_keys(location, LocationInfo))
            if airport:
                self.profile.location.preferred_airports.append(str(airport).upper())

        for member in data.get("groupMembers") or []:
            if isinstance(member, dict) and member.get("name"):
                try:
                    self.add_member(**_member_kwargs(member))
                except ValidationError as e:
                    logger.warning(f"Skipping invalid group member {member!r}: {e.error_count()} error(s)")

        for trip in data.get("trips") or []:
            if isinstance(trip, dict):
                try:
                    self.add_trip(**_trip_kwargs(trip))
                except ValidationError as e:
                    logger.warning(f"Skipping invalid trip {trip!r}: {e.error_count()} error(s)")

        past = data.get("pastTripExperience")
        if isinstance(past, str) and past:
            self.set_last_trip_summary(past)

        budget = data.get("budgetPreferences")
        if isinstance(budget, dict):
            self._apply_budget(budget)

        logger.debug(f"Applied extracted sections: {sorted(data.keys())}")
        return self.profile

    def _apply_budget(self, budget: dict):
        prefs = self.profile.budget_preferences or BudgetPreferences()
        range_text = budget.get("budgetRange")
        if isinstance(range_text, dict):
            try:
                prefs.budget_range = BudgetRange.model_validate(range_text)
            except ValidationError:
                logger.warning(f"Ignoring malformed budget range: {range_text}")
        elif range_text:
            parsed = parse_budget_range(str(range_text))
            if parsed:
                prefs.budget_range = parsed
            else:
                prefs.notes = _join_notes(prefs.notes, str(range_text))
        category = str(budget.get("priorityCategory") or "").lower()
        if category in BUDGET_CATEGORIES:
            prefs.priority_categories[category] = PriorityLevel.HIGH
        elif category:
            prefs.notes = _join_notes(prefs.notes, f"Priority: {category}")
        self.profile.budget_preferences = prefs

    # Direct edits

    def update_profile(self, **updates: Any) -> TravelProfile:
        """Shallow update of top-level profile fields."""
        data = self.profile.model_dump()
        data.update(updates)
        self.profile = TravelProfile.model_validate(data)
        return self.profile

    def update_section(self, section: str, data: Any) -> TravelProfile:
        """Replace one profile section."""
        if section not in TravelProfile.model_fields:
            raise KeyError(f"Unknown profile section: {section}")
        model = SECTION_MODELS.get(section)
        if model is not None and isinstance(data, dict):
            data = model.model_validate(data)
        setattr(self.profile, section, data)
        if section == "travel_group" and self.profile.travel_group:
            self.profile.travel_group.refresh()
        return self.profile

    def update_contact(self, **fields: Any) -> ContactInfo:
        self.profile.contact_info = _merge_section(ContactInfo, self.profile.contact_info, fields)
        return self.profile.contact_info

    def update_location(self, **fields: Any) -> LocationInfo:
        self.profile.location = _merge_section(LocationInfo, self.profile.location, fields)
        return self.profile.location

    def _group(self) -> TravelGroup:
        if self.profile.travel_group is None:
            self.profile.travel_group = TravelGroup()
        return self.profile.travel_group

    def add_member(
        self,
        name: str,
        age: Optional[int] = None,
        is_minor: bool = False,
        school_name: Optional[str] = None
    ) -> TravelMember:
        member = TravelMember(
            name=name,
            age=age,
            is_minor=is_minor,
            school_info=SchoolInfo(school_name=school_name) if school_name else None,
        )
        self._group().add_member(member)
        return member

    def update_member(
        self,
        index: int,
        name: Optional[str] = None,
        age: Optional[int] = None,
        school_name: Optional[str] = None
    ) -> TravelMember:
        return self._group().update_member(index, name=name, age=age, school_name=school_name)

    def remove_member(self, index: int) -> TravelMember:
        return self._group().remove_member(index)

    def add_trip(
        self,
        destination: str,
        timeframe: Optional[Union[Timeframe, dict]] = None,
        purpose: Union[TripPurpose, str] = TripPurpose.VACATION,
        notes: str = ""
    ) -> Trip:
        if isinstance(timeframe, dict):
            timeframe = Timeframe.model_validate(timeframe)
        trip = Trip(
            destination=destination,
            timeframe=timeframe or Timeframe(),
            purpose=_purpose(purpose),
            notes=notes,
        )
        if self.profile.upcoming_trips is None:
            self.profile.upcoming_trips = []
        self.profile.upcoming_trips.append(trip)
        return trip

    def update_trip(
        self,
        index: int,
        destination: Optional[str] = None,
        timeframe_description: Optional[str] = None,
        purpose: Optional[Union[TripPurpose, str]] = None,
        notes: Optional[str] = None
    ) -> Trip:
        trip = self._trips()[index]
        if destination is not None:
            trip.destination = destination
        if timeframe_description is not None:
            trip.timeframe.description = timeframe_description
        if purpose is not None:
            trip.purpose = _purpose(purpose)
        if notes is not None:
            trip.notes = notes
        return trip

    def remove_trip(self, index: int) -> Trip:
        return self._trips().pop(index)

    def _trips(self) -> list[Trip]:
        if not self.profile.upcoming_trips:
            raise IndexError("No upcoming trips")
        return self.profile.upcoming_trips

    def add_planner_message(
        self,
        trip_index: int,
        role: str,
        content: str,
        type: Optional[MessageType] = None
    ) -> Message:
        message = Message(role=role, content=content, type=type)
        self._trips()[trip_index].planner_messages.append(message)
        return message

    def set_last_trip_summary(self, summary: str) -> PastTrip:
        """The most recent past trip is the first entry."""
        if not self.profile.past_trips:
            self.profile.past_trips = [PastTrip(summary=summary)]
        else:
            self.profile.past_trips[0].summary = summary
        return self.profile.past_trips[0]

    # Queries

    def school_conflicts(self) -> list[Trip]:
        """Upcoming trips that overlap the school term when minors travel."""
        if not self.profile.has_minors():
            return []
        return [
            trip for trip in self.profile.upcoming_trips or []
            if check_school_conflict(trip.timeframe.description, trip.timeframe.start_date)
        ]

    # Persistence

    def to_dict(self) -> dict:
        return self.profile.model_dump(mode="json", by_alias=True, exclude_none=True)

    def save(self, path: Union[str, Path]):
        """Write the profile as camelCase JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"profile": self.to_dict(), "extracted": self.extracted}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info(f"Profile saved to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ProfileStore":
        """Load a profile written by save(); a missing file gives an empty store."""
        path = Path(path)
        if not path.exists():
            logger.info(f"No saved profile at {path}, starting empty")
            return cls()
        payload = json.loads(path.read_text(encoding="utf-8"))
        store = cls(TravelProfile.model_validate(payload.get("profile", {})))
        store.extracted = payload.get("extracted", {})
        return store

    def load_demo(self) -> TravelProfile:
        self.profile = demo_profile()
        self.extracted = {}
        return self.profile

    def reset(self):
        self.profile = TravelProfile()
        self.extracted = {}


def demo_profile() -> TravelProfile:
    """A filled-in profile for demos."""
    return TravelProfile.model_validate({
        "name": "Alex Johnson",
        "contactInfo": {
            "firstName": "Alex",
            "lastName": "Johnson",
            "email": "alex.johnson@example.com",
            "phone": "(555) 123-4567",
            "dateOfBirth": "1985-04-12",
        },
        "location": {
            "city": "Austin",
            "state": "TX",
            "zipCode": "78701",
            "preferredAirports": ["AUS", "SAT"],
        },
        "travelGroup": {
            "members": [
                {"name": "Alex Johnson", "age": 39},
                {"name": "Sam Johnson", "age": 37},
                {"name": "Mia Johnson", "age": 9, "schoolInfo": {"schoolName": "Austin ISD"}},
            ]
        },
        "upcomingTrips": [
            {
                "destination": "Tokyo, Japan",
                "timeframe": {"type": "season", "description": "Late June"},
                "purpose": "vacation",
                "notes": "First international trip with Mia",
            },
            {
                "destination": "Chicago, IL",
                "timeframe": {"type": "specific", "description": "October conference", "startDate": "2026-10-14"},
                "purpose": "business",
            },
        ],
        "pastTrips": [
            {
                "destination": "San Diego, CA",
                "date": "2025-07",
                "summary": "Beach week in San Diego; loved the zoo, hated the traffic.",
                "likes": ["beach", "zoo"],
                "dislikes": ["traffic"],
                "specialNeeds": ["Car seat"],
            }
        ],
        "budgetPreferences": {
            "priorityCategories": {
                "flights": "low",
                "lodging": "high",
                "food": "medium",
                "activities": "high",
            },
            "budgetRange": {"min": 4000, "max": 6000, "currency": "USD"},
            "notes": "Prefers cheaper flights, nicer hotels",
        },
    })


def _merge_section(model, current, fields: dict):
    """Apply field updates one by one; a value that fails validation is skipped."""
    values = (current or model()).model_dump()
    for name, value in fields.items():
        if value is None:
            continue
        try:
            model.model_validate({**values, name: value})
        except ValidationError as e:
            logger.warning(f"Skipping invalid {model.__name__}.{name}={value!r}: {e.error_count()} error(s)")
            continue
        values[name] = value
    return model.model_validate(values)


def _snake_keys(data: dict, model) -> dict:
    """Keep only keys the model knows, translated to field names."""
    by_alias = {info.alias or name: name for name, info in model.model_fields.items()}
    result = {}
    for key, value in data.items():
        name = by_alias.get(key) or (key if key in model.model_fields else None)
        if name:
            result[name] = value
    return result


def _member_kwargs(member: dict) -> dict:
    school = member.get("schoolInfo") or {}
    age = member.get("age")
    try:
        age = int(age) if age is not None else None
    except (TypeError, ValueError):
        age = None
    if age is not None and not MIN_AGE <= age <= MAX_AGE:
        logger.warning(f"Ignoring out-of-range age {age} for {member['name']}")
        age = None
    return {
        "name": member["name"],
        "age": age,
        "is_minor": bool(member.get("isMinor", False)),
        "school_name": school.get("schoolName") if isinstance(school, dict) else None,
    }


def _trip_kwargs(trip: dict) -> dict:
    raw = trip.get("timeframe")
    timeframe = Timeframe()
    if isinstance(raw, dict):
        start, end = raw.get("startDate"), raw.get("endDate")
        flexibility = raw.get("flexibility") or raw.get("description")
        timeframe = Timeframe(
            type="specific" if start else "flexible",
            description=flexibility or " to ".join(str(d) for d in (start, end) if d),
            start_date=start,
            end_date=end,
        )
    elif isinstance(raw, str):
        timeframe = Timeframe(description=raw)
    return {
        "destination": trip.get("destination") or "",
        "timeframe": timeframe,
        "purpose": trip.get("purpose") or TripPurpose.VACATION,
        "notes": trip.get("notes") or "",
    }


def _purpose(value: Union[TripPurpose, str]) -> TripPurpose:
    if isinstance(value, TripPurpose):
        return value
    try:
        return TripPurpose(str(value).lower())
    except ValueError:
        return TripPurpose.OTHER


def _join_notes(existing: str, addition: str) -> str:
    return f"{existing}; {addition}" if existing else addition
