"""
Travel Profile - the traveler record accumulated during onboarding.
Field names are snake_case in Python and camelCase on the wire.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Iterable, Optional, Union
from enum import Enum

from .message import Message


MINOR_AGE_LIMIT = 18
MIN_AGE = 0
MAX_AGE = 130


class CamelModel(BaseModel):
    """Base model serialising to camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


class GroupType(str, Enum):
    """Travel group types."""
    SOLO = "solo"
    PARTNER = "partner"
    FAMILY = "family"
    GROUP = "group"


class TripPurpose(str, Enum):
    """Why the traveler is taking a trip."""
    VACATION = "vacation"
    BUSINESS = "business"
    FAMILY = "family"
    OTHER = "other"


class PriorityLevel(str, Enum):
    """Spending priority for a budget category."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


BUDGET_CATEGORIES = ("flights", "lodging", "food", "activities")


class ContactInfo(CamelModel):
    """Primary contact details."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None


class Terminal(CamelModel):
    """A non-airport travel terminal (train station, ferry port...)."""
    type: str
    name: str


class LocationInfo(CamelModel):
    """Home location and departure points."""
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    preferred_airports: list[str] = Field(
        default_factory=list,
        description="Airport codes in preference order, duplicates allowed"
    )
    preferred_terminals: list[Terminal] = Field(default_factory=list)


class SchoolInfo(CamelModel):
    school_name: Optional[str] = None
    grade: Optional[str] = None


class TravelMember(CamelModel):
    """A person in the travel group."""
    name: str = Field(..., description="Member name")
    age: Optional[int] = Field(None, ge=MIN_AGE, le=MAX_AGE, description="Age in years")
    is_minor: bool = Field(False, description="Cached age < 18")
    school_info: Optional[SchoolInfo] = None

    @model_validator(mode="after")
    def _derive_minor(self) -> "TravelMember":
        if self.age is not None:
            self.is_minor = self.age < MINOR_AGE_LIMIT
        if not self.is_minor:
            self.school_info = None
        return self

    def set_age(self, age: Optional[int]) -> None:
        """Change the age, keeping is_minor and school_info consistent."""
        self.age = age
        if age is not None:
            self.is_minor = age < MINOR_AGE_LIMIT
        if not self.is_minor:
            self.school_info = None


MemberLike = Union[TravelMember, dict]


def _is_minor(member: MemberLike) -> bool:
    if isinstance(member, TravelMember):
        return member.is_minor
    age = member.get("age")
    if age is not None:
        return age < MINOR_AGE_LIMIT
    return bool(member.get("isMinor", member.get("is_minor", False)))


def classify_group(members: Iterable[MemberLike]) -> GroupType:
    """
    Derive the group type from its members.

    Any minor makes it a family; one person travels solo; two adults are
    partners; anything else is a group.
    """
    members = list(members)
    if any(_is_minor(m) for m in members):
        return GroupType.FAMILY
    if len(members) <= 1:
        return GroupType.SOLO
    if len(members) == 2:
        return GroupType.PARTNER
    return GroupType.GROUP


class TravelGroup(CamelModel):
    """Primary travel group. The type always follows the members."""
    type: GroupType = GroupType.SOLO
    members: list[TravelMember] = Field(default_factory=list)

    @model_validator(mode="after")
    def _derive_type(self) -> "TravelGroup":
        self.type = classify_group(self.members)
        return self

    def refresh(self) -> GroupType:
        """Recompute the type after the members changed."""
        self.type = classify_group(self.members)
        return self.type

    def add_member(self, member: TravelMember) -> None:
        self.members.append(member)
        self.refresh()

    def remove_member(self, index: int) -> TravelMember:
        removed = self.members.pop(index)
        self.refresh()
        return removed

    def update_member(
        self,
        index: int,
        name: Optional[str] = None,
        age: Optional[int] = None,
        school_name: Optional[str] = None
    ) -> TravelMember:
        member = self.members[index]
        if name is not None:
            member.name = name
        if age is not None:
            member.set_age(age)
        if school_name is not None and member.is_minor:
            member.school_info = SchoolInfo(school_name=school_name)
        self.refresh()
        return member


class Timeframe(CamelModel):
    """When a trip happens, typed and described."""
    type: str = Field("flexible", description="'specific', 'flexible', 'season' or 'past'")
    description: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class Trip(CamelModel):
    """An upcoming trip."""
    destination: str = ""
    timeframe: Timeframe = Field(default_factory=Timeframe)
    purpose: TripPurpose = TripPurpose.VACATION
    notes: str = ""
    planner_messages: list[Message] = Field(default_factory=list)


class PastTrip(CamelModel):
    """The traveler's last trip."""
    destination: str = ""
    date: str = ""
    summary: str = ""
    likes: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    special_needs: list[str] = Field(default_factory=list)


class BudgetRange(CamelModel):
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)
    currency: str = "USD"


class BudgetPreferences(CamelModel):
    """Budget range and per-category spending priorities."""
    priority_categories: dict[str, PriorityLevel] = Field(
        default_factory=lambda: {c: PriorityLevel.MEDIUM for c in BUDGET_CATEGORIES}
    )
    budget_range: Optional[BudgetRange] = None
    notes: str = ""


class TravelProfile(CamelModel):
    """Aggregate traveler profile."""
    name: str = ""
    contact_info: Optional[ContactInfo] = None
    location: Optional[LocationInfo] = None
    travel_group: Optional[TravelGroup] = None
    upcoming_trips: Optional[list[Trip]] = None
    past_trips: Optional[list[PastTrip]] = None
    budget_preferences: Optional[BudgetPreferences] = None

    def has_minors(self) -> bool:
        if not self.travel_group:
            return False
        return any(m.is_minor for m in self.travel_group.members)

    def filled_sections(self) -> list[str]:
        """Wire names of the sections that hold data."""
        filled = []
        for field_name, field_info in type(self).model_fields.items():
            if field_name == "name":
                continue
            if getattr(self, field_name) is not None:
                filled.append(field_info.alias or field_name)
        return filled
