"""
Profile data merging for extracted conversation data.

Extracted data arrives as camelCase dicts (contactInfo, location,
groupMembers, trips, pastTripExperience, budgetPreferences).
"""
from typing import Any, Optional


# List fields that accumulate across extractions
APPEND_FIELDS = ("groupMembers", "trips")

DISPLAY_SECTIONS = [
    ("contactInfo", "Contact Information"),
    ("location", "Location"),
    ("groupMembers", "Travel Group"),
    ("trips", "Upcoming Trips"),
    ("pastTripExperience", "Past Trip Experience"),
    ("budgetPreferences", "Budget Preferences"),
]


def merge_profile_data(existing: Optional[dict], incoming: Optional[dict]) -> dict:
    """
    Merge incoming extracted data into existing extracted data.

    - None values in incoming are skipped.
    - groupMembers and trips are concatenated. Resending the same
      extraction therefore duplicates entries.
    - Other dict values are shallow-merged, incoming keys win.
    - Everything else is overwritten.

    Neither argument is modified.
    """
    merged = dict(existing or {})

    for key, value in (incoming or {}).items():
        if value is None:
            continue

        if key in APPEND_FIELDS and isinstance(value, list):
            merged[key] = list(merged.get(key) or []) + list(value)
        elif isinstance(value, dict):
            current = merged.get(key)
            base = current if isinstance(current, dict) else {}
            merged[key] = {**base, **value}
        else:
            merged[key] = value

    return merged


def format_profile_for_display(data: dict) -> dict[str, Any]:
    """Titled sections of extracted data, skipping empty ones."""
    formatted = {}
    for key, title in DISPLAY_SECTIONS:
        value = data.get(key)
        if isinstance(value, list) and not value:
            continue
        if value:
            formatted[title] = value
    return formatted
