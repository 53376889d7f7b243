"""
School calendar heuristics.
A trip conflicts with school when it falls between September and June 10th.
"""
import logging
from datetime import date
from typing import Optional, Union

logger = logging.getLogger(__name__)


SCHOOL_MONTHS = {1, 2, 3, 4, 5, 9, 10, 11, 12}
LAST_SCHOOL_DAY_OF_JUNE = 10

SUMMER_PHRASES = (
    "july", "jul ", "august", "aug ",
    "mid june", "late june", "end of june",
)

SCHOOL_PHRASES = (
    "sep", "september",
    "oct", "october",
    "nov", "november",
    "dec", "december",
    "jan", "january",
    "feb", "february",
    "mar", "march",
    "apr", "april",
    "may",
    "early june",
)


def check_school_conflict(description: str, start_date: Optional[Union[str, date]] = None) -> bool:
    """
    Return True if the trip likely falls during the school term.

    A parseable start date wins; otherwise the free-text description is
    matched, with summer phrases checked first. Unknown means no conflict.
    """
    if isinstance(start_date, str):
        start_date = _parse_date(start_date)
    if start_date:
        if start_date.month in SCHOOL_MONTHS:
            return True
        if start_date.month == 6 and start_date.day <= LAST_SCHOOL_DAY_OF_JUNE:
            return True
        return False

    normalized = (description or "").lower()
    if any(phrase in normalized for phrase in SUMMER_PHRASES):
        return False
    if any(phrase in normalized for phrase in SCHOOL_PHRASES):
        return True
    return False


def _parse_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        logger.debug(f"Unparseable trip start date {value!r}, using the description")
        return None
