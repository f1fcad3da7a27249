import calendar
from datetime import date, datetime
from typing import Iterable, Optional, Sequence, Union

from ...exceptions import BookingValidationError

CLOSED_WEEKDAYS = (calendar.SUNDAY,)
CLOSURE_KEYWORDS = ("closed",)
ALERT = "alert"


def parse_iso_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime((value or "").split("T")[0], "%Y-%m-%d").date()
    except ValueError:
        raise BookingValidationError("Invalid date format. Use YYYY-MM-DD")


def announcement_day(announcement) -> Optional[str]:
    """Calendar day of an announcement, ignoring any time part."""
    if not announcement.date:
        return None
    return str(announcement.date).split("T")[0]


def is_closure_notice(announcement, closure_keywords: Sequence[str] = CLOSURE_KEYWORDS) -> bool:
    if announcement.type == ALERT:
        return True
    title = (announcement.title or "").lower()
    return any(keyword.lower() in title for keyword in closure_keywords)


def is_date_bookable(
    day: Union[str, date],
    announcements: Iterable,
    closed_weekdays: Sequence[int] = CLOSED_WEEKDAYS,
    closure_keywords: Sequence[str] = CLOSURE_KEYWORDS,
) -> Optional[str]:
    """Return why ``day`` cannot be booked, or None when it is open.

    Weekday closures win over announcements, so a closed weekday is reported
    even when no announcement exists for it.
    """
    d = parse_iso_date(day)
    if d.weekday() in closed_weekdays:
        return f"Clinic is closed on {calendar.day_name[d.weekday()]}s."

    iso_day = d.isoformat()
    for ann in announcements:
        if announcement_day(ann) == iso_day and is_closure_notice(ann, closure_keywords):
            return f"Notice: {ann.content or ann.title}"
    return None
