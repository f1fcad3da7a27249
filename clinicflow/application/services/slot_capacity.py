"""Per-slot capacity counting.

A slot is a (date, time bucket) pair. Every view that shows how full a slot
is (the booking picker, the doctor's queue, the booking conflict check) goes
through ``count_active``/``slot_info`` so the numbers never diverge.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from .lifecycle import CANCELLED, normalize_status

SLOT_CAPACITY = 5

TIME_SLOTS = (
    "08:00 AM",
    "09:00 AM",
    "10:00 AM",
    "11:00 AM",
    "01:00 PM",
    "02:00 PM",
    "03:00 PM",
    "04:00 PM",
)


@dataclass(frozen=True)
class SlotInfo:
    date: str
    time: str
    count: int
    remaining: int
    is_full: bool
    capacity: int = SLOT_CAPACITY


def is_active(appointment) -> bool:
    return normalize_status(appointment.status) != CANCELLED


def count_active(date: str, time: str, appointments: Iterable) -> int:
    return sum(
        1 for a in appointments
        if a.date == date and a.time == time and is_active(a)
    )


def slot_info(date: str, time: str, appointments: Iterable, capacity: int = SLOT_CAPACITY) -> SlotInfo:
    count = count_active(date, time, appointments)
    return SlotInfo(
        date=date,
        time=time,
        count=count,
        remaining=max(0, capacity - count),
        is_full=count >= capacity,
        capacity=capacity,
    )


def slot_board(date: str, appointments: Iterable, time_slots: Sequence[str] = TIME_SLOTS, capacity: int = SLOT_CAPACITY) -> List[SlotInfo]:
    snapshot = list(appointments)
    return [slot_info(date, t, snapshot, capacity) for t in time_slots]


def is_valid_slot(time: str, time_slots: Sequence[str] = TIME_SLOTS) -> bool:
    return time in time_slots


def bucket_hour(time: str) -> Optional[int]:
    """Hour of day (0-23) for a bucket label like "01:00 PM"; None if malformed."""
    try:
        return datetime.strptime(time.strip(), "%I:%M %p").hour
    except (AttributeError, ValueError):
        return None
