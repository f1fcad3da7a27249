"""Doctor-side queue: timeline per day, analytics and dashboard counters."""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.announcement_repo import AnnouncementRepository, AnnouncementDto
from ..ports.patient_repo import PatientRepository
from .availability import ALERT, announcement_day, parse_iso_date
from .lifecycle import CANCELLED, COMPLETED, PENDING, QUEUED_STATUSES, normalize_status
from .slot_capacity import SLOT_CAPACITY, TIME_SLOTS, bucket_hour, is_active, slot_info
from ...exceptions import BookingValidationError

logger = logging.getLogger(__name__)

DATE_FILTERS = ("today", "tomorrow", "week", "custom")
STATUS_FILTERS = ("all", "completed", "active", "pending")

# Clinic hours shown on the traffic chart, 8 AM to 5 PM
TRAFFIC_HOURS = tuple(range(8, 18))


@dataclass
class QueueEntry:
    appointment: AppointmentDto
    patient_name: Optional[str] = None
    guardian_name: Optional[str] = None
    contact_number: Optional[str] = None


@dataclass
class QueueSlot:
    time: str
    count: int
    capacity: int
    is_full: bool
    cancelled_count: int
    entries: List[QueueEntry] = field(default_factory=list)


@dataclass
class QueueDay:
    date: str
    total: int
    pending_count: int
    announcement: Optional[AnnouncementDto]
    is_closed: bool
    slots: List[QueueSlot] = field(default_factory=list)


@dataclass
class QueueAnalytics:
    total: int
    completed: int
    active: int
    pending: int
    hourly_traffic: Dict[int, int]


@dataclass
class DashboardStats:
    queued: int
    vaccines: int
    pending: int
    completed: int


def date_range(date_filter: str, today: date, custom_date: Optional[str] = None) -> Tuple[str, str]:
    if date_filter == "today":
        return today.isoformat(), today.isoformat()
    if date_filter == "tomorrow":
        d = (today + timedelta(days=1)).isoformat()
        return d, d
    if date_filter == "week":
        return today.isoformat(), (today + timedelta(days=6)).isoformat()
    if date_filter == "custom":
        if not custom_date:
            raise BookingValidationError("A date is required for the custom range")
        d = parse_iso_date(custom_date).isoformat()
        return d, d
    raise BookingValidationError(f"Unknown date filter '{date_filter}'. Use one of: {', '.join(DATE_FILTERS)}")


def matches_status_filter(status: str, status_filter: str) -> bool:
    s = normalize_status(status)
    if status_filter == "all":
        return True
    if status_filter == "completed":
        return s == COMPLETED
    if status_filter == "active":
        return s in QUEUED_STATUSES
    if status_filter == "pending":
        return s == PENDING
    raise BookingValidationError(f"Unknown status filter '{status_filter}'. Use one of: {', '.join(STATUS_FILTERS)}")


def hourly_traffic(appointments: Sequence[AppointmentDto], hours: Sequence[int] = TRAFFIC_HOURS) -> Dict[int, int]:
    traffic = {h: 0 for h in hours}
    for a in appointments:
        hour = bucket_hour(a.time)
        if hour in traffic and is_active(a):
            traffic[hour] += 1
    return traffic


@dataclass
class QueueService:
    repo: AppointmentsRepository
    announcement_repo: AnnouncementRepository
    patient_repo: PatientRepository
    capacity: int = SLOT_CAPACITY
    time_slots: Sequence[str] = TIME_SLOTS
    today: Callable[[], date] = field(default=date.today)

    def timeline(self, date_filter: str = "today", custom_date: Optional[str] = None, status_filter: str = "all", search: Optional[str] = None) -> List[QueueDay]:
        start, end = date_range(date_filter, self.today(), custom_date)
        appointments = self.repo.list_between(start, end)
        announcements = self.announcement_repo.list_between(start, end)
        patients = self.patient_repo.get_many(sorted({a.patient_id for a in appointments}))

        by_date: Dict[str, List[AppointmentDto]] = {}
        for a in appointments:
            by_date.setdefault(a.date, []).append(a)

        needle = (search or "").strip().lower()
        filtering = bool(needle) or status_filter != "all"
        days: List[QueueDay] = []
        for day in sorted(by_date):
            daily = by_date[day]
            announcement = next((ann for ann in announcements if announcement_day(ann) == day), None)
            is_closed = announcement is not None and announcement.type == ALERT

            slots: List[QueueSlot] = []
            for t in self.time_slots:
                in_slot = [a for a in daily if a.time == t]
                entries = []
                for a in in_slot:
                    p = patients.get(a.patient_id)
                    name = p.name if p else None
                    if needle and needle not in (name or "").lower():
                        continue
                    if not matches_status_filter(a.status, status_filter):
                        continue
                    entries.append(QueueEntry(
                        appointment=a,
                        patient_name=name,
                        guardian_name=p.guardian_name if p else None,
                        contact_number=p.contact_number if p else None,
                    ))
                if not entries and (is_closed or filtering):
                    continue
                info = slot_info(day, t, daily, self.capacity)
                slots.append(QueueSlot(
                    time=t,
                    count=info.count,
                    capacity=self.capacity,
                    is_full=info.is_full,
                    cancelled_count=sum(1 for a in in_slot if normalize_status(a.status) == CANCELLED),
                    entries=entries,
                ))

            days.append(QueueDay(
                date=day,
                total=len(daily),
                pending_count=sum(1 for a in daily if normalize_status(a.status) == PENDING),
                announcement=announcement,
                is_closed=is_closed,
                slots=slots,
            ))
        return days

    def analytics(self, date_filter: str = "today", custom_date: Optional[str] = None) -> QueueAnalytics:
        start, end = date_range(date_filter, self.today(), custom_date)
        appointments = self.repo.list_between(start, end)
        statuses = [normalize_status(a.status) for a in appointments]
        return QueueAnalytics(
            total=len(appointments),
            completed=statuses.count(COMPLETED),
            active=sum(1 for s in statuses if s in QUEUED_STATUSES),
            pending=statuses.count(PENDING),
            hourly_traffic=hourly_traffic(appointments),
        )

    def dashboard_stats(self) -> DashboardStats:
        appointments = self.repo.list_all()
        statuses = [normalize_status(a.status) for a in appointments]
        vaccines = sum(
            1 for a, s in zip(appointments, statuses)
            if "vaccine" in (a.purpose or "").lower() and s not in (CANCELLED, COMPLETED)
        )
        return DashboardStats(
            queued=sum(1 for s in statuses if s in QUEUED_STATUSES),
            vaccines=vaccines,
            pending=statuses.count(PENDING),
            completed=statuses.count(COMPLETED),
        )
