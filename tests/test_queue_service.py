from datetime import date, datetime, timezone

import pytest

from clinicflow.application.ports.announcement_repo import AnnouncementDto
from clinicflow.application.ports.appointments_repo import AppointmentDto
from clinicflow.application.ports.patient_repo import PatientDto
from clinicflow.application.services.queue_service import (
    QueueService,
    date_range,
    hourly_traffic,
    matches_status_filter,
)
from clinicflow.exceptions import BookingValidationError

TODAY = date(2025, 6, 3)
DAY = "2025-06-03"


def appt(id, time, status="pending", patient_id="p1", day=DAY, purpose="Check-up"):
    return AppointmentDto(id, patient_id, day, time, purpose, status, "Dr. Atamosa", datetime(2025, 6, 1, 8, 0))


class FakeApptRepo:
    def __init__(self, appts):
        self.appts = appts

    def list_between(self, start, end):
        return [a for a in self.appts if start <= a.date <= end]

    def list_all(self):
        return list(self.appts)


class FakeAnnouncementRepo:
    def __init__(self, anns=None):
        self.anns = anns or []

    def list_between(self, start, end):
        return [a for a in self.anns if a.date and start <= a.date <= end]


class FakePatientRepo:
    def __init__(self):
        self.patients = {
            "p1": PatientDto("p1", "Juan", "Maria", "2022-01-15", "0917", "m@example.com", datetime.now(timezone.utc)),
            "p2": PatientDto("p2", "Ana", "Lito", "2023-03-01", "0918", "l@example.com", datetime.now(timezone.utc)),
        }

    def get_many(self, ids):
        return {i: self.patients[i] for i in ids if i in self.patients}


def make_service(appts, anns=None):
    return QueueService(
        repo=FakeApptRepo(appts),
        announcement_repo=FakeAnnouncementRepo(anns),
        patient_repo=FakePatientRepo(),
        today=lambda: TODAY,
    )


def test_date_range():
    assert date_range("today", TODAY) == (DAY, DAY)
    assert date_range("tomorrow", TODAY) == ("2025-06-04", "2025-06-04")
    assert date_range("week", TODAY) == (DAY, "2025-06-09")
    assert date_range("custom", TODAY, "2025-07-01") == ("2025-07-01", "2025-07-01")
    with pytest.raises(BookingValidationError):
        date_range("custom", TODAY)
    with pytest.raises(BookingValidationError):
        date_range("month", TODAY)


def test_status_filters():
    assert matches_status_filter("waiting", "active")
    assert matches_status_filter("in-room", "active")
    assert not matches_status_filter("pending", "active")
    assert matches_status_filter("pending", "pending")
    assert matches_status_filter("completed", "completed")
    assert matches_status_filter("cancelled", "all")


def test_timeline_counts_match_booking_rule():
    appts = [appt(f"a{i}", "09:00 AM") for i in range(4)] + [appt("c1", "09:00 AM", status="cancelled")]
    day = make_service(appts).timeline()[0]
    slot = next(s for s in day.slots if s.time == "09:00 AM")
    assert slot.count == 4
    assert slot.cancelled_count == 1
    assert slot.is_full is False
    assert len(slot.entries) == 5
    assert day.total == 5
    assert day.pending_count == 4


def test_timeline_shows_all_buckets_when_unfiltered():
    day = make_service([appt("a1", "08:00 AM")]).timeline()[0]
    assert len(day.slots) == 8
    assert day.slots[0].entries[0].patient_name == "Juan"
    assert day.slots[0].entries[0].guardian_name == "Maria"


def test_timeline_filters_keep_only_matching_slots():
    appts = [
        appt("a1", "08:00 AM", status="confirmed"),
        appt("a2", "10:00 AM", status="pending", patient_id="p2"),
    ]
    day = make_service(appts).timeline(status_filter="active")[0]
    assert [s.time for s in day.slots] == ["08:00 AM"]

    day = make_service(appts).timeline(search="ana")[0]
    assert [s.time for s in day.slots] == ["10:00 AM"]
    # Counts ignore the filter
    assert day.slots[0].count == 1


def test_alert_marks_day_closed():
    ann = AnnouncementDto("n1", "Closed", "Typhoon", "alert", DAY, datetime.now(timezone.utc))
    day = make_service([appt("a1", "08:00 AM", status="cancelled")], [ann]).timeline()[0]
    assert day.is_closed is True
    assert day.announcement.id == "n1"
    assert [s.time for s in day.slots] == ["08:00 AM"]


def test_empty_days_are_not_listed():
    assert make_service([appt("a1", "08:00 AM")]).timeline(date_filter="tomorrow") == []


def test_analytics_and_hourly_traffic():
    appts = [
        appt("a1", "08:00 AM", status="completed"),
        appt("a2", "08:00 AM", status="in-room"),
        appt("a3", "01:00 PM", status="pending"),
        appt("a4", "01:00 PM", status="cancelled"),
    ]
    out = make_service(appts).analytics()
    assert out.total == 4
    assert out.completed == 1
    assert out.active == 1
    assert out.pending == 1
    assert out.hourly_traffic[8] == 2
    assert out.hourly_traffic[13] == 1
    assert out.hourly_traffic[17] == 0
    assert set(hourly_traffic([])) == set(range(8, 18))


def test_dashboard_stats():
    appts = [
        appt("a1", "08:00 AM", status="confirmed", purpose="Vaccine - Penta 2"),
        appt("a2", "09:00 AM", status="pending", purpose="vaccine booster"),
        appt("a3", "10:00 AM", status="completed", purpose="Vaccine"),
        appt("a4", "11:00 AM", status="in-room"),
        appt("a5", "11:00 AM", status="cancelled", purpose="Vaccine"),
    ]
    stats = make_service(appts).dashboard_stats()
    assert stats.queued == 2
    assert stats.vaccines == 2
    assert stats.pending == 1
    assert stats.completed == 1
