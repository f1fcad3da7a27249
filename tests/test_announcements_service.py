from dataclasses import replace
from datetime import datetime, timezone

import pytest

from clinicflow.application.ports.announcement_repo import AnnouncementDto
from clinicflow.application.services.announcements_service import AnnouncementsService
from clinicflow.exceptions import BookingValidationError, NotFoundError


class FakeAnnouncementRepo:
    def __init__(self):
        self.rows = {}

    def list_all(self):
        return list(self.rows.values())

    def create(self, title, content, type, date):
        a = AnnouncementDto(f"n{len(self.rows) + 1}", title, content, type, date, datetime.now(timezone.utc))
        self.rows[a.id] = a
        return a

    def update(self, announcement_id, fields):
        if announcement_id not in self.rows:
            return None
        a = replace(self.rows[announcement_id], edited_at=datetime.now(timezone.utc), **fields)
        self.rows[announcement_id] = a
        return a

    def delete(self, announcement_id):
        return self.rows.pop(announcement_id, None) is not None


def test_blank_date_stored_as_none():
    svc = AnnouncementsService(repo=FakeAnnouncementRepo())
    ann = svc.create("Free check-up", "Saturday morning", "promo", date="  ")
    assert ann.date is None


def test_date_is_normalized():
    svc = AnnouncementsService(repo=FakeAnnouncementRepo())
    ann = svc.create("Closed", "Holiday", "alert", date="2025-06-12T00:00:00")
    assert ann.date == "2025-06-12"


def test_invalid_type_and_title():
    svc = AnnouncementsService(repo=FakeAnnouncementRepo())
    with pytest.raises(BookingValidationError):
        svc.create("Hi", type="urgent")
    with pytest.raises(BookingValidationError):
        svc.create("  ")


def test_update_and_clear_date():
    svc = AnnouncementsService(repo=FakeAnnouncementRepo())
    ann = svc.create("Closed", "Holiday", "alert", date="2025-06-12")
    out = svc.update(ann.id, title="Closed (moved)", date="2025-06-13")
    assert out.title == "Closed (moved)"
    assert out.date == "2025-06-13"
    assert out.edited_at is not None

    out = svc.update(ann.id, clear_date=True)
    assert out.date is None


def test_missing_rows():
    svc = AnnouncementsService(repo=FakeAnnouncementRepo())
    with pytest.raises(NotFoundError):
        svc.update("nope", title="x")
    with pytest.raises(NotFoundError):
        svc.delete("nope")


def test_delete():
    repo = FakeAnnouncementRepo()
    svc = AnnouncementsService(repo=repo)
    ann = svc.create("Hello")
    svc.delete(ann.id)
    assert svc.list_all() == []
