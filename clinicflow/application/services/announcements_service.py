from dataclasses import dataclass
from typing import List, Optional
import logging

from ..ports.announcement_repo import AnnouncementRepository, AnnouncementDto
from .availability import parse_iso_date
from ...exceptions import BookingValidationError, NotFoundError

logger = logging.getLogger(__name__)

ANNOUNCEMENT_TYPES = ("general", "alert", "promo", "info")


def _normalize_date(value: Optional[str]) -> Optional[str]:
    # Blank dates are stored as null, never as ""
    if value is None or not str(value).strip():
        return None
    return parse_iso_date(value).isoformat()


@dataclass
class AnnouncementsService:
    repo: AnnouncementRepository

    def create(self, title: str, content: str = "", type: str = "info", date: Optional[str] = None) -> AnnouncementDto:
        if not (title or "").strip():
            raise BookingValidationError("Announcement title is required")
        if type not in ANNOUNCEMENT_TYPES:
            raise BookingValidationError(f"Invalid announcement type. Must be one of: {list(ANNOUNCEMENT_TYPES)}")
        ann = self.repo.create(title=title.strip(), content=content or "", type=type, date=_normalize_date(date))
        logger.info(f"Created {ann.type} announcement {ann.id} for {ann.date or 'no date'}")
        return ann

    def update(self, announcement_id: str, title: Optional[str] = None, content: Optional[str] = None, type: Optional[str] = None, date: Optional[str] = None, clear_date: bool = False) -> AnnouncementDto:
        fields = {}
        if title is not None:
            if not title.strip():
                raise BookingValidationError("Announcement title is required")
            fields["title"] = title.strip()
        if content is not None:
            fields["content"] = content
        if type is not None:
            if type not in ANNOUNCEMENT_TYPES:
                raise BookingValidationError(f"Invalid announcement type. Must be one of: {list(ANNOUNCEMENT_TYPES)}")
            fields["type"] = type
        if clear_date:
            fields["date"] = None
        elif date is not None:
            fields["date"] = _normalize_date(date)

        updated = self.repo.update(announcement_id, fields)
        if not updated:
            raise NotFoundError("Announcement not found")
        return updated

    def delete(self, announcement_id: str) -> None:
        if not self.repo.delete(announcement_id):
            raise NotFoundError("Announcement not found")

    def list_all(self) -> List[AnnouncementDto]:
        return self.repo.list_all()
