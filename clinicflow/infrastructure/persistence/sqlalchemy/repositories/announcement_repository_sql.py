from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlmodel import select

from .base import SqlRepository
from .....models import Announcement
from .....application.ports.change_feed import DELETE, INSERT, UPDATE
from .....application.ports.announcement_repo import AnnouncementRepository, AnnouncementDto

_EDITABLE = ("title", "content", "type", "date")


class SqlAnnouncementRepository(SqlRepository, AnnouncementRepository):
    table = "announcements"

    def _to_dto(self, a: Announcement) -> AnnouncementDto:
        return AnnouncementDto(
            id=a.id,
            title=a.title,
            content=a.content,
            type=a.type,
            date=a.date,
            created_at=a.created_at,
            edited_at=a.edited_at,
        )

    def list_all(self) -> List[AnnouncementDto]:
        rows = self._query(select(Announcement).order_by(Announcement.created_at.desc())).all()
        return [self._to_dto(a) for a in rows]

    def list_for_date(self, date: str) -> List[AnnouncementDto]:
        rows = self._query(select(Announcement).where(Announcement.date == date)).all()
        return [self._to_dto(a) for a in rows]

    def list_between(self, start: str, end: str) -> List[AnnouncementDto]:
        rows = self._query(
            select(Announcement)
            .where(Announcement.date >= start)
            .where(Announcement.date <= end)
            .order_by(Announcement.date)
        ).all()
        return [self._to_dto(a) for a in rows]

    def get_by_id(self, announcement_id: str) -> Optional[AnnouncementDto]:
        a = self._query(select(Announcement).where(Announcement.id == announcement_id)).first()
        return self._to_dto(a) if a else None

    def create(self, title: str, content: str, type: str, date: Optional[str]) -> AnnouncementDto:
        ann = Announcement(title=title, content=content, type=type, date=date)
        return self._to_dto(self._save(ann, INSERT))

    def update(self, announcement_id: str, fields: Dict[str, Any]) -> Optional[AnnouncementDto]:
        a = self._query(select(Announcement).where(Announcement.id == announcement_id)).first()
        if not a:
            return None
        for key in _EDITABLE:
            if key in fields:
                setattr(a, key, fields[key])
        a.edited_at = datetime.now(timezone.utc)
        return self._to_dto(self._save(a, UPDATE))

    def delete(self, announcement_id: str) -> bool:
        a = self._query(select(Announcement).where(Announcement.id == announcement_id)).first()
        if not a:
            return False
        self._delete(a, DELETE)
        return True
