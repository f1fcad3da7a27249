from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime


@dataclass
class AnnouncementDto:
    id: str
    title: str
    content: str
    type: str
    date: Optional[str]
    created_at: datetime
    edited_at: Optional[datetime] = None


class AnnouncementRepository(Protocol):
    def list_all(self) -> List[AnnouncementDto]:
        ...

    def list_for_date(self, date: str) -> List[AnnouncementDto]:
        ...

    def list_between(self, start: str, end: str) -> List[AnnouncementDto]:
        ...

    def get_by_id(self, announcement_id: str) -> Optional[AnnouncementDto]:
        ...

    def create(self, title: str, content: str, type: str, date: Optional[str]) -> AnnouncementDto:
        ...

    def update(self, announcement_id: str, fields: Dict[str, Any]) -> Optional[AnnouncementDto]:
        ...

    def delete(self, announcement_id: str) -> bool:
        ...
