from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class AnnouncementCreate(BaseModel):
    title: str
    content: str = ""
    type: str = "info"
    date: Optional[str] = None  # YYYY-MM-DD; blank means no date


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    type: Optional[str] = None
    date: Optional[str] = None
    clear_date: bool = False


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    type: str
    date: Optional[str] = None
    created_at: datetime
    edited_at: Optional[datetime] = None
