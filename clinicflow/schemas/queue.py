from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional

from .appointments import AppointmentResponse
from .announcements import AnnouncementResponse


class QueueEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment: AppointmentResponse
    patient_name: Optional[str] = None
    guardian_name: Optional[str] = None
    contact_number: Optional[str] = None


class QueueSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: str
    count: int
    capacity: int
    is_full: bool
    cancelled_count: int
    entries: List[QueueEntryResponse]


class QueueDayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    total: int
    pending_count: int
    announcement: Optional[AnnouncementResponse] = None
    is_closed: bool
    slots: List[QueueSlotResponse]


class QueueAnalyticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    completed: int
    active: int
    pending: int
    hourly_traffic: Dict[int, int]


class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    queued: int
    vaccines: int
    pending: int
    completed: int
