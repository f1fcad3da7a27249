# clinicflow/schemas/appointments.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class AppointmentCreate(BaseModel):
    date: str  # YYYY-MM-DD
    time: str  # one of the clinic's time slots, e.g. "09:00 AM"
    purpose: str = Field(min_length=1)
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    patient_dob: Optional[str] = None  # YYYY-MM-DD
    doctor_name: Optional[str] = None
    # Guardian details for a new patient; only read when a doctor books
    guardian_name: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: str


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    date: str
    time: str
    purpose: str
    status: str
    doctor_name: str
    queue_number: Optional[int] = None
    created_at: datetime


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    time: str
    count: int
    remaining: int
    is_full: bool
    capacity: int


class AvailabilityResponse(BaseModel):
    date: str
    bookable: bool
    reason: Optional[str] = None
    slots: List[SlotResponse] = []
