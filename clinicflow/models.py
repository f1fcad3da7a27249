# clinicflow/models.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index
from datetime import datetime, timezone
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Patient(SQLModel, table=True):
    __tablename__ = "patients"

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(max_length=100)
    guardian_name: Optional[str] = Field(max_length=100, default=None)
    dob: Optional[str] = Field(max_length=10, default=None)  # YYYY-MM-DD
    gender: Optional[str] = Field(max_length=20, default=None)
    contact_number: Optional[str] = Field(max_length=20, default=None, index=True)
    email: Optional[str] = Field(max_length=100, default=None, index=True)
    last_visit: Optional[str] = Field(max_length=10, default=None)
    condition: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_slot", "date", "time"),)

    id: str = Field(default_factory=_new_id, primary_key=True)
    patient_id: str = Field(foreign_key="patients.id", index=True)
    date: str = Field(max_length=10)  # YYYY-MM-DD
    time: str = Field(max_length=8)  # bucket label, e.g. "08:00 AM"
    purpose: str
    status: str = Field(default="pending", max_length=20)  # pending, confirmed, in-room, completed, cancelled
    doctor_name: str = Field(default="Dr. Atamosa", max_length=100)
    queue_number: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow)


class Announcement(SQLModel, table=True):
    __tablename__ = "announcements"

    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str = Field(max_length=200)
    content: str = Field(default="")
    type: str = Field(default="info", max_length=20)  # general, alert, promo, info
    date: Optional[str] = Field(default=None, max_length=10, index=True)
    created_at: datetime = Field(default_factory=_utcnow)
    edited_at: Optional[datetime] = Field(default=None)


class SoapNote(SQLModel, table=True):
    __tablename__ = "soap_notes"

    id: str = Field(default_factory=_new_id, primary_key=True)
    patient_id: Optional[str] = Field(default=None, foreign_key="patients.id", index=True)
    doctor_name: Optional[str] = Field(default=None, max_length=100)
    subjective: str = Field(default="")
    objective: str = Field(default="")
    assessment: str = Field(default="")
    plan: str = Field(default="")
    diagnosis: str = Field(default="")
    created_at: datetime = Field(default_factory=_utcnow)


class Thread(SQLModel, table=True):
    __tablename__ = "threads"

    id: str = Field(default_factory=_new_id, primary_key=True)
    patient_id: str = Field(foreign_key="patients.id", index=True)
    status: str = Field(default="active", max_length=20)
    updated_at: datetime = Field(default_factory=_utcnow)


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    id: str = Field(default_factory=_new_id, primary_key=True)
    thread_id: str = Field(foreign_key="threads.id", index=True)
    role: str = Field(max_length=10)  # user, model, system
    text: str
    created_at: datetime = Field(default_factory=_utcnow)
