from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class ThreadOpen(BaseModel):
    patient_id: str


class MessageCreate(BaseModel):
    text: str


class ThreadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    status: str
    updated_at: datetime


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    thread_id: str
    role: str
    text: str
    created_at: datetime


class ThreadSummaryResponse(BaseModel):
    thread: ThreadResponse
    patient_name: Optional[str] = None
    last_message: Optional[MessageResponse] = None
    is_unread: bool
