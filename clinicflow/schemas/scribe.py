from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Tuple
from datetime import datetime


class TranscriptRequest(BaseModel):
    transcript: str


class SoapDraftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subjective: str
    objective: str
    assessment: str
    plan: str
    generated: bool


class SoapNoteCreate(BaseModel):
    patient_id: Optional[str] = None
    subjective: str
    objective: str
    assessment: str
    plan: str
    diagnosis: str = ""


class SoapNoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: Optional[str] = None
    doctor_name: Optional[str] = None
    subjective: str
    objective: str
    assessment: str
    plan: str
    diagnosis: str
    created_at: datetime


class AssistantChatRequest(BaseModel):
    history: List[Tuple[str, str]] = []
    message: str


class AssistantChatResponse(BaseModel):
    reply: str
