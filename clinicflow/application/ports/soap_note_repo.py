from dataclasses import dataclass
from typing import List, Optional, Protocol
from datetime import datetime


@dataclass
class SoapNoteDto:
    id: str
    patient_id: Optional[str]
    doctor_name: Optional[str]
    subjective: str
    objective: str
    assessment: str
    plan: str
    diagnosis: str
    created_at: datetime


class SoapNoteRepository(Protocol):
    def create(self, patient_id: Optional[str], doctor_name: Optional[str], subjective: str, objective: str, assessment: str, plan: str, diagnosis: str) -> SoapNoteDto:
        ...

    def list_notes(self, patient_id: Optional[str] = None) -> List[SoapNoteDto]:
        ...
