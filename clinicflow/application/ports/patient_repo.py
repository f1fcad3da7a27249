from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence
from datetime import datetime


@dataclass
class PatientDto:
    id: str
    name: str
    guardian_name: Optional[str]
    dob: Optional[str]
    contact_number: Optional[str]
    email: Optional[str]
    created_at: datetime
    gender: Optional[str] = None
    last_visit: Optional[str] = None
    condition: Optional[str] = None


class PatientRepository(Protocol):
    def get_by_id(self, patient_id: str) -> Optional[PatientDto]:
        ...

    def get_many(self, patient_ids: Sequence[str]) -> Dict[str, PatientDto]:
        ...

    def find_for_guardian(self, email: Optional[str], contact_number: Optional[str]) -> List[PatientDto]:
        ...

    def search(self, query: Optional[str]) -> List[PatientDto]:
        ...

    def create(self, name: str, dob: Optional[str], guardian_name: Optional[str], contact_number: Optional[str], email: Optional[str], gender: Optional[str] = None) -> PatientDto:
        ...

    def delete(self, patient_id: str) -> None:
        ...
