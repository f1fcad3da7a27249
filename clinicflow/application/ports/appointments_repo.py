from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence
from datetime import datetime


@dataclass
class AppointmentDto:
    id: str
    patient_id: str
    date: str
    time: str
    purpose: str
    status: str
    doctor_name: str
    created_at: datetime
    queue_number: Optional[int] = None


class AppointmentsRepository(Protocol):
    def list_for_slot(self, date: str, time: str) -> List[AppointmentDto]:
        ...

    def list_between(self, start: str, end: str) -> List[AppointmentDto]:
        ...

    def list_all(self) -> List[AppointmentDto]:
        ...

    def list_for_patients(self, patient_ids: Sequence[str]) -> List[AppointmentDto]:
        ...

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        ...

    def create(self, patient_id: str, date: str, time: str, purpose: str, doctor_name: str) -> AppointmentDto:
        ...

    def update_status(self, appointment_id: str, status: str) -> None:
        ...
