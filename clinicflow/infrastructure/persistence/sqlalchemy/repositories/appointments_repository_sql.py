from typing import List, Optional, Sequence
from sqlmodel import select

from .base import SqlRepository
from .....models import Appointment
from .....application.ports.change_feed import INSERT, UPDATE
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
)
from .....exceptions import NotFoundError


class SqlAppointmentsRepository(SqlRepository, AppointmentsRepository):
    table = "appointments"

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            date=a.date,
            time=a.time,
            purpose=a.purpose,
            status=a.status,
            doctor_name=a.doctor_name,
            created_at=a.created_at,
            queue_number=a.queue_number,
        )

    def list_for_slot(self, date: str, time: str) -> List[AppointmentDto]:
        rows = self._query(
            select(Appointment)
            .where(Appointment.date == date)
            .where(Appointment.time == time)
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    def list_between(self, start: str, end: str) -> List[AppointmentDto]:
        rows = self._query(
            select(Appointment)
            .where(Appointment.date >= start)
            .where(Appointment.date <= end)
            .order_by(Appointment.date, Appointment.created_at)
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    def list_all(self) -> List[AppointmentDto]:
        rows = self._query(select(Appointment).order_by(Appointment.date, Appointment.created_at)).all()
        return [self._appt_to_dto(r) for r in rows]

    def list_for_patients(self, patient_ids: Sequence[str]) -> List[AppointmentDto]:
        if not patient_ids:
            return []
        rows = self._query(
            select(Appointment)
            .where(Appointment.patient_id.in_(list(patient_ids)))
            .order_by(Appointment.date.desc(), Appointment.created_at.desc())
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        a = self._query(select(Appointment).where(Appointment.id == appointment_id)).first()
        return self._appt_to_dto(a) if a else None

    def create(self, patient_id: str, date: str, time: str, purpose: str, doctor_name: str) -> AppointmentDto:
        appt = Appointment(
            patient_id=patient_id,
            date=date,
            time=time,
            purpose=purpose,
            doctor_name=doctor_name,
            status="pending",
        )
        return self._appt_to_dto(self._save(appt, INSERT))

    def update_status(self, appointment_id: str, status: str) -> None:
        a = self._query(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not a:
            raise NotFoundError("Appointment not found")
        a.status = status
        self._save(a, UPDATE)
