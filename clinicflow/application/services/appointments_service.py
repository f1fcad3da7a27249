from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence
from datetime import date
import logging

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.patient_repo import PatientRepository
from ..ports.announcement_repo import AnnouncementRepository
from ..ports.slot_lock import SlotLock
from ..ports.audit_logger import AuditLogger
from .availability import CLOSED_WEEKDAYS, CLOSURE_KEYWORDS, is_date_bookable, parse_iso_date
from .lifecycle import CANCELLED, COMPLETED, normalize_status, transition
from .slot_capacity import SLOT_CAPACITY, TIME_SLOTS, SlotInfo, is_valid_slot, slot_board, slot_info
from ...exceptions import (
    BlackoutError,
    BookingValidationError,
    InvalidSlotError,
    NotFoundError,
    PersistenceError,
    SlotFullError,
)

logger = logging.getLogger(__name__)

DEFAULT_DOCTOR_NAME = "Dr. Atamosa"


@dataclass
class BookingRequest:
    date: str
    time: str
    purpose: str
    patient_id: Optional[str] = None
    # Identity used to register a new patient when patient_id is absent
    patient_name: Optional[str] = None
    patient_dob: Optional[str] = None
    guardian_name: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    doctor_name: Optional[str] = None


@dataclass
class AppointmentsService:
    repo: AppointmentsRepository
    patient_repo: PatientRepository
    announcement_repo: AnnouncementRepository
    slot_lock: Optional[SlotLock] = None
    audit: Optional[AuditLogger] = None
    capacity: int = SLOT_CAPACITY
    time_slots: Sequence[str] = TIME_SLOTS
    closed_weekdays: Sequence[int] = CLOSED_WEEKDAYS
    closure_keywords: Sequence[str] = CLOSURE_KEYWORDS
    doctor_name: str = DEFAULT_DOCTOR_NAME
    today: Callable[[], date] = field(default=date.today)

    def blackout_reason(self, day: str) -> Optional[str]:
        d = parse_iso_date(day)
        return is_date_bookable(
            d,
            self.announcement_repo.list_for_date(d.isoformat()),
            closed_weekdays=self.closed_weekdays,
            closure_keywords=self.closure_keywords,
        )

    def check_date(self, day: str) -> str:
        """Validate a candidate booking date and return it in ISO form."""
        d = parse_iso_date(day)
        if d < self.today():
            raise BookingValidationError("Appointment date cannot be in the past")
        reason = self.blackout_reason(d.isoformat())
        if reason:
            raise BlackoutError(d.isoformat(), reason)
        return d.isoformat()

    def available_slots(self, day: str) -> List[SlotInfo]:
        iso_day = self.check_date(day)
        appointments = self.repo.list_between(iso_day, iso_day)
        return slot_board(iso_day, appointments, self.time_slots, self.capacity)

    def slot_status(self, day: str, time: str) -> SlotInfo:
        iso_day = parse_iso_date(day).isoformat()
        return slot_info(iso_day, time, self.repo.list_for_slot(iso_day, time), self.capacity)

    def book(self, request: BookingRequest) -> AppointmentDto:
        if not (request.purpose or "").strip():
            raise BookingValidationError("Purpose of visit is required")
        if not is_valid_slot(request.time, self.time_slots):
            raise InvalidSlotError(request.time)
        iso_day = self.check_date(request.date)

        patient_id = self._existing_patient_id(request)

        with self._hold(iso_day, request.time):
            current = self.slot_status(iso_day, request.time)
            if current.is_full:
                logger.info(f"Rejected booking for full slot {iso_day} {request.time} ({current.count}/{self.capacity})")
                self._audit("appointment.book", patient_id, None, False, {"date": iso_day, "time": request.time, "reason": "slot_full"})
                raise SlotFullError(iso_day, request.time, self.capacity)

            registered = patient_id is None
            if registered:
                patient_id = self._register_patient(request)
            try:
                appt = self.repo.create(
                    patient_id=patient_id,
                    date=iso_day,
                    time=request.time,
                    purpose=request.purpose.strip(),
                    doctor_name=request.doctor_name or self.doctor_name,
                )
            except PersistenceError:
                if registered:
                    logger.warning(f"Appointment insert failed, removing patient {patient_id} registered for it")
                    self.patient_repo.delete(patient_id)
                raise

        logger.info(f"Booked appointment {appt.id} for {iso_day} {request.time} ({current.count + 1}/{self.capacity})")
        self._audit("appointment.book", patient_id, appt.id, True, {"date": iso_day, "time": request.time})
        return appt

    def get(self, appointment_id: str) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFoundError("Appointment not found")
        return appt

    def list_all(self) -> List[AppointmentDto]:
        return self.repo.list_all()

    def list_for_patients(self, patient_ids: Sequence[str], tab: str = "upcoming", hide_completed: bool = False) -> List[AppointmentDto]:
        """Family view: upcoming (today or later, not cancelled) or history."""
        if not patient_ids:
            return []
        today = self.today().isoformat()
        rows = self.repo.list_for_patients(patient_ids)
        if tab == "upcoming":
            rows = [a for a in rows if a.date >= today and normalize_status(a.status) != CANCELLED]
        elif tab == "history":
            rows = [a for a in rows if a.date < today or normalize_status(a.status) == CANCELLED]
        else:
            raise BookingValidationError("tab must be 'upcoming' or 'history'")
        if hide_completed:
            rows = [a for a in rows if normalize_status(a.status) != COMPLETED]
        return rows

    def update_status(self, appointment_id: str, new_status: str, actor: Optional[str] = None) -> AppointmentDto:
        current = self.get(appointment_id)
        updated = transition(current, new_status)
        self.repo.update_status(appointment_id, updated.status)
        logger.info(f"Appointment {appointment_id} moved {current.status} -> {updated.status}")
        self._audit("appointment.status", actor, appointment_id, True, {"from": current.status, "to": updated.status})
        return updated

    def cancel(self, appointment_id: str, actor: Optional[str] = None) -> AppointmentDto:
        return self.update_status(appointment_id, CANCELLED, actor=actor)

    def _existing_patient_id(self, request: BookingRequest) -> Optional[str]:
        """Id of the referenced patient, or None after validating new-patient identity."""
        if request.patient_id:
            if not self.patient_repo.get_by_id(request.patient_id):
                raise NotFoundError("Patient not found")
            return request.patient_id

        if not (request.patient_name or "").strip():
            raise BookingValidationError("Either patient_id or patient_name is required")
        if not request.patient_dob:
            raise BookingValidationError("Birth date is required for new patients")
        if parse_iso_date(request.patient_dob) > self.today():
            raise BookingValidationError("Birth date cannot be in the future")
        return None

    def _register_patient(self, request: BookingRequest) -> str:
        patient = self.patient_repo.create(
            name=request.patient_name.strip(),
            dob=parse_iso_date(request.patient_dob).isoformat(),
            guardian_name=request.guardian_name,
            contact_number=request.contact_number,
            email=request.email,
        )
        logger.info(f"Registered new patient {patient.id} during booking")
        return patient.id

    def _hold(self, day: str, time: str):
        if self.slot_lock is None:
            return nullcontext()
        return self.slot_lock.hold(f"{day}|{time}")

    def _audit(self, action: str, actor: Optional[str], target_id: Optional[str], success: bool, details: dict) -> None:
        if self.audit is not None:
            self.audit.log(action, actor=actor, target_id=target_id, success=success, details=details)
