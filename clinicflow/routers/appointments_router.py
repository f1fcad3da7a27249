from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.services.appointments_service import AppointmentsService, BookingRequest
from ..application.services.patients_service import PatientsService
from ..deps import CurrentUser, get_appointments_service, get_patients_service, require_doctor, require_member
from ..exceptions import BlackoutError, ClinicError
from ..schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AvailabilityResponse,
    SlotResponse,
)
from ..utils import Role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    date: str = Query(..., description="YYYY-MM-DD"),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    """Step 1 of booking: is the day open, and how full is each time slot."""
    try:
        slots = appt_service.available_slots(date)
    except BlackoutError as e:
        return AvailabilityResponse(date=e.date, bookable=False, reason=e.reason)
    return AvailabilityResponse(
        date=slots[0].date if slots else date,
        bookable=True,
        slots=[SlotResponse.model_validate(s) for s in slots],
    )


@router.post("/", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    appointment_data: AppointmentCreate,
    current_user: CurrentUser = Depends(require_member),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patients: PatientsService = Depends(get_patients_service),
):
    if appointment_data.patient_id:
        _ensure_visible(appointment_data.patient_id, current_user, patients, detail="Patient not found")

    if current_user.role == Role.DOCTOR:
        guardian_name = appointment_data.guardian_name
        contact_number = appointment_data.contact_number
        email = appointment_data.email
        if not appointment_data.patient_id and not (
            (guardian_name or "").strip() and (contact_number or email)
        ):
            raise HTTPException(
                status_code=422,
                detail="Guardian name and a contact number or email are required to register a new patient",
            )
    else:
        # Guardians always register children under their own account
        guardian_name = current_user.name
        contact_number = current_user.contact_number
        email = current_user.email

    try:
        appt = appt_service.book(BookingRequest(
            date=appointment_data.date,
            time=appointment_data.time,
            purpose=appointment_data.purpose,
            patient_id=appointment_data.patient_id,
            patient_name=appointment_data.patient_name,
            patient_dob=appointment_data.patient_dob,
            guardian_name=guardian_name,
            contact_number=contact_number,
            email=email,
            doctor_name=appointment_data.doctor_name,
        ))
        return AppointmentResponse.model_validate(appt)
    except (HTTPException, ClinicError):
        raise
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to book appointment")


@router.get("/", response_model=List[AppointmentResponse])
def list_appointments(
    current_user: CurrentUser = Depends(require_doctor),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return [AppointmentResponse.model_validate(a) for a in appt_service.list_all()]


@router.get("/family", response_model=List[AppointmentResponse])
def list_family_appointments(
    tab: str = Query("upcoming", pattern="^(upcoming|history)$"),
    hide_completed: bool = False,
    current_user: CurrentUser = Depends(require_member),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patients: PatientsService = Depends(get_patients_service),
):
    children = patients.family(current_user.email, current_user.contact_number)
    rows = appt_service.list_for_patients([c.id for c in children], tab=tab, hide_completed=hide_completed)
    return [AppointmentResponse.model_validate(a) for a in rows]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    current_user: CurrentUser = Depends(require_member),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patients: PatientsService = Depends(get_patients_service),
):
    appt = appt_service.get(appointment_id)
    _ensure_visible(appt.patient_id, current_user, patients)
    return AppointmentResponse.model_validate(appt)


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    body: AppointmentStatusUpdate,
    current_user: CurrentUser = Depends(require_doctor),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.update_status(appointment_id, body.status, actor=current_user.subject)
    return AppointmentResponse.model_validate(appt)


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: str,
    current_user: CurrentUser = Depends(require_member),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    patients: PatientsService = Depends(get_patients_service),
):
    appt = appt_service.get(appointment_id)
    _ensure_visible(appt.patient_id, current_user, patients)
    return AppointmentResponse.model_validate(appt_service.cancel(appointment_id, actor=current_user.subject))


def _ensure_visible(patient_id: Optional[str], user: CurrentUser, patients: PatientsService, detail: str = "Appointment not found") -> None:
    if user.role == Role.DOCTOR:
        return
    family_ids = {c.id for c in patients.family(user.email, user.contact_number)}
    if patient_id not in family_ids:
        raise HTTPException(status_code=404, detail=detail)
