from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException

from ..application.ports.patient_repo import PatientDto
from ..application.services.patients_service import PatientsService
from ..deps import CurrentUser, get_patients_service, require_doctor, require_member
from ..schemas.patients import PatientCreate, PatientResponse
from ..utils import Role

router = APIRouter(prefix="/patients", tags=["Patients"])


def _to_response(p: PatientDto, svc: PatientsService) -> PatientResponse:
    data = PatientResponse.model_validate(p)
    data.age = svc.age_label(p)
    return data


@router.get("/", response_model=List[PatientResponse])
def search_patients(
    q: Optional[str] = None,
    current_user: CurrentUser = Depends(require_doctor),
    svc: PatientsService = Depends(get_patients_service),
):
    return [_to_response(p, svc) for p in svc.search(q)]


@router.get("/family", response_model=List[PatientResponse])
def my_family(
    current_user: CurrentUser = Depends(require_member),
    svc: PatientsService = Depends(get_patients_service),
):
    return [_to_response(p, svc) for p in svc.family(current_user.email, current_user.contact_number)]


@router.post("/", response_model=PatientResponse, status_code=201)
def register_patient(
    body: PatientCreate,
    current_user: CurrentUser = Depends(require_member),
    svc: PatientsService = Depends(get_patients_service),
):
    if current_user.role == Role.PATIENT:
        # Guardians can only register children under their own contact details
        body.guardian_name = body.guardian_name or current_user.name
        body.email = current_user.email
        body.contact_number = current_user.contact_number
    p = svc.register(
        name=body.name,
        dob=body.dob,
        guardian_name=body.guardian_name,
        contact_number=body.contact_number,
        email=body.email,
        gender=body.gender,
    )
    return _to_response(p, svc)


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: str,
    current_user: CurrentUser = Depends(require_member),
    svc: PatientsService = Depends(get_patients_service),
):
    p = svc.get(patient_id)
    if current_user.role != Role.DOCTOR:
        family_ids = {c.id for c in svc.family(current_user.email, current_user.contact_number)}
        if p.id not in family_ids:
            raise HTTPException(status_code=404, detail="Patient not found")
    return _to_response(p, svc)
