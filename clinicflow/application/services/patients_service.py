from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional
import logging

from ..ports.patient_repo import PatientRepository, PatientDto
from .availability import parse_iso_date
from ...exceptions import BookingValidationError, NotFoundError

logger = logging.getLogger(__name__)


def calculate_age(dob: Optional[str], today: date) -> str:
    """Age label used on pediatric records, e.g. "2 yr. old" or "5 mo. old"."""
    if not dob:
        return ""
    try:
        birth = parse_iso_date(dob)
    except BookingValidationError:
        return ""

    years = today.year - birth.year
    months = today.month - birth.month
    if months < 0 or (months == 0 and today.day < birth.day):
        years -= 1
        months += 12
    if years == 0:
        return f"{months} mo. old"
    return f"{years} yr. old"


@dataclass
class PatientsService:
    repo: PatientRepository
    today: Callable[[], date] = field(default=date.today)

    def register(self, name: str, dob: Optional[str], guardian_name: Optional[str] = None, contact_number: Optional[str] = None, email: Optional[str] = None, gender: Optional[str] = None) -> PatientDto:
        if not (name or "").strip():
            raise BookingValidationError("Patient name is required")
        iso_dob = None
        if dob:
            birth = parse_iso_date(dob)
            if birth > self.today():
                raise BookingValidationError("Birth date cannot be in the future")
            iso_dob = birth.isoformat()
        patient = self.repo.create(
            name=name.strip(),
            dob=iso_dob,
            guardian_name=guardian_name,
            contact_number=contact_number,
            email=email,
            gender=gender,
        )
        logger.info(f"Registered patient {patient.id}")
        return patient

    def get(self, patient_id: str) -> PatientDto:
        patient = self.repo.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def family(self, email: Optional[str], contact_number: Optional[str]) -> List[PatientDto]:
        if not email and not contact_number:
            return []
        return self.repo.find_for_guardian(email, contact_number)

    def search(self, query: Optional[str] = None) -> List[PatientDto]:
        return self.repo.search(query)

    def age_label(self, patient: PatientDto) -> str:
        return calculate_age(patient.dob, self.today())
