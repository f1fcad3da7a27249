from typing import Dict, List, Optional, Sequence
from sqlmodel import select, or_

from .base import SqlRepository
from .....models import Patient
from .....application.ports.change_feed import DELETE, INSERT
from .....application.ports.patient_repo import PatientRepository, PatientDto


class SqlPatientRepository(SqlRepository, PatientRepository):
    table = "patients"

    def _to_dto(self, p: Patient) -> PatientDto:
        return PatientDto(
            id=p.id,
            name=p.name,
            guardian_name=p.guardian_name,
            dob=p.dob,
            contact_number=p.contact_number,
            email=p.email,
            created_at=p.created_at,
            gender=p.gender,
            last_visit=p.last_visit,
            condition=p.condition,
        )

    def get_by_id(self, patient_id: str) -> Optional[PatientDto]:
        p = self._query(select(Patient).where(Patient.id == patient_id)).first()
        return self._to_dto(p) if p else None

    def get_many(self, patient_ids: Sequence[str]) -> Dict[str, PatientDto]:
        if not patient_ids:
            return {}
        rows = self._query(select(Patient).where(Patient.id.in_(list(patient_ids)))).all()
        return {p.id: self._to_dto(p) for p in rows}

    def find_for_guardian(self, email: Optional[str], contact_number: Optional[str]) -> List[PatientDto]:
        clauses = []
        if email:
            clauses.append(Patient.email == email)
        if contact_number:
            clauses.append(Patient.contact_number == contact_number)
        if not clauses:
            return []
        rows = self._query(select(Patient).where(or_(*clauses)).order_by(Patient.created_at)).all()
        return [self._to_dto(p) for p in rows]

    def search(self, query: Optional[str]) -> List[PatientDto]:
        statement = select(Patient).order_by(Patient.name)
        if query:
            like = f"%{query.strip()}%"
            statement = statement.where(or_(Patient.name.ilike(like), Patient.guardian_name.ilike(like)))
        return [self._to_dto(p) for p in self._query(statement).all()]

    def create(self, name: str, dob: Optional[str], guardian_name: Optional[str], contact_number: Optional[str], email: Optional[str], gender: Optional[str] = None) -> PatientDto:
        patient = Patient(
            name=name,
            dob=dob,
            guardian_name=guardian_name,
            contact_number=contact_number,
            email=email,
            gender=gender,
        )
        return self._to_dto(self._save(patient, INSERT))

    def delete(self, patient_id: str) -> None:
        p = self._query(select(Patient).where(Patient.id == patient_id)).first()
        if p:
            self._delete(p, DELETE)
