from typing import List, Optional
from sqlmodel import select

from .base import SqlRepository
from .....models import SoapNote
from .....application.ports.change_feed import INSERT
from .....application.ports.soap_note_repo import SoapNoteRepository, SoapNoteDto


class SqlSoapNoteRepository(SqlRepository, SoapNoteRepository):
    table = "soap_notes"

    def _to_dto(self, n: SoapNote) -> SoapNoteDto:
        return SoapNoteDto(
            id=n.id,
            patient_id=n.patient_id,
            doctor_name=n.doctor_name,
            subjective=n.subjective,
            objective=n.objective,
            assessment=n.assessment,
            plan=n.plan,
            diagnosis=n.diagnosis,
            created_at=n.created_at,
        )

    def create(self, patient_id: Optional[str], doctor_name: Optional[str], subjective: str, objective: str, assessment: str, plan: str, diagnosis: str) -> SoapNoteDto:
        note = SoapNote(
            patient_id=patient_id,
            doctor_name=doctor_name,
            subjective=subjective,
            objective=objective,
            assessment=assessment,
            plan=plan,
            diagnosis=diagnosis,
        )
        return self._to_dto(self._save(note, INSERT))

    def list_notes(self, patient_id: Optional[str] = None) -> List[SoapNoteDto]:
        statement = select(SoapNote).order_by(SoapNote.created_at.desc())
        if patient_id:
            statement = statement.where(SoapNote.patient_id == patient_id)
        return [self._to_dto(n) for n in self._query(statement).all()]
