from dataclasses import dataclass
from typing import List, Optional
import json
import logging
import re

from ..ports.ai_provider import AIProvider
from ..ports.soap_note_repo import SoapNoteRepository, SoapNoteDto
from ...exceptions import AIProviderError

logger = logging.getLogger(__name__)

SOAP_FIELDS = ("subjective", "objective", "assessment", "plan")

SOAP_PROMPT_TEMPLATE = """
Analyze this pediatric consultation transcript:
"{transcript}"

Generate a JSON object with exactly these keys:
- subjective: Patient/Parent history and complaints.
- objective: Physical examination findings, vitals, and observations.
- assessment: Diagnosis, differential diagnosis, or clinical impression.
- plan: Medications (dosage/duration), labs, follow-up, and home care advice.

Return ONLY valid JSON. If Bisaya was spoken, ensure the JSON content is in English.
"""

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass(frozen=True)
class SoapDraft:
    subjective: str
    objective: str
    assessment: str
    plan: str
    generated: bool = True


FALLBACK_DRAFT = SoapDraft(
    subjective="Transcript analysis unavailable. Check API connectivity.",
    objective="No exam data extracted.",
    assessment="Pending review.",
    plan="Manual documentation required.",
    generated=False,
)


def build_system_instruction(doctor_name: str, clinic_location: str) -> str:
    return (
        f"You are an expert Pediatric Scribe for {doctor_name} in {clinic_location}. "
        "The transcript may contain a mix of Bisaya (Cebuano) and English. "
        "Translate all Bisaya phrases into professional clinical English. "
        "Organize the findings into a standard SOAP note format."
    )


def parse_soap_json(text: str) -> SoapDraft:
    """Parse the model reply into a draft; markdown code fences are tolerated."""
    cleaned = _FENCE_RE.sub("", text or "").strip()
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("SOAP reply is not a JSON object")
    missing = [k for k in SOAP_FIELDS if k not in data]
    if missing:
        raise ValueError(f"SOAP reply is missing keys: {missing}")
    values = {}
    for key in SOAP_FIELDS:
        value = data[key]
        if isinstance(value, list):
            value = "\n".join(str(v) for v in value)
        values[key] = str(value).strip()
    return SoapDraft(**values)


@dataclass
class ScribeService:
    ai_provider: Optional[AIProvider]
    repo: SoapNoteRepository
    doctor_name: str = "Dr. Atamosa"
    clinic_location: str = "Balamban, Cebu"

    def generate_soap_note(self, transcript: str) -> SoapDraft:
        if self.ai_provider is None:
            logger.warning("AI provider not configured; returning fallback SOAP note")
            return FALLBACK_DRAFT
        if not (transcript or "").strip():
            return FALLBACK_DRAFT

        try:
            reply = self.ai_provider.generate_text(
                SOAP_PROMPT_TEMPLATE.format(transcript=transcript.strip()),
                system_instruction=build_system_instruction(self.doctor_name, self.clinic_location),
            )
            return parse_soap_json(reply)
        except AIProviderError as e:
            logger.error(f"SOAP generation failed: {e}")
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            logger.error(f"SOAP reply could not be parsed: {e}")
        return FALLBACK_DRAFT

    def save_note(self, draft: SoapDraft, patient_id: Optional[str] = None, diagnosis: str = "", doctor_name: Optional[str] = None) -> SoapNoteDto:
        note = self.repo.create(
            patient_id=patient_id,
            doctor_name=doctor_name or self.doctor_name,
            subjective=draft.subjective,
            objective=draft.objective,
            assessment=draft.assessment,
            plan=draft.plan,
            diagnosis=diagnosis or "",
        )
        logger.info(f"Saved SOAP note {note.id} for patient {patient_id}")
        return note

    def list_notes(self, patient_id: Optional[str] = None) -> List[SoapNoteDto]:
        return self.repo.list_notes(patient_id)
