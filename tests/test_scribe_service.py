from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from clinicflow.application.ports.soap_note_repo import SoapNoteDto
from clinicflow.application.services.scribe_service import FALLBACK_DRAFT, ScribeService, SoapDraft, parse_soap_json
from clinicflow.exceptions import AIProviderError

REPLY = '{"subjective": "Fever for 2 days", "objective": "T 38.5C", "assessment": "Viral URTI", "plan": ["Paracetamol 5ml q4h", "Return if worse"]}'


class FakeAI:
    def __init__(self, reply=REPLY, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate_text(self, prompt, system_instruction=None):
        self.prompts.append((prompt, system_instruction))
        if self.error:
            raise self.error
        return self.reply

    def chat(self, history, message, system_instruction=None):
        raise NotImplementedError


class FakeNoteRepo:
    def __init__(self):
        self.notes = []

    def create(self, patient_id, doctor_name, subjective, objective, assessment, plan, diagnosis):
        n = SoapNoteDto(f"s{len(self.notes) + 1}", patient_id, doctor_name, subjective, objective, assessment, plan, diagnosis, datetime.now(timezone.utc))
        self.notes.append(n)
        return n

    def list_notes(self, patient_id=None):
        return [n for n in self.notes if patient_id is None or n.patient_id == patient_id]


def test_parse_plain_json_and_list_values():
    draft = parse_soap_json(REPLY)
    assert draft.subjective == "Fever for 2 days"
    assert draft.plan == "Paracetamol 5ml q4h\nReturn if worse"
    assert draft.generated is True


def test_parse_strips_markdown_fences():
    draft = parse_soap_json("```json\n" + REPLY + "\n```")
    assert draft.assessment == "Viral URTI"


def test_parse_rejects_missing_keys():
    with pytest.raises(ValueError):
        parse_soap_json('{"subjective": "x"}')
    with pytest.raises(ValueError):
        parse_soap_json("[1, 2]")


def test_generate_uses_provider_with_clinic_context():
    ai = FakeAI()
    svc = ScribeService(ai_provider=ai, repo=FakeNoteRepo())
    draft = svc.generate_soap_note("Hilanat siya duha ka adlaw")
    assert draft.objective == "T 38.5C"
    prompt, system = ai.prompts[0]
    assert "Hilanat siya duha ka adlaw" in prompt
    assert "Dr. Atamosa" in system
    assert "Balamban, Cebu" in system


@pytest.mark.parametrize("ai", [
    None,
    FakeAI(error=AIProviderError("quota")),
    FakeAI(reply="Sorry, I cannot help with that."),
])
def test_generate_falls_back(ai):
    svc = ScribeService(ai_provider=ai, repo=FakeNoteRepo())
    draft = svc.generate_soap_note("patient has cough")
    assert draft == FALLBACK_DRAFT
    assert draft.generated is False


def test_blank_transcript_skips_provider():
    ai = FakeAI()
    svc = ScribeService(ai_provider=ai, repo=FakeNoteRepo())
    assert svc.generate_soap_note("   ") == FALLBACK_DRAFT
    assert ai.prompts == []


def test_fallback_draft_cannot_be_altered_by_callers():
    draft = ScribeService(ai_provider=None, repo=FakeNoteRepo()).generate_soap_note("cough")
    with pytest.raises(FrozenInstanceError):
        draft.plan = "Amoxicillin"
    assert FALLBACK_DRAFT.plan == "Manual documentation required."


def test_save_and_list_notes():
    repo = FakeNoteRepo()
    svc = ScribeService(ai_provider=None, repo=repo)
    draft = SoapDraft("s", "o", "a", "p")
    note = svc.save_note(draft, patient_id="p1", diagnosis="URTI")
    svc.save_note(draft, patient_id="p2")
    assert note.doctor_name == "Dr. Atamosa"
    assert note.diagnosis == "URTI"
    assert [n.id for n in svc.list_notes("p1")] == [note.id]
    assert len(svc.list_notes()) == 2
