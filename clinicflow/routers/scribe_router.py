from typing import List, Optional
from fastapi import APIRouter, Depends

from ..application.services.assistant_service import AssistantService
from ..application.services.scribe_service import ScribeService, SoapDraft
from ..deps import CurrentUser, get_assistant_service, get_scribe_service, require_doctor
from ..schemas.scribe import (
    AssistantChatRequest,
    AssistantChatResponse,
    SoapDraftResponse,
    SoapNoteCreate,
    SoapNoteResponse,
    TranscriptRequest,
)

router = APIRouter(tags=["Scribe"])


@router.post("/scribe/soap", response_model=SoapDraftResponse)
def generate_soap(
    body: TranscriptRequest,
    current_user: CurrentUser = Depends(require_doctor),
    scribe: ScribeService = Depends(get_scribe_service),
):
    return SoapDraftResponse.model_validate(scribe.generate_soap_note(body.transcript))


@router.post("/scribe/notes", response_model=SoapNoteResponse, status_code=201)
def save_soap_note(
    body: SoapNoteCreate,
    current_user: CurrentUser = Depends(require_doctor),
    scribe: ScribeService = Depends(get_scribe_service),
):
    draft = SoapDraft(
        subjective=body.subjective,
        objective=body.objective,
        assessment=body.assessment,
        plan=body.plan,
    )
    note = scribe.save_note(draft, patient_id=body.patient_id, diagnosis=body.diagnosis, doctor_name=current_user.name)
    return SoapNoteResponse.model_validate(note)


@router.get("/scribe/notes", response_model=List[SoapNoteResponse])
def list_soap_notes(
    patient_id: Optional[str] = None,
    current_user: CurrentUser = Depends(require_doctor),
    scribe: ScribeService = Depends(get_scribe_service),
):
    return [SoapNoteResponse.model_validate(n) for n in scribe.list_notes(patient_id)]


@router.post("/assistant/chat", response_model=AssistantChatResponse)
def assistant_chat(
    body: AssistantChatRequest,
    current_user: CurrentUser = Depends(require_doctor),
    assistant: AssistantService = Depends(get_assistant_service),
):
    return AssistantChatResponse(reply=assistant.reply(list(body.history), body.message))


@router.get("/assistant/greeting", response_model=AssistantChatResponse)
def assistant_greeting(
    current_user: CurrentUser = Depends(require_doctor),
    assistant: AssistantService = Depends(get_assistant_service),
):
    return AssistantChatResponse(reply=assistant.greeting())
