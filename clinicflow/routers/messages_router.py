from dataclasses import fields
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, WebSocket
from fastapi.concurrency import run_in_threadpool

from ..application.ports.change_feed import INSERT
from ..application.ports.messaging_repo import MessageDto
from ..application.services.messaging_service import MessageStream, MessagingService, is_unread
from ..application.services.patients_service import PatientsService
from ..deps import (
    CurrentUser,
    change_feed,
    get_messaging_service,
    get_patients_service,
    require_doctor,
    require_member,
    websocket_user,
)
from ..exceptions import ClinicError
from ..schemas.messages import MessageCreate, MessageResponse, ThreadOpen, ThreadResponse, ThreadSummaryResponse
from ..streaming import FeedSubscription, pump, reject
from ..utils import Role

router = APIRouter(prefix="/messages", tags=["Messages"])

_MESSAGE_FIELDS = {f.name for f in fields(MessageDto)}


def _check_thread_access(thread_patient_id: str, user: CurrentUser, patients: PatientsService) -> None:
    if user.role == Role.DOCTOR:
        return
    family_ids = {c.id for c in patients.family(user.email, user.contact_number)}
    if thread_patient_id not in family_ids:
        raise HTTPException(status_code=404, detail="Thread not found")


def _author_role(user: CurrentUser) -> str:
    # Doctor replies are stored with the "model" role, patient messages as "user"
    return "model" if user.role == Role.DOCTOR else "user"


@router.get("/threads", response_model=List[ThreadSummaryResponse])
def inbox(
    search: Optional[str] = None,
    limit: int = 50,
    current_user: CurrentUser = Depends(require_doctor),
    svc: MessagingService = Depends(get_messaging_service),
):
    return [
        ThreadSummaryResponse(
            thread=ThreadResponse.model_validate(s.thread),
            patient_name=s.patient_name,
            last_message=MessageResponse.model_validate(s.last_message) if s.last_message else None,
            is_unread=is_unread(s),
        )
        for s in svc.inbox(search=search, limit=limit)
    ]


@router.post("/threads", response_model=ThreadResponse)
def open_thread(
    body: ThreadOpen,
    current_user: CurrentUser = Depends(require_member),
    svc: MessagingService = Depends(get_messaging_service),
    patients: PatientsService = Depends(get_patients_service),
):
    patient = patients.get(body.patient_id)
    _check_thread_access(patient.id, current_user, patients)
    return ThreadResponse.model_validate(svc.open_thread(patient.id))


@router.get("/threads/{thread_id}", response_model=List[MessageResponse])
def list_messages(
    thread_id: str,
    current_user: CurrentUser = Depends(require_member),
    svc: MessagingService = Depends(get_messaging_service),
    patients: PatientsService = Depends(get_patients_service),
):
    thread = svc.get_thread(thread_id)
    _check_thread_access(thread.patient_id, current_user, patients)
    return [MessageResponse.model_validate(m) for m in svc.messages(thread_id)]


@router.post("/threads/{thread_id}", response_model=MessageResponse, status_code=201)
def post_message(
    thread_id: str,
    body: MessageCreate,
    current_user: CurrentUser = Depends(require_member),
    svc: MessagingService = Depends(get_messaging_service),
    patients: PatientsService = Depends(get_patients_service),
):
    thread = svc.get_thread(thread_id)
    _check_thread_access(thread.patient_id, current_user, patients)
    return MessageResponse.model_validate(svc.post(thread_id, _author_role(current_user), body.text))


@router.websocket("/threads/{thread_id}/live")
async def thread_live(
    websocket: WebSocket,
    thread_id: str,
    token: Optional[str] = None,
    svc: MessagingService = Depends(get_messaging_service),
    patients: PatientsService = Depends(get_patients_service),
):
    """Live conversation: a snapshot of the thread, then each new message once.

    Clients may send {"text": ...} to post as themselves.
    """
    user = websocket_user(websocket, token)
    if user is None or user.role not in (Role.DOCTOR, Role.PATIENT):
        await reject(websocket, "Sign in to open this conversation")
        return
    try:
        thread = await run_in_threadpool(svc.get_thread, thread_id)
        await run_in_threadpool(_check_thread_access, thread.patient_id, user, patients)
    except (HTTPException, ClinicError):
        await reject(websocket, "Thread not found")
        return

    subscription = FeedSubscription(change_feed, "messages", {"thread_id": thread_id})
    try:
        stream = MessageStream(await run_in_threadpool(svc.messages, thread_id))
    except ClinicError as e:
        subscription.close()
        await reject(websocket, e.message)
        return
    snapshot = {
        "type": "snapshot",
        "thread_id": thread_id,
        "messages": [MessageResponse.model_validate(m).model_dump(mode="json") for m in stream.messages],
    }

    async def on_message(event):
        if event.event != INSERT:
            return
        message = MessageDto(**{k: v for k, v in event.row.items() if k in _MESSAGE_FIELDS})
        if stream.merge(message):
            await websocket.send_json({"type": "message", "message": MessageResponse.model_validate(message).model_dump(mode="json")})

    async def on_command(data):
        text = data.get("text") if isinstance(data, dict) else None
        try:
            await run_in_threadpool(svc.post, thread_id, _author_role(user), text or "")
        except ClinicError as e:
            await websocket.send_json({"type": "error", "error": e.message})

    await pump(websocket, subscription, snapshot, on_message, on_command)
