from typing import List, Optional
from fastapi import APIRouter, Depends, Query, WebSocket
from fastapi.concurrency import run_in_threadpool

from ..application.queue_board import QueueBoard
from ..application.services.appointments_service import AppointmentsService
from ..application.services.availability import parse_iso_date
from ..application.services.queue_service import QueueService
from ..deps import CurrentUser, change_feed, get_appointments_service, get_queue_service, require_doctor, websocket_user
from ..exceptions import ClinicError
from ..schemas.appointments import AppointmentResponse
from ..schemas.queue import DashboardStatsResponse, QueueAnalyticsResponse, QueueDayResponse
from ..streaming import FeedSubscription, pump, reject
from ..utils import Role

router = APIRouter(prefix="/queue", tags=["Queue"])


@router.get("/", response_model=List[QueueDayResponse])
def get_queue(
    date_filter: str = Query("today", alias="range", pattern="^(today|tomorrow|week|custom)$"),
    date: Optional[str] = None,
    status: str = Query("all", pattern="^(all|completed|active|pending)$"),
    search: Optional[str] = None,
    current_user: CurrentUser = Depends(require_doctor),
    queue: QueueService = Depends(get_queue_service),
):
    days = queue.timeline(date_filter=date_filter, custom_date=date, status_filter=status, search=search)
    return [QueueDayResponse.model_validate(d) for d in days]


@router.get("/analytics", response_model=QueueAnalyticsResponse)
def get_queue_analytics(
    date_filter: str = Query("today", alias="range", pattern="^(today|tomorrow|week|custom)$"),
    date: Optional[str] = None,
    current_user: CurrentUser = Depends(require_doctor),
    queue: QueueService = Depends(get_queue_service),
):
    return QueueAnalyticsResponse.model_validate(queue.analytics(date_filter=date_filter, custom_date=date))


@router.get("/stats", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    current_user: CurrentUser = Depends(require_doctor),
    queue: QueueService = Depends(get_queue_service),
):
    return DashboardStatsResponse.model_validate(queue.dashboard_stats())


def _dump(appt) -> Optional[dict]:
    return AppointmentResponse.model_validate(appt).model_dump(mode="json") if appt else None


@router.websocket("/live")
async def queue_live(
    websocket: WebSocket,
    date: Optional[str] = None,
    token: Optional[str] = None,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    """Live queue for one day.

    Sends a snapshot, then every appointment change for that day. Clients may
    send {"id": ..., "status": ...}; the board applies it immediately and
    reverts it when the write is rejected.
    """
    user = websocket_user(websocket, token)
    if user is None or user.role != Role.DOCTOR:
        await reject(websocket, "Doctor access required")
        return
    try:
        day = parse_iso_date(date).isoformat() if date else appt_service.today().isoformat()
    except ClinicError as e:
        await reject(websocket, e.message)
        return

    # Subscribe before reading so no change slips in between; replays merge by id
    subscription = FeedSubscription(change_feed, "appointments", {"date": day})
    try:
        rows = await run_in_threadpool(appt_service.repo.list_between, day, day)
    except ClinicError as e:
        subscription.close()
        await reject(websocket, e.message)
        return
    board = QueueBoard(
        rows,
        persist_status=lambda appointment_id, new_status: appt_service.update_status(appointment_id, new_status, actor=user.subject),
    )
    snapshot = {"type": "snapshot", "date": day, "appointments": [_dump(a) for a in board.appointments]}

    async def on_change(event):
        board.apply_change(event)
        row_id = event.row.get("id")
        await websocket.send_json({"type": "change", "event": event.event, "id": row_id, "appointment": _dump(board.get(row_id))})

    async def on_command(data):
        if not isinstance(data, dict) or not data.get("id") or not data.get("status"):
            await websocket.send_json({"type": "error", "error": "Expected {\"id\": ..., \"status\": ...}"})
            return
        try:
            await run_in_threadpool(board.apply_status, data["id"], data["status"])
        except ClinicError as e:
            await websocket.send_json({"type": "error", "id": data["id"], "error": e.message, "appointment": _dump(board.get(data["id"]))})

    await pump(websocket, subscription, snapshot, on_change, on_command)
