from typing import List
from fastapi import APIRouter, Depends

from ..application.services.announcements_service import AnnouncementsService
from ..deps import CurrentUser, get_announcements_service, require_doctor
from ..schemas.announcements import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate

router = APIRouter(prefix="/announcements", tags=["Announcements"])


@router.get("/", response_model=List[AnnouncementResponse])
def list_announcements(svc: AnnouncementsService = Depends(get_announcements_service)):
    return [AnnouncementResponse.model_validate(a) for a in svc.list_all()]


@router.post("/", response_model=AnnouncementResponse, status_code=201)
def create_announcement(
    body: AnnouncementCreate,
    current_user: CurrentUser = Depends(require_doctor),
    svc: AnnouncementsService = Depends(get_announcements_service),
):
    return AnnouncementResponse.model_validate(
        svc.create(title=body.title, content=body.content, type=body.type, date=body.date)
    )


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
def update_announcement(
    announcement_id: str,
    body: AnnouncementUpdate,
    current_user: CurrentUser = Depends(require_doctor),
    svc: AnnouncementsService = Depends(get_announcements_service),
):
    # An empty string clears the date
    clear = body.clear_date or (body.date is not None and not body.date.strip())
    updated = svc.update(
        announcement_id,
        title=body.title,
        content=body.content,
        type=body.type,
        date=None if clear else body.date,
        clear_date=clear,
    )
    return AnnouncementResponse.model_validate(updated)


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: str,
    current_user: CurrentUser = Depends(require_doctor),
    svc: AnnouncementsService = Depends(get_announcements_service),
):
    svc.delete(announcement_id)
    return {"success": True, "message": "Announcement deleted"}
