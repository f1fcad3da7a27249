from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends, HTTPException, WebSocket
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .config import settings
from .database import get_session
from .utils import Role, decode_jwt_token
from .application.ports.ai_provider import AIProvider
from .application.services.appointments_service import AppointmentsService
from .application.services.announcements_service import AnnouncementsService
from .application.services.assistant_service import AssistantService
from .application.services.messaging_service import MessagingService
from .application.services.patients_service import PatientsService
from .application.services.queue_service import QueueService
from .application.services.scribe_service import ScribeService
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.locking.memory_slot_lock import InMemorySlotLock
from .infrastructure.realtime.memory_change_feed import InMemoryChangeFeed
from .infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from .infrastructure.persistence.sqlalchemy.repositories.announcement_repository_sql import SqlAnnouncementRepository
from .infrastructure.persistence.sqlalchemy.repositories.messaging_repository_sql import SqlMessagingRepository
from .infrastructure.persistence.sqlalchemy.repositories.patient_repository_sql import SqlPatientRepository
from .infrastructure.persistence.sqlalchemy.repositories.soap_note_repository_sql import SqlSoapNoteRepository

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)

# Process-wide collaborators
change_feed = InMemoryChangeFeed()
slot_lock = InMemorySlotLock()
audit_logger = StdAuditLogger()


@dataclass
class CurrentUser:
    role: Role
    subject: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme)) -> CurrentUser:
    if not credentials or not credentials.credentials:
        return CurrentUser(role=Role.PUBLIC)
    return user_from_token(credentials.credentials)


def websocket_user(websocket: WebSocket, token: Optional[str] = None) -> Optional[CurrentUser]:
    """Resolve the caller of a socket from ?token= or a Bearer header; None if rejected."""
    if not token:
        header = websocket.headers.get("authorization", "")
        scheme, _, value = header.partition(" ")
        token = value if scheme.lower() == "bearer" else None
    if not token:
        return None
    try:
        return user_from_token(token)
    except HTTPException:
        return None


def user_from_token(token: str) -> CurrentUser:
    payload = decode_jwt_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    try:
        role = Role(payload.get("role", Role.PUBLIC.value))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: unknown role")
    return CurrentUser(
        role=role,
        subject=payload.get("sub"),
        name=payload.get("name"),
        email=payload.get("email"),
        contact_number=payload.get("phone"),
    )


def require_role(*roles: Role):
    def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            if user.role == Role.PUBLIC:
                raise HTTPException(status_code=401, detail="Authentication required")
            raise HTTPException(status_code=403, detail="Not allowed for this role")
        return user
    return checker


require_doctor = require_role(Role.DOCTOR)
require_member = require_role(Role.DOCTOR, Role.PATIENT)


@lru_cache()
def get_ai_provider() -> Optional[AIProvider]:
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not configured")
        return None
    from .infrastructure.ai.gemini_provider import GeminiProvider
    return GeminiProvider()


def get_appointments_service(session: Session = Depends(get_session)) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session, change_feed),
        patient_repo=SqlPatientRepository(session, change_feed),
        announcement_repo=SqlAnnouncementRepository(session, change_feed),
        slot_lock=slot_lock if settings.SERIALIZE_SLOT_BOOKINGS else None,
        audit=audit_logger,
        capacity=settings.SLOT_CAPACITY,
        time_slots=tuple(settings.TIME_SLOTS),
        closed_weekdays=tuple(settings.CLOSED_WEEKDAYS),
        closure_keywords=tuple(settings.CLOSURE_KEYWORDS),
        doctor_name=settings.DEFAULT_DOCTOR_NAME,
    )


def get_queue_service(session: Session = Depends(get_session)) -> QueueService:
    return QueueService(
        repo=SqlAppointmentsRepository(session, change_feed),
        announcement_repo=SqlAnnouncementRepository(session, change_feed),
        patient_repo=SqlPatientRepository(session, change_feed),
        capacity=settings.SLOT_CAPACITY,
        time_slots=tuple(settings.TIME_SLOTS),
    )


def get_patients_service(session: Session = Depends(get_session)) -> PatientsService:
    return PatientsService(repo=SqlPatientRepository(session, change_feed))


def get_announcements_service(session: Session = Depends(get_session)) -> AnnouncementsService:
    return AnnouncementsService(repo=SqlAnnouncementRepository(session, change_feed))


def get_scribe_service(session: Session = Depends(get_session), ai: Optional[AIProvider] = Depends(get_ai_provider)) -> ScribeService:
    return ScribeService(
        ai_provider=ai,
        repo=SqlSoapNoteRepository(session, change_feed),
        doctor_name=settings.DEFAULT_DOCTOR_NAME,
        clinic_location=settings.CLINIC_LOCATION,
    )


def get_messaging_service(session: Session = Depends(get_session)) -> MessagingService:
    return MessagingService(repo=SqlMessagingRepository(session, change_feed))


def get_assistant_service(ai: Optional[AIProvider] = Depends(get_ai_provider)) -> AssistantService:
    return AssistantService(ai_provider=ai, doctor_name=settings.DEFAULT_DOCTOR_NAME)
