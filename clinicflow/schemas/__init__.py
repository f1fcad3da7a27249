# Schemas package
from .appointments import (
    AppointmentCreate,
    AppointmentStatusUpdate,
    AppointmentResponse,
    SlotResponse,
    AvailabilityResponse,
)
from .announcements import AnnouncementCreate, AnnouncementUpdate, AnnouncementResponse
from .patients import PatientCreate, PatientResponse
from .queue import (
    QueueEntryResponse,
    QueueSlotResponse,
    QueueDayResponse,
    QueueAnalyticsResponse,
    DashboardStatsResponse,
)
from .scribe import (
    TranscriptRequest,
    SoapDraftResponse,
    SoapNoteCreate,
    SoapNoteResponse,
    AssistantChatRequest,
    AssistantChatResponse,
)
from .messages import ThreadOpen, MessageCreate, ThreadResponse, MessageResponse, ThreadSummaryResponse
