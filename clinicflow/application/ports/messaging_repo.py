from dataclasses import dataclass
from typing import List, Optional, Protocol
from datetime import datetime


@dataclass
class ThreadDto:
    id: str
    patient_id: str
    status: str
    updated_at: datetime


@dataclass
class MessageDto:
    id: str
    thread_id: str
    role: str
    text: str
    created_at: datetime


@dataclass
class ThreadSummaryDto:
    thread: ThreadDto
    patient_name: Optional[str]
    last_message: Optional[MessageDto]


class MessagingRepository(Protocol):
    def get_thread(self, thread_id: str) -> Optional[ThreadDto]:
        ...

    def latest_thread_for_patient(self, patient_id: str) -> Optional[ThreadDto]:
        ...

    def create_thread(self, patient_id: str) -> ThreadDto:
        ...

    def touch_thread(self, thread_id: str) -> None:
        ...

    def add_message(self, thread_id: str, role: str, text: str) -> MessageDto:
        ...

    def list_messages(self, thread_id: str) -> List[MessageDto]:
        ...

    def list_thread_summaries(self, limit: int) -> List[ThreadSummaryDto]:
        ...
