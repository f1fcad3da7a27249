from dataclasses import dataclass
from typing import Iterable, List, Optional
import logging

from ..ports.messaging_repo import MessagingRepository, MessageDto, ThreadDto, ThreadSummaryDto
from ...exceptions import BookingValidationError, NotFoundError

logger = logging.getLogger(__name__)

MESSAGE_ROLES = ("user", "model", "system")


def is_unread(summary: ThreadSummaryDto) -> bool:
    # A thread needs attention when the patient spoke last
    return summary.last_message is not None and summary.last_message.role == "user"


class MessageStream:
    """Ordered message list that ignores rows it has already seen."""

    def __init__(self, messages: Iterable[MessageDto] = ()):
        self._messages: List[MessageDto] = []
        self._seen = set()
        for m in messages:
            self.merge(m)

    @property
    def messages(self) -> List[MessageDto]:
        return list(self._messages)

    def merge(self, message: MessageDto) -> bool:
        if message.id in self._seen:
            return False
        self._seen.add(message.id)
        self._messages.append(message)
        return True


@dataclass
class MessagingService:
    repo: MessagingRepository

    def open_thread(self, patient_id: str) -> ThreadDto:
        thread = self.repo.latest_thread_for_patient(patient_id)
        if thread:
            return thread
        thread = self.repo.create_thread(patient_id)
        logger.info(f"Opened thread {thread.id} for patient {patient_id}")
        return thread

    def get_thread(self, thread_id: str) -> ThreadDto:
        thread = self.repo.get_thread(thread_id)
        if not thread:
            raise NotFoundError("Thread not found")
        return thread

    def post(self, thread_id: str, role: str, text: str) -> MessageDto:
        if role not in MESSAGE_ROLES:
            raise BookingValidationError(f"Invalid message role. Must be one of: {list(MESSAGE_ROLES)}")
        if not (text or "").strip():
            raise BookingValidationError("Message text is required")
        self.get_thread(thread_id)
        message = self.repo.add_message(thread_id, role, text.strip())
        self.repo.touch_thread(thread_id)
        return message

    def messages(self, thread_id: str) -> List[MessageDto]:
        self.get_thread(thread_id)
        return self.repo.list_messages(thread_id)

    def inbox(self, search: Optional[str] = None, limit: int = 50) -> List[ThreadSummaryDto]:
        summaries = self.repo.list_thread_summaries(limit)
        needle = (search or "").strip().lower()
        if needle:
            summaries = [s for s in summaries if needle in (s.patient_name or "").lower()]
        return summaries
