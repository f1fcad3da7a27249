from datetime import datetime, timezone
from typing import List, Optional
from sqlmodel import select

from .base import SqlRepository
from .....models import Message, Patient, Thread
from .....application.ports.change_feed import INSERT, UPDATE
from .....application.ports.messaging_repo import (
    MessagingRepository,
    MessageDto,
    ThreadDto,
    ThreadSummaryDto,
)
from .....exceptions import NotFoundError


class SqlMessagingRepository(SqlRepository, MessagingRepository):
    table = "messages"

    def _thread_to_dto(self, t: Thread) -> ThreadDto:
        return ThreadDto(id=t.id, patient_id=t.patient_id, status=t.status, updated_at=t.updated_at)

    def _message_to_dto(self, m: Message) -> MessageDto:
        return MessageDto(id=m.id, thread_id=m.thread_id, role=m.role, text=m.text, created_at=m.created_at)

    def get_thread(self, thread_id: str) -> Optional[ThreadDto]:
        t = self._query(select(Thread).where(Thread.id == thread_id)).first()
        return self._thread_to_dto(t) if t else None

    def latest_thread_for_patient(self, patient_id: str) -> Optional[ThreadDto]:
        t = self._query(
            select(Thread)
            .where(Thread.patient_id == patient_id)
            .order_by(Thread.updated_at.desc())
        ).first()
        return self._thread_to_dto(t) if t else None

    def create_thread(self, patient_id: str) -> ThreadDto:
        thread = Thread(patient_id=patient_id, status="active")
        return self._thread_to_dto(self._save(thread, INSERT, table="threads"))

    def touch_thread(self, thread_id: str) -> None:
        t = self._query(select(Thread).where(Thread.id == thread_id)).first()
        if not t:
            raise NotFoundError("Thread not found")
        t.updated_at = datetime.now(timezone.utc)
        self._save(t, UPDATE, table="threads")

    def add_message(self, thread_id: str, role: str, text: str) -> MessageDto:
        message = Message(thread_id=thread_id, role=role, text=text)
        return self._message_to_dto(self._save(message, INSERT))

    def list_messages(self, thread_id: str) -> List[MessageDto]:
        rows = self._query(
            select(Message)
            .where(Message.thread_id == thread_id)
            .order_by(Message.created_at)
        ).all()
        return [self._message_to_dto(m) for m in rows]

    def list_thread_summaries(self, limit: int) -> List[ThreadSummaryDto]:
        rows = self._query(
            select(Thread, Patient)
            .join(Patient, Patient.id == Thread.patient_id, isouter=True)
            .order_by(Thread.updated_at.desc())
            .limit(limit)
        ).all()
        summaries = []
        for thread, patient in rows:
            last = self._query(
                select(Message)
                .where(Message.thread_id == thread.id)
                .order_by(Message.created_at.desc())
            ).first()
            summaries.append(ThreadSummaryDto(
                thread=self._thread_to_dto(thread),
                patient_name=patient.name if patient else None,
                last_message=self._message_to_dto(last) if last else None,
            ))
        return summaries
