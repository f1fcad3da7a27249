from datetime import datetime, timezone

import pytest

from clinicflow.application.ports.messaging_repo import MessageDto, ThreadDto, ThreadSummaryDto
from clinicflow.application.services.assistant_service import AssistantService
from clinicflow.application.services.messaging_service import MessageStream, MessagingService, is_unread
from clinicflow.exceptions import AIProviderError, BookingValidationError, NotFoundError


def msg(id, role="user", text="hi"):
    return MessageDto(id, "t1", role, text, datetime.now(timezone.utc))


class FakeMessagingRepo:
    def __init__(self):
        self.threads = {}
        self.messages = []
        self.touched = []

    def get_thread(self, thread_id):
        return self.threads.get(thread_id)

    def latest_thread_for_patient(self, patient_id):
        return next((t for t in self.threads.values() if t.patient_id == patient_id), None)

    def create_thread(self, patient_id):
        t = ThreadDto(f"t{len(self.threads) + 1}", patient_id, "active", datetime.now(timezone.utc))
        self.threads[t.id] = t
        return t

    def touch_thread(self, thread_id):
        self.touched.append(thread_id)

    def add_message(self, thread_id, role, text):
        m = MessageDto(f"m{len(self.messages) + 1}", thread_id, role, text, datetime.now(timezone.utc))
        self.messages.append(m)
        return m

    def list_messages(self, thread_id):
        return [m for m in self.messages if m.thread_id == thread_id]

    def list_thread_summaries(self, limit):
        out = []
        for t in self.threads.values():
            msgs = self.list_messages(t.id)
            out.append(ThreadSummaryDto(t, f"Patient {t.patient_id}", msgs[-1] if msgs else None))
        return out[:limit]


def test_stream_drops_duplicates():
    stream = MessageStream([msg("m1"), msg("m2")])
    assert stream.merge(msg("m2")) is False
    assert stream.merge(msg("m3")) is True
    assert [m.id for m in stream.messages] == ["m1", "m2", "m3"]


def test_open_thread_reuses_existing():
    svc = MessagingService(repo=FakeMessagingRepo())
    t1 = svc.open_thread("p1")
    assert svc.open_thread("p1").id == t1.id
    assert svc.open_thread("p2").id != t1.id


def test_post_touches_thread_and_validates():
    repo = FakeMessagingRepo()
    svc = MessagingService(repo=repo)
    t = svc.open_thread("p1")
    m = svc.post(t.id, "user", "  Good morning doc ")
    assert m.text == "Good morning doc"
    assert repo.touched == [t.id]
    with pytest.raises(BookingValidationError):
        svc.post(t.id, "doctor", "hi")
    with pytest.raises(BookingValidationError):
        svc.post(t.id, "user", "  ")
    with pytest.raises(NotFoundError):
        svc.post("missing", "user", "hi")


def test_inbox_unread_and_search():
    svc = MessagingService(repo=FakeMessagingRepo())
    t1 = svc.open_thread("p1")
    t2 = svc.open_thread("p2")
    svc.post(t1.id, "user", "Question about vaccine")
    svc.post(t2.id, "user", "Hello")
    svc.post(t2.id, "model", "Hi, how can we help?")

    summaries = {s.thread.id: s for s in svc.inbox()}
    assert is_unread(summaries[t1.id]) is True
    assert is_unread(summaries[t2.id]) is False
    assert [s.thread.id for s in svc.inbox(search="p2")] == [t2.id]


class FakeChatAI:
    def __init__(self):
        self.calls = []

    def chat(self, history, message, system_instruction=None):
        self.calls.append((history, message, system_instruction))
        return "Amoxicillin is typically dosed by weight."


def test_assistant_drops_greeting_from_history():
    ai = FakeChatAI()
    svc = AssistantService(ai_provider=ai)
    history = [("model", svc.greeting()), ("user", "Hi"), ("model", "Hello doctor")]
    assert svc.reply(history, "Amoxicillin dose?").startswith("Amoxicillin")
    sent_history, message, system = ai.calls[0]
    assert sent_history == [("user", "Hi"), ("model", "Hello doctor")]
    assert message == "Amoxicillin dose?"
    assert "Dr. Atamosa" in system


def test_assistant_errors():
    with pytest.raises(AIProviderError):
        AssistantService(ai_provider=None).reply([], "hello")
    with pytest.raises(BookingValidationError):
        AssistantService(ai_provider=FakeChatAI()).reply([], " ")
    with pytest.raises(BookingValidationError):
        AssistantService(ai_provider=FakeChatAI()).reply([("system", "x")], "hello")
