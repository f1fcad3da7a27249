from datetime import date, timedelta

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from clinicflow import models  # noqa: F401
from clinicflow.database import get_session
from clinicflow.main import app
from clinicflow.utils import create_jwt_token


def next_open_day(offset: int = 1) -> str:
    d = date.today() + timedelta(days=offset)
    while d.weekday() == 6:
        d += timedelta(days=1)
    return d.isoformat()


def next_sunday() -> str:
    d = date.today() + timedelta(days=1)
    while d.weekday() != 6:
        d += timedelta(days=1)
    return d.isoformat()


DOCTOR = {"Authorization": "Bearer " + create_jwt_token({"sub": "doc-1", "role": "doctor", "name": "Dr. Atamosa"})}
GUARDIAN = {"Authorization": "Bearer " + create_jwt_token({
    "sub": "guardian-1", "role": "patient", "name": "Maria Dela Cruz",
    "email": "maria@example.com", "phone": "09171234567",
})}
OTHER_GUARDIAN = {"Authorization": "Bearer " + create_jwt_token({
    "sub": "guardian-2", "role": "patient", "name": "Lito Santos",
    "email": "lito@example.com", "phone": "09181234567",
})}


@pytest.fixture
def client():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def book(client, headers=GUARDIAN, **overrides):
    body = {
        "date": next_open_day(),
        "time": "09:00 AM",
        "purpose": "Vaccination",
        "patient_name": "Juan Dela Cruz",
        "patient_dob": "2022-01-15",
    }
    body.update(overrides)
    return client.post("/appointments/", json=body, headers=headers)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["clinic"]["slot_capacity"] == 5
    assert r.headers["X-Content-Type-Options"] == "nosniff"


def test_guardian_books_for_new_child(client):
    r = book(client)
    assert r.status_code == 201
    data = r.json()
    assert data["status"] == "pending"
    assert data["time"] == "09:00 AM"

    family = client.get("/patients/family", headers=GUARDIAN).json()
    assert [p["name"] for p in family] == ["Juan Dela Cruz"]
    assert family[0]["age"].endswith("old")

    upcoming = client.get("/appointments/family", headers=GUARDIAN).json()
    assert [a["id"] for a in upcoming] == [data["id"]]


def test_booking_requires_login(client):
    r = book(client, headers={})
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_sixth_booking_in_slot_is_rejected(client):
    day = next_open_day(2)
    for _ in range(5):
        assert book(client, date=day, time="02:00 PM").status_code == 201

    slots = client.get("/appointments/availability", params={"date": day}).json()
    two_pm = next(s for s in slots["slots"] if s["time"] == "02:00 PM")
    assert two_pm["is_full"] is True
    assert two_pm["remaining"] == 0

    r = book(client, date=day, time="02:00 PM")
    assert r.status_code == 409
    assert r.json()["error"].startswith("The 02:00 PM slot")


def test_sunday_availability_and_booking(client):
    sunday = next_sunday()
    r = client.get("/appointments/availability", params={"date": sunday})
    assert r.status_code == 200
    assert r.json() == {"date": sunday, "bookable": False, "reason": "Clinic is closed on Sundays.", "slots": []}

    r = book(client, date=sunday)
    assert r.status_code == 422
    assert r.json()["error"] == "Clinic is closed on Sundays."


def test_alert_announcement_blocks_day(client):
    day = next_open_day(3)
    r = client.post("/announcements/", json={"title": "Doctor on leave", "content": "Medical mission", "type": "alert", "date": day}, headers=DOCTOR)
    assert r.status_code == 201

    availability = client.get("/appointments/availability", params={"date": day}).json()
    assert availability["bookable"] is False
    assert availability["reason"] == "Notice: Medical mission"
    assert book(client, date=day).status_code == 422


def test_announcements_are_public_but_writes_need_doctor(client):
    assert client.post("/announcements/", json={"title": "x"}, headers=GUARDIAN).status_code == 403
    created = client.post("/announcements/", json={"title": "Deworming day", "type": "promo", "date": ""}, headers=DOCTOR).json()
    assert created["date"] is None

    listed = client.get("/announcements/").json()
    assert [a["id"] for a in listed] == [created["id"]]

    r = client.put(f"/announcements/{created['id']}", json={"title": "Deworming (moved)"}, headers=DOCTOR)
    assert r.json()["title"] == "Deworming (moved)"
    assert client.delete(f"/announcements/{created['id']}", headers=DOCTOR).status_code == 200
    assert client.delete(f"/announcements/{created['id']}", headers=DOCTOR).status_code == 404


def test_doctor_moves_appointment_through_lifecycle(client):
    appt_id = book(client).json()["id"]
    for status in ("confirmed", "in-room", "completed"):
        r = client.put(f"/appointments/{appt_id}/status", json={"status": status}, headers=DOCTOR)
        assert r.status_code == 200
        assert r.json()["status"] == status

    r = client.put(f"/appointments/{appt_id}/status", json={"status": "pending"}, headers=DOCTOR)
    assert r.status_code == 409

    history = client.get("/appointments/family", params={"tab": "upcoming", "hide_completed": True}, headers=GUARDIAN).json()
    assert history == []


def test_guardian_cannot_change_status_or_touch_other_family(client):
    appt_id = book(client).json()["id"]
    assert client.put(f"/appointments/{appt_id}/status", json={"status": "confirmed"}, headers=GUARDIAN).status_code == 403
    assert client.get(f"/appointments/{appt_id}", headers=OTHER_GUARDIAN).status_code == 404
    assert client.put(f"/appointments/{appt_id}/cancel", headers=OTHER_GUARDIAN).status_code == 404

    r = client.put(f"/appointments/{appt_id}/cancel", headers=GUARDIAN)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"


def test_queue_and_stats(client):
    day = next_open_day()
    appt_id = book(client, date=day, time="08:00 AM", purpose="Vaccine - MMR").json()["id"]
    client.put(f"/appointments/{appt_id}/status", json={"status": "confirmed"}, headers=DOCTOR)

    days = client.get("/queue/", params={"range": "custom", "date": day}, headers=DOCTOR).json()
    assert len(days) == 1
    slot = next(s for s in days[0]["slots"] if s["time"] == "08:00 AM")
    assert slot["count"] == 1
    assert slot["entries"][0]["patient_name"] == "Juan Dela Cruz"

    stats = client.get("/queue/stats", headers=DOCTOR).json()
    assert stats == {"queued": 1, "vaccines": 1, "pending": 0, "completed": 0}

    assert client.get("/queue/", headers=GUARDIAN).status_code == 403


def test_scribe_falls_back_without_ai_key(client):
    r = client.post("/scribe/soap", json={"transcript": "Ubo ug sip-on sulod sa tulo ka adlaw"}, headers=DOCTOR)
    assert r.status_code == 200
    assert r.json()["generated"] is False

    note = client.post("/scribe/notes", json={"subjective": "s", "objective": "o", "assessment": "a", "plan": "p"}, headers=DOCTOR)
    assert note.status_code == 201
    assert len(client.get("/scribe/notes", headers=DOCTOR).json()) == 1


def test_assistant_unavailable_without_ai_key(client):
    r = client.post("/assistant/chat", json={"history": [], "message": "Dose of paracetamol for 12kg?"}, headers=DOCTOR)
    assert r.status_code == 502
    assert r.json()["success"] is False


def test_messaging_between_guardian_and_doctor(client):
    book(client)
    child = client.get("/patients/family", headers=GUARDIAN).json()[0]
    thread = client.post("/messages/threads", json={"patient_id": child["id"]}, headers=GUARDIAN).json()

    r = client.post(f"/messages/threads/{thread['id']}", json={"text": "Is the clinic open Saturday?"}, headers=GUARDIAN)
    assert r.json()["role"] == "user"

    inbox = client.get("/messages/threads", headers=DOCTOR).json()
    assert inbox[0]["is_unread"] is True
    assert inbox[0]["patient_name"] == "Juan Dela Cruz"

    r = client.post(f"/messages/threads/{thread['id']}", json={"text": "Yes, 8 AM to 5 PM."}, headers=DOCTOR)
    assert r.json()["role"] == "model"
    assert client.get("/messages/threads", headers=DOCTOR).json()[0]["is_unread"] is False

    assert client.get(f"/messages/threads/{thread['id']}", headers=OTHER_GUARDIAN).status_code == 404


def test_guardian_cannot_book_for_another_familys_child(client):
    book(client)
    child = client.get("/patients/family", headers=GUARDIAN).json()[0]

    r = book(client, headers=OTHER_GUARDIAN, patient_id=child["id"], patient_name=None, patient_dob=None)
    assert r.status_code == 404
    assert r.json()["success"] is False
    assert len(client.get("/appointments/", headers=DOCTOR).json()) == 1

    r = book(client, patient_id=child["id"], patient_name=None, patient_dob=None, time="10:00 AM")
    assert r.status_code == 201


def test_guardian_booking_ignores_guardian_fields_in_body(client):
    r = book(client, guardian_name="Someone Else", email="else@example.com", contact_number="0999")
    assert r.status_code == 201
    assert [p["name"] for p in client.get("/patients/family", headers=GUARDIAN).json()] == ["Juan Dela Cruz"]


def test_doctor_registers_new_patient_under_given_guardian(client):
    r = book(client, headers=DOCTOR)
    assert r.status_code == 422
    assert client.get("/patients/", headers=DOCTOR).json() == []

    r = book(
        client,
        headers=DOCTOR,
        guardian_name="Maria Dela Cruz",
        contact_number="09171234567",
        email="maria@example.com",
    )
    assert r.status_code == 201

    family = client.get("/patients/family", headers=GUARDIAN).json()
    assert [p["id"] for p in family] == [r.json()["patient_id"]]
    assert family[0]["guardian_name"] == "Maria Dela Cruz"


def test_live_queue_streams_changes_and_reverts_bad_moves(client):
    day = next_open_day()
    with client.websocket_connect(f"/queue/live?date={day}", headers=DOCTOR) as ws:
        assert ws.receive_json() == {"type": "snapshot", "date": day, "appointments": []}

        appt_id = book(client, date=day).json()["id"]
        change = ws.receive_json()
        assert change["type"] == "change"
        assert change["event"] == "INSERT"
        assert change["appointment"]["status"] == "pending"

        ws.send_json({"id": appt_id, "status": "confirmed"})
        update = ws.receive_json()
        assert update["event"] == "UPDATE"
        assert update["appointment"]["status"] == "confirmed"

        ws.send_json({"id": appt_id, "status": "pending"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["appointment"]["status"] == "confirmed"

    assert client.get(f"/appointments/{appt_id}", headers=DOCTOR).json()["status"] == "confirmed"


def test_live_queue_requires_doctor(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/queue/live", headers=GUARDIAN) as ws:
            ws.receive_json()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/queue/live") as ws:
            ws.receive_json()


def test_live_thread_delivers_each_message_once(client):
    book(client)
    child = client.get("/patients/family", headers=GUARDIAN).json()[0]
    thread = client.post("/messages/threads", json={"patient_id": child["id"]}, headers=GUARDIAN).json()
    client.post(f"/messages/threads/{thread['id']}", json={"text": "Good morning po"}, headers=GUARDIAN)

    token = GUARDIAN["Authorization"].split(" ", 1)[1]
    with client.websocket_connect(f"/messages/threads/{thread['id']}/live?token={token}") as ws:
        snapshot = ws.receive_json()
        assert [m["text"] for m in snapshot["messages"]] == ["Good morning po"]

        client.post(f"/messages/threads/{thread['id']}", json={"text": "Hello! How is Juan?"}, headers=DOCTOR)
        reply = ws.receive_json()
        assert reply["type"] == "message"
        assert reply["message"]["role"] == "model"

        ws.send_json({"text": "Better now, thank you"})
        mine = ws.receive_json()
        assert mine["message"]["role"] == "user"
        assert mine["message"]["text"] == "Better now, thank you"

    texts = [m["text"] for m in client.get(f"/messages/threads/{thread['id']}", headers=GUARDIAN).json()]
    assert texts == ["Good morning po", "Hello! How is Juan?", "Better now, thank you"]

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/messages/threads/{thread['id']}/live", headers=OTHER_GUARDIAN) as ws:
            ws.receive_json()
