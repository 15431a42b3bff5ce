from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from curaclinic.core.security import create_jwt_token
from curaclinic.database import get_session
from curaclinic.db.models import Doctor
from curaclinic.main import app
from curaclinic.routers.deps import get_ai_provider, get_booking_registry, get_rate_limiter


class FakeAI:
    def complete(self, system_prompt, message):
        return f"echo: {message}"


def auth(user_id):
    return {"Authorization": f"Bearer {create_jwt_token({'sub': user_id})}"}


def next_weekday(weekday):
    """First day in the booking window falling on ``weekday`` (0 = Monday), not today."""
    day = date.today() + timedelta(days=1)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day


@pytest.fixture
def client(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_ai_provider] = lambda: FakeAI()
    get_booking_registry().clear()
    get_rate_limiter()._store.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
    get_booking_registry().clear()


@pytest.fixture
def doctor_id(engine):
    with Session(engine) as s:
        d = Doctor(name="Dr. D", specialization="Cardiologist", consultation_fee=100, rating=4.5,
                   experience_years=10, availability={"sunday": False})
        s.add(d)
        s.add(Doctor(name="Dr. Skin", specialization="Dermatologist", consultation_fee=80, rating=4.9,
                     experience_years=7, is_featured=True))
        s.commit()
        s.refresh(d)
        return d.id


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert client.get("/health", headers={"X-Request-ID": "abc123"}).headers["X-Request-ID"] == "abc123"


def test_protected_routes_require_token(client):
    for method, path in [("get", "/appointments/"), ("get", "/booking/flow"), ("get", "/profiles/me")]:
        r = getattr(client, method)(path)
        assert r.status_code == 401
        assert r.json() == {"success": False, "data": None, "error": "Invalid or expired token"}
    r = client.get("/appointments/", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_doctor_directory_is_public(client, doctor_id):
    r = client.get("/doctors/")
    assert [d["name"] for d in r.json()] == ["Dr. Skin", "Dr. D"]
    r = client.get("/doctors/search", params={"specialization": "Cardiologist", "max_fee": 150, "min_rating": 4, "min_experience": 5})
    assert [d["id"] for d in r.json()] == [doctor_id]
    assert client.get("/doctors/search", params={"specialization": "Wizard"}).status_code == 400
    assert client.get(f"/doctors/{doctor_id}").json()["availability"] == {"sunday": False}
    assert client.get("/doctors/9999").status_code == 404


def test_booking_wizard_over_http(client, doctor_id):
    alice = auth("alice")
    day = next_weekday(1)

    r = client.post("/booking/flow", json={}, headers=alice)
    assert r.status_code == 200
    assert r.json()["state"] == "criteria"

    r = client.post("/booking/flow/criteria", headers=alice, json={
        "specialization": "Cardiologist", "max_fee": 150, "min_rating": 4, "min_experience": 5,
    })
    body = r.json()
    assert body["state"] == "doctor"
    assert [d["id"] for d in body["results"]] == [doctor_id]

    r = client.post("/booking/flow/doctor", headers=alice, json={"doctor_id": doctor_id})
    assert r.json()["state"] == "date"

    r = client.post("/booking/flow/date", headers=alice, json={"appointment_date": day.isoformat()})
    body = r.json()
    assert body["state"] == "time"
    assert body["occupied_slots"] == []
    assert len(body["available_slots"]) == 13

    client.post("/booking/flow/time", headers=alice, json={"appointment_time": "09:00"})
    r = client.post("/booking/flow/confirm", headers=alice, json={"notes": "checkup"})
    body = r.json()
    assert body["state"] == "success"
    assert body["outcome"]["title"] == "Appointment Booked!"
    assert body["appointment"]["status"] == "scheduled"
    assert body["appointment"]["notes"] == "checkup"
    assert [a["id"] for a in body["appointments"]["upcoming"]] == [body["appointment"]["id"]]

    # a double-submitted confirm keeps the booking already made
    again = client.post("/booking/flow/confirm", headers=alice, json={"notes": "checkup"}).json()
    assert again["state"] == "success"
    assert again["appointment"]["id"] == body["appointment"]["id"]

    r = client.get("/appointments/", headers=alice)
    upcoming = r.json()["upcoming"]
    assert len(upcoming) == 1
    assert upcoming[0]["doctor"]["name"] == "Dr. D"

    r = client.get("/appointments/occupied", params={"doctor_id": doctor_id, "date": day.isoformat()}, headers=alice)
    assert r.json()["occupied_slots"] == ["09:00"]

    assert client.delete("/booking/flow", headers=alice).status_code == 200
    assert client.get("/booking/flow", headers=alice).status_code == 404


def test_preselected_doctor_flow_and_slot_race(client, doctor_id):
    alice, bob = auth("alice"), auth("bob")
    day = next_weekday(2)

    for who in (alice, bob):
        r = client.post("/booking/flow", json={"doctor_id": doctor_id}, headers=who)
        assert r.json()["state"] == "date"
        client.post("/booking/flow/date", headers=who, json={"appointment_date": day.isoformat()})
        client.post("/booking/flow/time", headers=who, json={"appointment_time": "10:00"})

    assert client.post("/booking/flow/confirm", headers=alice, json={}).json()["state"] == "success"

    body = client.post("/booking/flow/confirm", headers=bob, json={}).json()
    assert body["state"] == "time"
    assert body["outcome"]["kind"] == "slot_unavailable"
    assert body["outcome"]["title"] == "Slot Unavailable"
    assert "10:00" in body["occupied_slots"]
    assert body["selected_time"] is None

    # picking the taken slot again is refused by the flow
    r = client.post("/booking/flow/time", headers=bob, json={"appointment_time": "10:00"})
    assert r.status_code == 409


def test_booking_flow_rejects_days_outside_window(client, doctor_id):
    alice = auth("alice")
    client.post("/booking/flow", json={"doctor_id": doctor_id}, headers=alice)
    for day in (date.today() - timedelta(days=1), date.today() + timedelta(days=30)):
        r = client.post("/booking/flow/date", headers=alice, json={"appointment_date": day.isoformat()})
        assert r.status_code == 409
    assert client.get("/booking/flow", headers=alice).json()["state"] == "date"
    assert client.post("/booking/flow/back", headers=alice).status_code == 409

    # Dr. D marks Sundays unavailable, which only informs the patient
    r = client.post("/booking/flow/date", headers=alice, json={"appointment_date": next_weekday(6).isoformat()})
    assert r.status_code == 200
    assert r.json()["state"] == "time"


def test_open_flow_for_unknown_doctor(client):
    r = client.post("/booking/flow", json={"doctor_id": 4242}, headers=auth("alice"))
    assert r.status_code == 404


def test_direct_booking_conflict_and_cancel(client, doctor_id):
    day = next_weekday(3).isoformat()
    payload = {"doctor_id": doctor_id, "appointment_date": day, "appointment_time": "15:30"}

    r = client.post("/appointments/", json=payload, headers=auth("alice"))
    assert r.status_code == 201
    appt_id = r.json()["id"]

    r = client.post("/appointments/", json=payload, headers=auth("bob"))
    assert r.status_code == 409
    assert r.json()["success"] is False
    assert r.json()["data"] == {"occupied_slots": ["15:30"]}

    assert client.put(f"/appointments/{appt_id}/cancel", headers=auth("bob")).status_code == 404
    r = client.put(f"/appointments/{appt_id}/cancel", headers=auth("alice"))
    assert r.json()["status"] == "cancelled"

    assert client.post("/appointments/", json=payload, headers=auth("bob")).status_code == 201


def test_profiles_and_doctor_self_service(client):
    doc = auth("doc-1")
    assert client.get("/profiles/me", headers=doc).status_code == 404
    r = client.put("/profiles/me", headers=doc, json={"full_name": "Meredith Grey", "role": "doctor"})
    assert r.json()["role"] == "doctor"
    assert client.put("/profiles/me", headers=doc, json={"role": "admin"}).status_code == 400

    r = client.get("/doctors/me", headers=doc)
    assert r.json()["exists"] is False
    assert r.json()["draft"]["name"] == "Meredith Grey"

    r = client.put("/doctors/me", headers=doc, json={
        "name": "Dr. Meredith Grey", "specialization": "General Physician", "consultation_fee": 90,
        "availability": {"saturday": False},
    })
    assert r.status_code == 200
    assert r.json()["rating"] == 5.0
    assert client.get("/doctors/me", headers=doc).json()["doctor"]["name"] == "Dr. Meredith Grey"

    r = client.post("/doctors/", headers=auth("patient-1"), json={"name": "Dr. X", "specialization": "Neurologist"})
    assert r.status_code == 403


def test_assistant_messages_are_recorded(client):
    user = auth("alice")
    r = client.post("/assistant/messages", headers=user, json={"message": "Is coffee bad?"})
    messages = r.json()["messages"]
    assert [(m["state"], m["role"]) for m in messages] == [("stored", "user"), ("stored", "assistant")]
    assert messages[1]["content"] == "echo: Is coffee bad?"

    r = client.get("/assistant/messages", headers=user)
    assert [m["content"] for m in r.json()["messages"]] == ["Is coffee bad?", "echo: Is coffee bad?"]

    r = client.post("/assistant/chat", headers=user, json={"message": "   "})
    assert r.status_code == 400


def test_report_upload_and_analysis(client, tmp_path, monkeypatch):
    from curaclinic.core.config import settings
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    user = auth("alice")

    r = client.post(
        "/reports/",
        headers=user,
        data={"report_name": "Lipid panel"},
        files={"file": ("lipids.txt", b"LDL 160 mg/dL", "text/plain")},
    )
    assert r.status_code == 201
    report_id = r.json()["id"]

    r = client.post(f"/reports/{report_id}/analyze", headers=user)
    assert r.json()["analysis"] == "echo: Analyze this blood report:\n\nLDL 160 mg/dL"

    r = client.get(f"/reports/{report_id}/file", headers=user)
    assert r.content == b"LDL 160 mg/dL"

    assert client.get("/reports/", headers=auth("bob")).json() == []
    assert client.delete(f"/reports/{report_id}", headers=user).status_code == 200
    assert client.get("/reports/", headers=user).json() == []


def test_invalid_criteria_use_error_envelope(client, doctor_id):
    alice = auth("alice")
    client.post("/booking/flow", json={}, headers=alice)
    r = client.post("/booking/flow/criteria", headers=alice, json={"max_fee": 5000})
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert body["error"].startswith("max_fee:")
    assert client.get("/booking/flow", headers=alice).json()["state"] == "criteria"
