from datetime import date

import pytest
from sqlmodel import Session, SQLModel, create_engine

from curaclinic.application.catalog import Specialization
from curaclinic.application.ports.appointments_repo import SlotConflictError
from curaclinic.application.ports.doctors_repo import DirectoryFilters, DoctorProfileData
from curaclinic.application.services.booking_flow import BookingCriteria, BookingFlow, FlowState, OutcomeKind
from curaclinic.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentLedger
from curaclinic.infrastructure.persistence.sqlalchemy.repositories.chat_repository_sql import SqlChatRepository
from curaclinic.infrastructure.persistence.sqlalchemy.repositories.doctors_repository_sql import SqlDoctorDirectory
from curaclinic.infrastructure.persistence.sqlalchemy.repositories.profile_repository_sql import SqlProfileRepository
from curaclinic.infrastructure.persistence.sqlalchemy.repositories.report_repository_sql import SqlReportRepository

DAY = date(2026, 3, 10)


@pytest.fixture
def directory(session):
    return SqlDoctorDirectory(session)


@pytest.fixture
def ledger(session):
    return SqlAppointmentLedger(session)


def add_doctor(directory, name, spec="Cardiologist", fee=100.0, rating=4.5, exp=10, **kwargs):
    return directory.create(kwargs.pop("user_id", None), DoctorProfileData(
        name=name, specialization=spec, consultation_fee=fee, rating=rating, experience_years=exp, **kwargs
    ))


def test_search_composes_filters_and_orders_by_rating(directory):
    add_doctor(directory, "Dr. D", fee=100, rating=4.5, exp=10)
    add_doctor(directory, "Dr. Top", fee=140, rating=4.9, exp=6)
    add_doctor(directory, "Dr. Costly", fee=300, rating=5.0, exp=20)
    add_doctor(directory, "Dr. New", fee=90, rating=4.2, exp=2)
    add_doctor(directory, "Dr. Skin", spec="Dermatologist", fee=80, rating=4.8, exp=9)

    found = directory.search(DirectoryFilters(Specialization.CARDIOLOGIST, max_fee=150, min_rating=4, min_experience=5))
    assert [d.name for d in found] == ["Dr. Top", "Dr. D"]

    everyone = directory.search(DirectoryFilters())
    assert len(everyone) == 5
    assert [d.rating for d in everyone] == sorted((d.rating for d in everyone), reverse=True)


def test_doctor_availability_round_trips(directory):
    d = add_doctor(directory, "Dr. D", availability={"monday": True, "sunday": False})
    assert directory.get(d.id).availability == {"monday": True, "sunday": False}


def test_featured_and_list_all(directory):
    add_doctor(directory, "Dr. Plain")
    add_doctor(directory, "Dr. Star", is_featured=True)
    assert [d.name for d in directory.list_all()] == ["Dr. Star", "Dr. Plain"]
    assert [d.name for d in directory.featured(4)] == ["Dr. Star"]


def test_own_profile_lookup(directory):
    d = add_doctor(directory, "Dr. Owner", user_id="doc-1")
    add_doctor(directory, "Dr. Clinic")
    add_doctor(directory, "Dr. Clinic Two")
    assert directory.get_for_user("doc-1").id == d.id
    assert directory.get_for_user("doc-2") is None

    updated = directory.update(d.id, DoctorProfileData(name="Dr. Owner", specialization="Neurologist", consultation_fee=50))
    assert updated.specialization == "Neurologist"
    assert updated.rating == 4.5


def test_active_slot_is_unique(directory, ledger):
    d = add_doctor(directory, "Dr. D")
    ledger.insert("p1", d.id, DAY, "09:00", None)
    with pytest.raises(SlotConflictError):
        ledger.insert("p2", d.id, DAY, "09:00", None)
    # same time with another doctor or on another day is fine
    other = add_doctor(directory, "Dr. E")
    ledger.insert("p2", other.id, DAY, "09:00", None)
    ledger.insert("p2", d.id, date(2026, 3, 11), "09:00", None)
    assert ledger.occupied_slots(d.id, DAY) == {"09:00"}


def test_cancelled_slot_can_be_rebooked(directory, ledger):
    d = add_doctor(directory, "Dr. D")
    first = ledger.insert("p1", d.id, DAY, "09:00", None)
    assert ledger.update_status(first.id, "cancelled", "p1").status == "cancelled"
    assert ledger.occupied_slots(d.id, DAY) == set()

    again = ledger.insert("p2", d.id, DAY, "09:00", "follow-up")
    assert again.id != first.id
    assert ledger.occupied_slots(d.id, DAY) == {"09:00"}


def test_update_status_is_scoped_to_patient(directory, ledger):
    d = add_doctor(directory, "Dr. D")
    a = ledger.insert("p1", d.id, DAY, "09:00", None)
    assert ledger.update_status(a.id, "cancelled", "p2") is None
    assert ledger.occupied_slots(d.id, DAY) == {"09:00"}


def test_list_for_patient_includes_doctor(directory, ledger):
    d = add_doctor(directory, "Dr. D")
    ledger.insert("p1", d.id, date(2026, 3, 12), "09:00", None)
    ledger.insert("p1", d.id, DAY, "14:00", None)
    ledger.insert("p2", d.id, DAY, "09:00", None)
    rows = ledger.list_for_patient("p1")
    assert [(r.appointment_date, r.appointment_time) for r in rows] == [(DAY, "14:00"), (date(2026, 3, 12), "09:00")]
    assert rows[0].doctor.name == "Dr. D"


def test_booking_walkthrough_with_competing_patient(tmp_path):
    # a file database gives every session its own connection, like separate requests
    engine = create_engine(f"sqlite:///{tmp_path / 'clinic.db'}", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        directory = SqlDoctorDirectory(s)
        doctor = add_doctor(directory, "Dr. D", fee=100, rating=4.5, exp=10)

    with Session(engine) as s1, Session(engine) as s2:
        today = lambda: date(2026, 3, 1)  # noqa: E731
        alice = BookingFlow(SqlDoctorDirectory(s1), SqlAppointmentLedger(s1), "alice", today=today)
        bob = BookingFlow(SqlDoctorDirectory(s2), SqlAppointmentLedger(s2), "bob", today=today)

        for flow in (alice, bob):
            flow.apply_criteria(BookingCriteria(Specialization.CARDIOLOGIST, max_fee=150, min_rating=4, min_experience=5))
            assert [d.id for d in flow.results] == [doctor.id]
            flow.select_doctor(doctor.id)
            flow.select_date(DAY)
            flow.select_time("09:00")

        booked = alice.confirm("checkup")
        assert booked.ok
        assert alice.appointment.status == "scheduled"
        assert alice.appointment.notes == "checkup"

        lost = bob.confirm()
        assert lost.kind == OutcomeKind.SLOT_UNAVAILABLE
        assert bob.state == FlowState.TIME
        assert "09:00" in bob.occupied
        assert bob.select_time("09:30").ok
        assert bob.confirm().ok

    with Session(engine) as s:
        assert SqlAppointmentLedger(s).occupied_slots(doctor.id, DAY) == {"09:00", "09:30"}
    engine.dispose()


def test_profile_repository_upsert(session):
    repo = SqlProfileRepository(session)
    assert repo.get_by_user("u1") is None
    created = repo.save("u1", "Jane", None, "patient")
    updated = repo.save("u1", "Jane Roe", "https://img/j.png", "patient")
    assert updated.full_name == "Jane Roe"
    assert updated.created_at == created.created_at


def test_report_repository(session):
    repo = SqlReportRepository(session)
    first = repo.create("u1", "Jan", "u1/1_a.pdf", None)
    second = repo.create("u1", "Feb", None, "HbA1c 5.4%")
    repo.create("u2", "Other", None, "x")
    assert {r.id for r in repo.list_for_user("u1")} == {first.id, second.id}
    assert repo.get_for_user(first.id, "u2") is None

    repo.set_analysis(second.id, "Normal")
    assert repo.get_for_user(second.id, "u1").analysis == "Normal"
    repo.delete(first.id)
    assert [r.id for r in repo.list_for_user("u1")] == [second.id]


def test_chat_repository_returns_recent_oldest_first(session):
    repo = SqlChatRepository(session)
    for i in range(4):
        repo.add("u1", "user" if i % 2 == 0 else "assistant", f"m{i}")
    repo.add("u2", "user", "elsewhere")
    assert [m.content for m in repo.recent_for_user("u1", 3)] == ["m1", "m2", "m3"]


def test_create_db_and_tables_restores_missing_slot_index(engine):
    from sqlalchemy import inspect, text
    from curaclinic.database import create_db_and_tables
    from curaclinic.db.models.health.appointment import ACTIVE_SLOT_INDEX

    with engine.begin() as conn:
        conn.execute(text(f"DROP INDEX {ACTIVE_SLOT_INDEX}"))
    assert ACTIVE_SLOT_INDEX not in {ix["name"] for ix in inspect(engine).get_indexes("appointments")}

    create_db_and_tables(engine)
    assert ACTIVE_SLOT_INDEX in {ix["name"] for ix in inspect(engine).get_indexes("appointments")}


def test_timestamps_are_timezone_aware(session, directory, ledger):
    from curaclinic.db.models import Appointment, BloodReport, ChatMessage, Doctor, Profile

    columns = [
        (Appointment, "created_at"), (Appointment, "updated_at"), (Doctor, "created_at"),
        (Profile, "created_at"), (Profile, "updated_at"), (BloodReport, "uploaded_at"), (ChatMessage, "created_at"),
    ]
    for model, name in columns:
        assert model.__table__.c[name].type.timezone is True

    appt = Appointment(patient_id="p1", doctor_id=1, appointment_date=DAY, appointment_time="09:00")
    assert appt.created_at.tzinfo is not None
    assert appt.updated_at.tzinfo is not None

    # every table accepts rows stamped by its defaults
    d = add_doctor(directory, "Dr. D")
    booked = ledger.insert("p1", d.id, DAY, "09:00", None)
    assert ledger.update_status(booked.id, "cancelled", "p1").status == "cancelled"
    SqlProfileRepository(session).save("p1", "Pat", None, "patient")
    SqlReportRepository(session).create("p1", "Jan", None, "HbA1c 5.4%")
    SqlChatRepository(session).add("p1", "user", "hello")
