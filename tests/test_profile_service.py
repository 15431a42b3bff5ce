from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from curaclinic.application.ports.profile_repo import ProfileDto
from curaclinic.application.services.profile_service import ProfileService


class FakeProfiles:
    def __init__(self):
        self.rows = {}

    def get_by_user(self, user_id):
        return self.rows.get(user_id)

    def save(self, user_id, full_name, avatar_url, role):
        now = datetime.now(timezone.utc)
        existing = self.rows.get(user_id)
        created = existing.created_at if existing else now
        self.rows[user_id] = ProfileDto(user_id, full_name, avatar_url, role, created, now)
        return self.rows[user_id]


def test_new_profile_defaults_to_patient():
    svc = ProfileService(profile_repo=FakeProfiles())
    p = svc.save("u1", full_name="Jane Roe", avatar_url=None, role=None)
    assert p.role == "patient"
    assert svc.get("u1").full_name == "Jane Roe"


def test_update_keeps_fields_not_sent():
    repo = FakeProfiles()
    svc = ProfileService(profile_repo=repo)
    svc.save("u1", full_name="Jane Roe", avatar_url="https://img/a.png", role="doctor")
    p = svc.save("u1", full_name="Dr. Jane Roe", avatar_url=None, role=None)
    assert p.full_name == "Dr. Jane Roe"
    assert p.avatar_url == "https://img/a.png"
    assert p.role == "doctor"


def test_role_cannot_be_changed():
    svc = ProfileService(profile_repo=FakeProfiles())
    svc.save("u1", full_name="Jane", avatar_url=None, role="patient")
    with pytest.raises(HTTPException) as exc:
        svc.save("u1", full_name=None, avatar_url=None, role="admin")
    assert exc.value.status_code == 400
    # sending the same role again is fine
    assert svc.save("u1", full_name=None, avatar_url=None, role="patient").role == "patient"


def test_invalid_role():
    svc = ProfileService(profile_repo=FakeProfiles())
    with pytest.raises(HTTPException) as exc:
        svc.save("u1", full_name=None, avatar_url=None, role="nurse")
    assert exc.value.status_code == 400


def test_missing_profile():
    svc = ProfileService(profile_repo=FakeProfiles())
    with pytest.raises(HTTPException) as exc:
        svc.get("nobody")
    assert exc.value.status_code == 404
