from dataclasses import dataclass
from typing import Optional
from fastapi import HTTPException

from ..catalog import Role
from ..ports.profile_repo import ProfileRepository, ProfileDto


@dataclass
class ProfileService:
    profile_repo: ProfileRepository

    def get(self, user_id: str) -> ProfileDto:
        profile = self.profile_repo.get_by_user(user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return profile

    def save(self, user_id: str, full_name: Optional[str], avatar_url: Optional[str], role: Optional[str]) -> ProfileDto:
        existing = self.profile_repo.get_by_user(user_id)
        if role is not None:
            try:
                role = Role(role).value
            except ValueError:
                raise HTTPException(status_code=400, detail=f"Invalid role. Must be one of: {[r.value for r in Role]}")
        if existing:
            if role is not None and role != existing.role:
                raise HTTPException(status_code=400, detail="Role cannot be changed")
            return self.profile_repo.save(
                user_id,
                full_name if full_name is not None else existing.full_name,
                avatar_url if avatar_url is not None else existing.avatar_url,
                existing.role,
            )
        return self.profile_repo.save(user_id, full_name, avatar_url, role or Role.PATIENT.value)
