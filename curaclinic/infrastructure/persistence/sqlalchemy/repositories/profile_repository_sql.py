from typing import Optional
from sqlmodel import Session, select

from .....db.models import Profile
from .....utils import utc_now
from .....application.ports.profile_repo import ProfileRepository, ProfileDto


class SqlProfileRepository(ProfileRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, p: Profile) -> ProfileDto:
        return ProfileDto(
            user_id=p.user_id,
            full_name=p.full_name,
            avatar_url=p.avatar_url,
            role=p.role,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )

    def get_by_user(self, user_id: str) -> Optional[ProfileDto]:
        p = self.session.exec(select(Profile).where(Profile.user_id == user_id)).first()
        return self._to_dto(p) if p else None

    def save(self, user_id: str, full_name: Optional[str], avatar_url: Optional[str], role: str) -> ProfileDto:
        p = self.session.exec(select(Profile).where(Profile.user_id == user_id)).first()
        if not p:
            p = Profile(user_id=user_id)
        p.full_name = full_name
        p.avatar_url = avatar_url
        p.role = role
        p.updated_at = utc_now()
        self.session.add(p)
        self.session.commit()
        self.session.refresh(p)
        return self._to_dto(p)
