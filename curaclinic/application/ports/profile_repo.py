from dataclasses import dataclass
from typing import Optional, Protocol
from datetime import datetime


@dataclass
class ProfileDto:
    user_id: str
    full_name: Optional[str]
    avatar_url: Optional[str]
    role: str
    created_at: datetime
    updated_at: datetime


class ProfileRepository(Protocol):
    def get_by_user(self, user_id: str) -> Optional[ProfileDto]:
        ...

    def save(self, user_id: str, full_name: Optional[str], avatar_url: Optional[str], role: str) -> ProfileDto:
        ...
