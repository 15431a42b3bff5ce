from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol
from datetime import datetime

from ..catalog import Specialization


@dataclass
class DoctorDto:
    id: int
    name: str
    specialization: str
    experience_years: int
    consultation_fee: float
    rating: float
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    availability: Dict[str, bool] = field(default_factory=dict)
    is_featured: bool = False
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class DirectoryFilters:
    """Criteria for the doctor search; None means "no constraint"."""
    specialization: Optional[Specialization] = None
    max_fee: Optional[float] = None
    min_rating: Optional[float] = None
    min_experience: Optional[int] = None


@dataclass
class DoctorProfileData:
    name: str
    specialization: str
    experience_years: int = 0
    bio: str = ""
    consultation_fee: float = 0.0
    availability: Dict[str, bool] = field(default_factory=dict)
    is_featured: bool = False
    rating: Optional[float] = None
    avatar_url: Optional[str] = None


class DoctorDirectory(Protocol):
    def search(self, filters: DirectoryFilters) -> List[DoctorDto]:
        ...

    def list_all(self) -> List[DoctorDto]:
        ...

    def featured(self, limit: int) -> List[DoctorDto]:
        ...

    def get(self, doctor_id: int) -> Optional[DoctorDto]:
        ...

    def get_for_user(self, user_id: str) -> Optional[DoctorDto]:
        ...

    def create(self, user_id: Optional[str], data: DoctorProfileData) -> DoctorDto:
        ...

    def update(self, doctor_id: int, data: DoctorProfileData) -> DoctorDto:
        ...
