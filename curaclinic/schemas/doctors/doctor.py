# curaclinic/schemas/doctors/doctor.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Optional
from datetime import datetime

class DoctorBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    specialization: str
    experience_years: int = Field(default=0, ge=0)
    bio: Optional[str] = None
    consultation_fee: float = Field(default=0, ge=0)
    availability: Dict[str, bool] = {}
    is_featured: bool = False

class DoctorCreate(DoctorBase):
    avatar_url: Optional[str] = None

class DoctorResponse(DoctorBase):
    id: int
    user_id: Optional[str] = None
    rating: float
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None

class OwnDoctorProfileResponse(BaseModel):
    exists: bool
    doctor: Optional[DoctorResponse] = None
    draft: Optional[DoctorBase] = None
