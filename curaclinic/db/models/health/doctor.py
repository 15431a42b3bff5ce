# curaclinic/db/models/health/doctor.py
from typing import Optional, List, Dict
from sqlalchemy import Column, DateTime, JSON
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

from ....utils import utc_now

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: Optional[int] = Field(default=None, primary_key=True)
    # Owning identity; at most one doctor profile per identity
    user_id: Optional[str] = Field(default=None, unique=True, index=True)
    name: str
    specialization: str = Field(index=True)
    experience_years: int = Field(default=0, ge=0)
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    consultation_fee: float = Field(default=0.0, ge=0)
    rating: float = Field(default=5.0, ge=1, le=5)
    availability: Dict[str, bool] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    is_featured: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    # Relationships
    appointments: List["Appointment"] = Relationship(back_populates="doctor")
