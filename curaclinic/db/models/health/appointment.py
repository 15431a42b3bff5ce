# curaclinic/db/models/health/appointment.py
from typing import Optional
from sqlalchemy import DateTime, Index, text
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, date

from ....utils import utc_now

ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    # A slot stays taken until its appointment is cancelled
    __table_args__ = (
        Index(
            ACTIVE_SLOT_INDEX,
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: str = Field(index=True)
    doctor_id: int = Field(foreign_key="doctors.id")
    appointment_date: date
    appointment_time: str = Field(max_length=5)  # HH:MM
    status: str = Field(default="scheduled")
    notes: Optional[str] = None
    reminder_sent: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    # Relationships
    doctor: Optional["Doctor"] = Relationship(back_populates="appointments")
