# curaclinic/schemas/appointments/appointment.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime

from ..doctors.doctor import DoctorResponse

class AppointmentCreate(BaseModel):
    doctor_id: int
    appointment_date: str  # YYYY-MM-DD
    appointment_time: str  # HH:MM
    notes: Optional[str] = Field(default=None, max_length=2000)

class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: str
    doctor_id: int
    appointment_date: date
    appointment_time: str
    status: str
    notes: Optional[str] = None
    reminder_sent: bool = False
    created_at: datetime
    updated_at: datetime
    doctor: Optional[DoctorResponse] = None

class AppointmentListResponse(BaseModel):
    upcoming: List[AppointmentResponse]
    past: List[AppointmentResponse]

class OccupiedSlotsResponse(BaseModel):
    doctor_id: int
    appointment_date: date
    occupied_slots: List[str]
    available_slots: List[str]
