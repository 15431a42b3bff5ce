# curaclinic/schemas/booking/booking.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date

from ..doctors.doctor import DoctorResponse
from ..appointments.appointment import AppointmentListResponse, AppointmentResponse

class BookingOpenRequest(BaseModel):
    doctor_id: Optional[int] = None

class CriteriaRequest(BaseModel):
    specialization: Optional[str] = "any"
    max_fee: float = Field(default=500, ge=0, le=1000)
    min_rating: float = Field(default=3, ge=1, le=5)
    min_experience: int = Field(default=0, ge=0, le=30)

class DoctorChoice(BaseModel):
    doctor_id: int

class DateChoice(BaseModel):
    appointment_date: date

class TimeChoice(BaseModel):
    appointment_time: str

class ConfirmRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=2000)

class CriteriaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    specialization: Optional[str] = None
    max_fee: float
    min_rating: float
    min_experience: int

class OutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: str
    title: Optional[str] = None
    message: Optional[str] = None

class BookingFlowResponse(BaseModel):
    state: str
    preselected: bool
    criteria: CriteriaResponse
    results: List[DoctorResponse]
    doctor: Optional[DoctorResponse] = None
    selected_date: Optional[date] = None
    selected_time: Optional[str] = None
    notes: Optional[str] = None
    occupied_slots: List[str]
    available_slots: List[str]
    first_date: date
    last_date: date
    appointment: Optional[AppointmentResponse] = None
    outcome: Optional[OutcomeResponse] = None
    # Patient's refreshed appointment list, filled in once the booking succeeds
    appointments: Optional[AppointmentListResponse] = None
