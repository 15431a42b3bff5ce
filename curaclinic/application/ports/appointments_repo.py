from dataclasses import dataclass
from typing import List, Optional, Protocol, Set
from datetime import datetime, date

from .doctors_repo import DoctorDto


class SlotConflictError(Exception):
    """The (doctor, date, time) slot is already held by a non-cancelled appointment."""

    def __init__(self, doctor_id: int, appointment_date: date, appointment_time: str):
        super().__init__(f"Slot {appointment_date.isoformat()} {appointment_time} is already booked for doctor {doctor_id}")
        self.doctor_id = doctor_id
        self.appointment_date = appointment_date
        self.appointment_time = appointment_time


@dataclass
class AppointmentDto:
    id: int
    patient_id: str
    doctor_id: int
    appointment_date: date
    appointment_time: str
    status: str
    notes: Optional[str]
    reminder_sent: bool
    created_at: datetime
    updated_at: datetime
    doctor: Optional[DoctorDto] = None


class AppointmentLedger(Protocol):
    def occupied_slots(self, doctor_id: int, appointment_date: date) -> Set[str]:
        ...

    def insert(self, patient_id: str, doctor_id: int, appointment_date: date, appointment_time: str, notes: Optional[str]) -> AppointmentDto:
        """Raises SlotConflictError when the slot is taken."""
        ...

    def update_status(self, appointment_id: int, status: str, patient_id: str) -> Optional[AppointmentDto]:
        ...

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        ...
