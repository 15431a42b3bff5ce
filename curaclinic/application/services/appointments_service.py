from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set
from datetime import datetime, date
from fastapi import HTTPException
import logging

from ..catalog import AppointmentStatus
from ..ports.appointments_repo import AppointmentLedger, AppointmentDto
from ..ports.doctors_repo import DoctorDirectory
from .booking_flow import BookingFlow, BookingFlowError, OutcomeKind
from ...exceptions import APIException

logger = logging.getLogger(__name__)


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid appointment date format. Use YYYY-MM-DD")


def starts_at(appt: AppointmentDto) -> datetime:
    return datetime.combine(appt.appointment_date, datetime.strptime(appt.appointment_time, "%H:%M").time())


def split_appointments(appts: List[AppointmentDto], now: datetime) -> Dict[str, List[AppointmentDto]]:
    """Upcoming: still active and not yet started. Everything else is past."""
    closed = (AppointmentStatus.CANCELLED.value, AppointmentStatus.COMPLETED.value)
    upcoming = [a for a in appts if a.status not in closed and starts_at(a) >= now]
    past = [a for a in appts if a.status in closed or starts_at(a) < now]
    return {"upcoming": upcoming, "past": past}


@dataclass
class AppointmentsService:
    ledger: AppointmentLedger
    directory: DoctorDirectory
    today: Callable[[], date] = date.today
    horizon_days: int = 30

    def list_for_patient(self, patient_id: str, now: Optional[datetime] = None) -> Dict[str, List[AppointmentDto]]:
        return split_appointments(self.ledger.list_for_patient(patient_id), now or datetime.now())

    def occupied_slots(self, doctor_id: int, appointment_date: str) -> Set[str]:
        if not self.directory.get(doctor_id):
            raise HTTPException(status_code=404, detail="Doctor not found")
        return self.ledger.occupied_slots(doctor_id, parse_date(appointment_date))

    def book(self, patient_id: str, doctor_id: int, appointment_date: str, appointment_time: str, notes: Optional[str] = None) -> AppointmentDto:
        doctor = self.directory.get(doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")

        flow = BookingFlow(
            self.directory,
            self.ledger,
            patient_id,
            doctor=doctor,
            today=self.today,
            horizon_days=self.horizon_days,
        )
        try:
            outcome = flow.select_date(parse_date(appointment_date))
            if outcome.ok and appointment_time in flow.occupied:
                raise APIException(
                    status_code=409,
                    detail="This time slot is already booked. Please choose another.",
                    data={"occupied_slots": sorted(flow.occupied)},
                )
            if outcome.ok:
                outcome = flow.select_time(appointment_time)
        except BookingFlowError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if outcome.ok:
            outcome = flow.confirm(notes)

        if outcome.kind == OutcomeKind.SLOT_UNAVAILABLE:
            raise APIException(status_code=409, detail=outcome.message, data={"occupied_slots": sorted(flow.occupied)})
        if not outcome.ok:
            raise HTTPException(status_code=500, detail=outcome.message or "Failed to book appointment")
        return outcome.appointment

    def cancel(self, patient_id: str, appointment_id: int) -> AppointmentDto:
        appt = self.ledger.update_status(appointment_id, AppointmentStatus.CANCELLED.value, patient_id)
        if not appt:
            raise HTTPException(status_code=404, detail="Failed to cancel appointment")
        logger.info(f"Appointment {appointment_id} cancelled by {patient_id}")
        return appt
