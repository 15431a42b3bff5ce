from datetime import date
from typing import List, Optional, Set
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....application.catalog import normalize_slot
from .....db.models import Appointment, Doctor
from .....utils import utc_now
from .....application.ports.appointments_repo import (
    AppointmentLedger,
    AppointmentDto,
    SlotConflictError,
)
from .doctors_repository_sql import doctor_to_dto

logger = logging.getLogger(__name__)


class SqlAppointmentLedger(AppointmentLedger):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment, doctor: Optional[Doctor] = None) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            appointment_date=a.appointment_date,
            appointment_time=normalize_slot(a.appointment_time),
            status=a.status,
            notes=a.notes,
            reminder_sent=a.reminder_sent,
            created_at=a.created_at,
            updated_at=a.updated_at,
            doctor=doctor_to_dto(doctor) if doctor else None,
        )

    def occupied_slots(self, doctor_id: int, appointment_date: date) -> Set[str]:
        times = self.session.exec(
            select(Appointment.appointment_time)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.status != "cancelled")
        ).all()
        return {normalize_slot(t) for t in times}

    def insert(self, patient_id: str, doctor_id: int, appointment_date: date, appointment_time: str, notes: Optional[str]) -> AppointmentDto:
        appt = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            notes=notes,
            status="scheduled",
        )
        self.session.add(appt)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            message = str(e.orig).lower()
            if "unique" in message or "duplicate key" in message:
                raise SlotConflictError(doctor_id, appointment_date, appointment_time) from e
            raise
        self.session.refresh(appt)
        return self._appt_to_dto(appt)

    def update_status(self, appointment_id: int, status: str, patient_id: str) -> Optional[AppointmentDto]:
        a = self.session.exec(
            select(Appointment)
            .where(Appointment.id == appointment_id)
            .where(Appointment.patient_id == patient_id)
        ).first()
        if not a:
            return None
        a.status = status
        a.updated_at = utc_now()
        self.session.add(a)
        self.session.commit()
        self.session.refresh(a)
        return self._appt_to_dto(a)

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment, Doctor)
            .join(Doctor, Doctor.id == Appointment.doctor_id)
            .where(Appointment.patient_id == patient_id)
            .order_by(Appointment.appointment_date, Appointment.appointment_time)
        ).all()
        return [self._appt_to_dto(a, d) for a, d in rows]
