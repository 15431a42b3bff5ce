from fastapi import APIRouter, Depends, Query
import logging

from ..application.catalog import TIME_SLOTS
from ..application.services.appointments_service import AppointmentsService, parse_date
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    OccupiedSlotsResponse,
)
from .deps import get_appointments_service, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def appointment_list_response(groups) -> AppointmentListResponse:
    return AppointmentListResponse(
        upcoming=[AppointmentResponse.model_validate(a) for a in groups["upcoming"]],
        past=[AppointmentResponse.model_validate(a) for a in groups["past"]],
    )


@router.get("/", response_model=AppointmentListResponse)
def get_user_appointments(
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return appointment_list_response(appt_service.list_for_patient(current_user))


@router.post("/", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    appointment_data: AppointmentCreate,
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.book(
        current_user,
        appointment_data.doctor_id,
        appointment_data.appointment_date,
        appointment_data.appointment_time,
        appointment_data.notes,
    )
    return AppointmentResponse.model_validate(appt)


@router.get("/occupied", response_model=OccupiedSlotsResponse)
def get_occupied_slots(
    doctor_id: int = Query(...),
    date: str = Query(..., description="YYYY-MM-DD"),
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    occupied = appt_service.occupied_slots(doctor_id, date)
    return OccupiedSlotsResponse(
        doctor_id=doctor_id,
        appointment_date=parse_date(date),
        occupied_slots=sorted(occupied),
        available_slots=[slot for slot in TIME_SLOTS if slot not in occupied],
    )


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return AppointmentResponse.model_validate(appt_service.cancel(current_user, appointment_id))
