from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..core.config import settings
from ..application.catalog import parse_specialization
from ..application.services.appointments_service import split_appointments
from ..application.services.booking_flow import BookingCriteria, BookingFlow, BookingFlowError, FlowOutcome, FlowState
from ..application.services.booking_registry import BookingFlowRegistry
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentLedger
from ..infrastructure.persistence.sqlalchemy.repositories.doctors_repository_sql import SqlDoctorDirectory
from ..schemas.common.common import MessageResponse
from ..schemas.doctors.doctor import DoctorResponse
from ..schemas.appointments.appointment import AppointmentResponse
from ..schemas.booking.booking import (
    BookingFlowResponse,
    BookingOpenRequest,
    ConfirmRequest,
    CriteriaRequest,
    CriteriaResponse,
    DateChoice,
    DoctorChoice,
    OutcomeResponse,
    TimeChoice,
)
from .appointments_router import appointment_list_response
from .deps import get_booking_registry, get_current_user, get_directory, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/booking", tags=["Booking"])


def _outcome(outcome: Optional[FlowOutcome]) -> Optional[OutcomeResponse]:
    if outcome is None:
        return None
    return OutcomeResponse(kind=outcome.kind.value, title=outcome.title, message=outcome.message)


def flow_response(flow: BookingFlow) -> BookingFlowResponse:
    snap = flow.snapshot()
    criteria = snap.criteria
    return BookingFlowResponse(
        state=snap.state.value,
        preselected=snap.preselected,
        criteria=CriteriaResponse(
            specialization=criteria.specialization.value if criteria.specialization else None,
            max_fee=criteria.max_fee,
            min_rating=criteria.min_rating,
            min_experience=criteria.min_experience,
        ),
        results=[DoctorResponse.model_validate(d) for d in snap.results],
        doctor=DoctorResponse.model_validate(snap.doctor) if snap.doctor else None,
        selected_date=snap.selected_date,
        selected_time=snap.selected_time,
        notes=snap.notes,
        occupied_slots=snap.occupied_slots,
        available_slots=snap.available_slots,
        first_date=snap.first_date,
        last_date=snap.last_date,
        appointment=AppointmentResponse.model_validate(snap.appointment) if snap.appointment else None,
        outcome=_outcome(snap.last_outcome),
    )


def get_flow(
    current_user: str = Depends(get_current_user),
    registry: BookingFlowRegistry = Depends(get_booking_registry),
) -> BookingFlow:
    flow = registry.get(current_user)
    if flow is None:
        raise HTTPException(status_code=404, detail="No booking in progress")
    return flow


def _step(flow: BookingFlow, directory: SqlDoctorDirectory, ledger: SqlAppointmentLedger, action=None) -> BookingFlowResponse:
    # The response is built under the flow's lock so it shows this request's result
    with flow.using(directory, ledger):
        try:
            if action is not None:
                action()
        except BookingFlowError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return flow_response(flow)


@router.post("/flow", response_model=BookingFlowResponse)
def open_flow(
    body: BookingOpenRequest,
    current_user: str = Depends(get_current_user),
    registry: BookingFlowRegistry = Depends(get_booking_registry),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    doctor = None
    if body.doctor_id is not None:
        doctor = directory.get(body.doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
    flow = BookingFlow(
        directory,
        ledger,
        current_user,
        doctor=doctor,
        horizon_days=settings.BOOKING_HORIZON_DAYS,
        on_booked=lambda appt: logger.info(f"Appointment {appt.id} booked through the wizard by {current_user}"),
    )
    registry.open(current_user, flow)
    return _step(flow, directory, ledger)


@router.get("/flow", response_model=BookingFlowResponse)
def get_flow_state(
    flow: BookingFlow = Depends(get_flow),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    return _step(flow, directory, ledger)


@router.post("/flow/criteria", response_model=BookingFlowResponse)
def apply_criteria(
    body: CriteriaRequest,
    flow: BookingFlow = Depends(get_flow),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    try:
        specialization = parse_specialization(body.specialization)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown specialization: {body.specialization}")
    criteria = BookingCriteria(
        specialization=specialization,
        max_fee=body.max_fee,
        min_rating=body.min_rating,
        min_experience=body.min_experience,
    )
    return _step(flow, directory, ledger, lambda: flow.apply_criteria(criteria))


@router.post("/flow/doctor", response_model=BookingFlowResponse)
def select_doctor(
    body: DoctorChoice,
    flow: BookingFlow = Depends(get_flow),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    return _step(flow, directory, ledger, lambda: flow.select_doctor(body.doctor_id))


@router.post("/flow/date", response_model=BookingFlowResponse)
def select_date(
    body: DateChoice,
    flow: BookingFlow = Depends(get_flow),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    return _step(flow, directory, ledger, lambda: flow.select_date(body.appointment_date))


@router.post("/flow/time", response_model=BookingFlowResponse)
def select_time(
    body: TimeChoice,
    flow: BookingFlow = Depends(get_flow),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    return _step(flow, directory, ledger, lambda: flow.select_time(body.appointment_time))


@router.post("/flow/confirm", response_model=BookingFlowResponse)
def confirm_booking(
    body: ConfirmRequest,
    current_user: str = Depends(get_current_user),
    flow: BookingFlow = Depends(get_flow),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    response = _step(flow, directory, ledger, lambda: flow.confirm(body.notes))
    if response.state == FlowState.SUCCESS.value:
        groups = split_appointments(ledger.list_for_patient(current_user), datetime.now())
        response.appointments = appointment_list_response(groups)
    return response


@router.post("/flow/back", response_model=BookingFlowResponse)
def go_back(
    flow: BookingFlow = Depends(get_flow),
    directory: SqlDoctorDirectory = Depends(get_directory),
    ledger: SqlAppointmentLedger = Depends(get_ledger),
):
    return _step(flow, directory, ledger, flow.back)


@router.delete("/flow", response_model=MessageResponse)
def close_flow(
    current_user: str = Depends(get_current_user),
    registry: BookingFlowRegistry = Depends(get_booking_registry),
):
    if not registry.close(current_user):
        raise HTTPException(status_code=404, detail="No booking in progress")
    return MessageResponse(message="Booking closed")
