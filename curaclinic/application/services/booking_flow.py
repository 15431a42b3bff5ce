"""Appointment booking wizard.

One state machine serves both entry points of the clinic UI: the booking
dialog opened from a doctor card (doctor pre-selected, starts at ``date``) and
the appointment wizard that starts from search criteria.

    criteria -> doctor -> date -> time -> confirm -> success

The read of occupied slots and the insert are not coordinated: two patients
can pass the read-side check for the same slot, and the ledger's uniqueness
constraint decides which insert wins. The loser gets ``slot_unavailable`` and
is sent back to ``time`` with a refreshed occupied set.

A flow is shared by every request of its patient, so each action runs under
the flow's lock and a repeated confirm after success returns the booking
already made.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from functools import wraps
from typing import Callable, Iterator, List, Optional, Set
import logging
import threading

from ..catalog import TIME_SLOTS, Specialization
from ..ports.appointments_repo import AppointmentDto, AppointmentLedger, SlotConflictError
from ..ports.doctors_repo import DirectoryFilters, DoctorDirectory, DoctorDto

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 30


class FlowState(str, Enum):
    CRITERIA = "criteria"
    DOCTOR = "doctor"
    DATE = "date"
    TIME = "time"
    CONFIRM = "confirm"
    SUCCESS = "success"


class OutcomeKind(str, Enum):
    OK = "ok"
    SLOT_UNAVAILABLE = "slot_unavailable"
    FAILED = "failed"


class BookingFlowError(Exception):
    """An action that is not available in the flow's current state."""


@dataclass
class FlowOutcome:
    kind: OutcomeKind
    title: Optional[str] = None
    message: Optional[str] = None
    appointment: Optional[AppointmentDto] = None

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.OK


@dataclass
class BookingCriteria:
    specialization: Optional[Specialization] = None
    max_fee: float = 500
    min_rating: float = 3
    min_experience: int = 0

    def validate(self) -> None:
        if not 0 <= self.max_fee <= 1000:
            raise BookingFlowError("Maximum fee must be between 0 and 1000")
        if not 1 <= self.min_rating <= 5:
            raise BookingFlowError("Minimum rating must be between 1 and 5")
        if not 0 <= self.min_experience <= 30:
            raise BookingFlowError("Minimum experience must be between 0 and 30 years")

    def to_filters(self) -> DirectoryFilters:
        return DirectoryFilters(
            specialization=self.specialization,
            max_fee=self.max_fee,
            min_rating=self.min_rating,
            min_experience=self.min_experience,
        )


@dataclass
class FlowSnapshot:
    state: FlowState
    preselected: bool
    criteria: BookingCriteria
    results: List[DoctorDto]
    doctor: Optional[DoctorDto]
    selected_date: Optional[date]
    selected_time: Optional[str]
    notes: Optional[str]
    occupied_slots: List[str]
    available_slots: List[str]
    first_date: date
    last_date: date
    appointment: Optional[AppointmentDto]
    last_outcome: Optional[FlowOutcome] = None


_PREVIOUS = {
    FlowState.DOCTOR: FlowState.CRITERIA,
    FlowState.DATE: FlowState.DOCTOR,
    FlowState.TIME: FlowState.DATE,
    FlowState.CONFIRM: FlowState.TIME,
}


def _serialized(action):
    @wraps(action)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return action(self, *args, **kwargs)
    return wrapper


class BookingFlow:
    def __init__(
        self,
        directory: DoctorDirectory,
        ledger: AppointmentLedger,
        patient_id: Optional[str],
        doctor: Optional[DoctorDto] = None,
        today: Callable[[], date] = date.today,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
        on_booked: Optional[Callable[[AppointmentDto], None]] = None,
    ):
        self.directory = directory
        self.ledger = ledger
        self.patient_id = patient_id
        self._preselected = doctor
        self._today = today
        self.horizon_days = horizon_days
        self.on_booked = on_booked
        self._lock = threading.RLock()
        self.reset()

    # -- wiring -------------------------------------------------------------

    @contextmanager
    def using(self, directory: DoctorDirectory, ledger: AppointmentLedger) -> Iterator["BookingFlow"]:
        """Hold the flow for one request, talking to that request's repositories.

        Other requests for the same flow wait until the block exits.
        """
        with self._lock:
            previous = (self.directory, self.ledger)
            self.directory, self.ledger = directory, ledger
            try:
                yield self
            finally:
                self.directory, self.ledger = previous

    @property
    def initial_state(self) -> FlowState:
        return FlowState.DATE if self._preselected is not None else FlowState.CRITERIA

    @_serialized
    def reset(self) -> None:
        self.state = self.initial_state
        self.criteria = BookingCriteria()
        self.results: List[DoctorDto] = []
        self.doctor: Optional[DoctorDto] = self._preselected
        self.selected_date: Optional[date] = None
        self.selected_time: Optional[str] = None
        self.notes: Optional[str] = None
        self.occupied: Set[str] = set()
        self.appointment: Optional[AppointmentDto] = None
        self.last_outcome: Optional[FlowOutcome] = None

    def close(self) -> None:
        self.reset()

    # -- date window --------------------------------------------------------

    @property
    def first_date(self) -> date:
        return self._today()

    @property
    def last_date(self) -> date:
        return self._today() + timedelta(days=self.horizon_days - 1)

    def is_date_selectable(self, day: date) -> bool:
        today = self._today()
        return today <= day < today + timedelta(days=self.horizon_days)

    def selectable_dates(self) -> List[date]:
        today = self._today()
        days = (today + timedelta(days=offset) for offset in range(self.horizon_days))
        return [d for d in days if self.is_date_selectable(d)]

    @property
    def available_slots(self) -> List[str]:
        return [slot for slot in TIME_SLOTS if slot not in self.occupied]

    # -- transitions --------------------------------------------------------

    def _require(self, state: FlowState) -> None:
        if self.state != state:
            raise BookingFlowError(f"Action requires the '{state.value}' step, flow is at '{self.state.value}'")

    def _finish(self, outcome: FlowOutcome) -> FlowOutcome:
        self.last_outcome = outcome
        return outcome

    @_serialized
    def apply_criteria(self, criteria: BookingCriteria) -> FlowOutcome:
        self._require(FlowState.CRITERIA)
        criteria.validate()
        try:
            results = self.directory.search(criteria.to_filters())
        except Exception as e:
            logger.error(f"Doctor search failed: {e}")
            return self._finish(FlowOutcome(OutcomeKind.FAILED, "Search Failed", str(e)))
        self.criteria = criteria
        self.results = list(results)
        self.state = FlowState.DOCTOR
        return self._finish(FlowOutcome(OutcomeKind.OK, message=f"{len(self.results)} doctor(s) match your criteria"))

    @_serialized
    def select_doctor(self, doctor_id: int) -> FlowOutcome:
        self._require(FlowState.DOCTOR)
        doctor = next((d for d in self.results if d.id == doctor_id), None)
        if doctor is None:
            raise BookingFlowError("Doctor is not among the search results")
        self.doctor = doctor
        self.state = FlowState.DATE
        return self._finish(FlowOutcome(OutcomeKind.OK, message=f"Booking with {doctor.name}"))

    def _load_occupied(self, day: date) -> Set[str]:
        return set(self.ledger.occupied_slots(self.doctor.id, day))

    @_serialized
    def select_date(self, day: date) -> FlowOutcome:
        self._require(FlowState.DATE)
        if not self.is_date_selectable(day):
            raise BookingFlowError(f"{day.isoformat()} is not available for booking")
        try:
            occupied = self._load_occupied(day)
        except Exception as e:
            logger.error(f"Loading booked slots failed for doctor {self.doctor.id} on {day}: {e}")
            return self._finish(FlowOutcome(OutcomeKind.FAILED, "Could Not Load Slots", str(e)))
        self.selected_date = day
        self.occupied = occupied
        self.state = FlowState.TIME
        return self._finish(FlowOutcome(OutcomeKind.OK))

    @_serialized
    def select_time(self, slot: str) -> FlowOutcome:
        self._require(FlowState.TIME)
        if slot not in TIME_SLOTS:
            raise BookingFlowError(f"{slot} is not a bookable time slot")
        if slot in self.occupied:
            raise BookingFlowError(f"{slot} is already booked")
        self.selected_time = slot
        self.state = FlowState.CONFIRM
        return self._finish(FlowOutcome(OutcomeKind.OK))

    @_serialized
    def confirm(self, notes: Optional[str] = None) -> FlowOutcome:
        if self.state == FlowState.SUCCESS:
            logger.info(f"Repeated confirm for appointment {self.appointment.id}, keeping it")
            return self._booked()
        self._require(FlowState.CONFIRM)
        self.notes = (notes or "").strip() or None
        if not self.patient_id:
            return self._finish(FlowOutcome(OutcomeKind.FAILED, "Booking Failed", "You must be signed in to book an appointment."))

        try:
            appointment = self.ledger.insert(
                self.patient_id,
                self.doctor.id,
                self.selected_date,
                self.selected_time,
                self.notes,
            )
        except SlotConflictError:
            logger.warning(
                f"Slot conflict for doctor {self.doctor.id} on {self.selected_date} at {self.selected_time}"
            )
            return self._finish(self._recover_from_conflict())
        except Exception as e:
            logger.error(f"Booking failed: {e}")
            return self._finish(FlowOutcome(OutcomeKind.FAILED, "Booking Failed", str(e)))

        self.appointment = appointment
        self.state = FlowState.SUCCESS
        logger.info(f"Appointment {appointment.id} booked with doctor {self.doctor.id}")
        if self.on_booked is not None:
            self.on_booked(appointment)
        return self._finish(self._booked())

    def _booked(self) -> FlowOutcome:
        return FlowOutcome(
            OutcomeKind.OK,
            "Appointment Booked!",
            f"Your appointment with {self.doctor.name} is confirmed.",
            appointment=self.appointment,
        )

    def _recover_from_conflict(self) -> FlowOutcome:
        taken = self.selected_time
        try:
            self.occupied = self._load_occupied(self.selected_date)
        except Exception as e:
            logger.error(f"Refreshing booked slots failed: {e}")
        self.occupied.add(taken)
        self.selected_time = None
        self.state = FlowState.TIME
        return FlowOutcome(
            OutcomeKind.SLOT_UNAVAILABLE,
            "Slot Unavailable",
            "This time slot has just been booked. Please choose another.",
        )

    @_serialized
    def back(self) -> FlowOutcome:
        previous = _PREVIOUS.get(self.state)
        if previous is None or self.state == self.initial_state:
            raise BookingFlowError(f"Cannot go back from the '{self.state.value}' step")
        if self.state == FlowState.DOCTOR:
            self.results = []
        elif self.state == FlowState.DATE:
            self.doctor = None
        elif self.state == FlowState.TIME:
            self.selected_date = None
            self.occupied = set()
        elif self.state == FlowState.CONFIRM:
            self.selected_time = None
            self.notes = None
        self.state = previous
        return self._finish(FlowOutcome(OutcomeKind.OK))

    @_serialized
    def snapshot(self) -> FlowSnapshot:
        return FlowSnapshot(
            state=self.state,
            preselected=self._preselected is not None,
            criteria=self.criteria,
            results=list(self.results),
            doctor=self.doctor,
            selected_date=self.selected_date,
            selected_time=self.selected_time,
            notes=self.notes,
            occupied_slots=sorted(self.occupied),
            available_slots=self.available_slots,
            first_date=self.first_date,
            last_date=self.last_date,
            appointment=self.appointment,
            last_outcome=self.last_outcome,
        )
