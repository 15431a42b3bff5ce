from enum import Enum
from typing import List, Optional, Union

ANY_SPECIALIZATION = "any"
# Label used by the clinic UI for the unfiltered choice
ALL_SPECIALIZATIONS_LABEL = "All Specializations"


class Specialization(str, Enum):
    CARDIOLOGIST = "Cardiologist"
    GENERAL_PHYSICIAN = "General Physician"
    DERMATOLOGIST = "Dermatologist"
    ORTHOPEDIC_SURGEON = "Orthopedic Surgeon"
    PEDIATRICIAN = "Pediatrician"
    NEUROLOGIST = "Neurologist"
    GYNECOLOGIST = "Gynecologist"
    PSYCHIATRIST = "Psychiatrist"
    ENDOCRINOLOGIST = "Endocrinologist"
    OPHTHALMOLOGIST = "Ophthalmologist"
    PULMONOLOGIST = "Pulmonologist"
    GASTROENTEROLOGIST = "Gastroenterologist"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


MORNING_SLOTS = ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
AFTERNOON_SLOTS = ["14:00", "14:30", "15:00", "15:30", "16:00", "16:30", "17:00"]
TIME_SLOTS: List[str] = MORNING_SLOTS + AFTERNOON_SLOTS

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def normalize_slot(value: str) -> str:
    """Reduce stored time values such as '09:00:00' to the 'HH:MM' slot form."""
    return str(value)[:5]


def parse_specialization(value: Optional[Union[str, Specialization]]) -> Optional[Specialization]:
    """Return the specialization to filter on, or None for "any".

    Raises ValueError for names outside the closed set.
    """
    if value is None or isinstance(value, Specialization):
        return value
    text = value.strip()
    if text == "" or text.lower() == ANY_SPECIALIZATION or text == ALL_SPECIALIZATIONS_LABEL:
        return None
    return Specialization(text)
