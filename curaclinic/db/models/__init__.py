# Models package (re-export feature modules for stable imports)
from .users.profile import Profile
from .health.doctor import Doctor
from .health.appointment import Appointment
from .health.report import BloodReport
from .health.chat import ChatMessage

__all__ = [
    "Profile",
    "Doctor",
    "Appointment",
    "BloodReport",
    "ChatMessage",
]
