# Routers package
from . import appointments_router
from . import assistant_router
from . import booking_router
from . import doctors_router
from . import profiles_router
from . import reports_router

__all__ = [
    "appointments_router",
    "assistant_router",
    "booking_router",
    "doctors_router",
    "profiles_router",
    "reports_router",
]
