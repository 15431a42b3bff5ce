# Schemas package (re-export feature modules for stable imports)
from .common.common import *
from .doctors.doctor import *
from .appointments.appointment import *
from .booking.booking import *
from .assistant.assistant import *
from .reports.report import *
from .profiles.profile import *
