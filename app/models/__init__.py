from .event import Event
from .event_role import EventRole
from .participant import Participant
from .attendance_record import AttendanceRecord
from .qr_code import QrCode
from .attendance_override import AttendanceOverride

__all__ = [
    "Event",
    "EventRole",
    "Participant",
    "AttendanceRecord",
    "QrCode",
    "AttendanceOverride"
]
