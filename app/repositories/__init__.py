from .event_repository import EventRepository
from .event_role_repository import EventRoleRepository
from .participant_repository import ParticipantRepository
from .attendance_record_repository import AttendanceRecordRepository
from .qr_code_repository import QrCodeRepository
from .attendance_override_repository import AttendanceOverrideRepository

__all__ = [
    "EventRepository",
    "EventRoleRepository",
    "ParticipantRepository",
    "AttendanceRecordRepository",
    "QrCodeRepository",
    "AttendanceOverrideRepository"
]
