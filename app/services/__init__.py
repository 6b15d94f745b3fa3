from .jwt_service import JwtService
from .qr_service import QrService, QrValidation
from .audit_service import AuditService
from .attendance_state_machine import AttendanceStateMachine
from .attendance_service import AttendanceService
from .participant_service import ParticipantService
from .override_service import OverrideService
from .event_service import EventService
from .cleanup_service import CleanupService

__all__ = [
    "JwtService",
    "QrService",
    "QrValidation",
    "AuditService",
    "AttendanceStateMachine",
    "AttendanceService",
    "ParticipantService",
    "OverrideService",
    "EventService",
    "CleanupService"
]
