from .event import Event, EventCreate, EventStatusUpdate, EventRole, EventRoleCreate
from .participant import (
    Participant,
    ApplyRequest,
    ChangeRoleRequest,
    RejectRequest,
    ApprovalResult,
    ParticipantsByRole
)
from .attendance import (
    AttendanceRecord,
    AttendanceListResponse,
    ScanRequest,
    ScanResponse,
    MyStatusResponse,
    LiveStatsResponse
)
from .qr import QrGenerateRequest, QrIssued, ActiveQr
from .override import OverrideRequest, AttendanceOverride, OverrideResult
from .common import DataResponse, PaginationResponse

__all__ = [
    # Event schemas
    "Event",
    "EventCreate",
    "EventStatusUpdate",
    "EventRole",
    "EventRoleCreate",
    # Participant schemas
    "Participant",
    "ApplyRequest",
    "ChangeRoleRequest",
    "RejectRequest",
    "ApprovalResult",
    "ParticipantsByRole",
    # Attendance schemas
    "AttendanceRecord",
    "AttendanceListResponse",
    "ScanRequest",
    "ScanResponse",
    "MyStatusResponse",
    "LiveStatsResponse",
    # QR schemas
    "QrGenerateRequest",
    "QrIssued",
    "ActiveQr",
    # Override schemas
    "OverrideRequest",
    "AttendanceOverride",
    "OverrideResult",
    # Common schemas
    "DataResponse",
    "PaginationResponse"
]
