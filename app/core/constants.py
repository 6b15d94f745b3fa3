"""
Domain constants shared by models, services and schemas
"""
from enum import Enum


DB_SCHEMA = "staffing"

QR_TOKEN_TYPE_EVENT = "EVENT_QR"


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Events that accept QR issuance and scans
EVENT_ACTIVE_STATUSES = (EventStatus.PUBLISHED.value, EventStatus.IN_PROGRESS.value)


class AttendanceStatus(str, Enum):
    """
    Attendance lifecycle.

    CHECKED_IN is never produced by a normal check-in (which goes straight to
    ACTIVE) but is still accepted as a valid source state for check-out.
    """
    ASSIGNED = "ASSIGNED"
    CHECKED_IN = "CHECKED_IN"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ABSENT = "ABSENT"


class AttendanceMethod(str, Enum):
    QR = "qr"
    MANUAL = "manual"
    OVERRIDE = "override"


class OverrideAction(str, Enum):
    CHECK_IN_OVERRIDE = "CHECK_IN_OVERRIDE"
    CHECK_OUT_OVERRIDE = "CHECK_OUT_OVERRIDE"
    MARK_ABSENT = "MARK_ABSENT"
    STATUS_CHANGE = "STATUS_CHANGE"


class ParticipantStatus(str, Enum):
    APPLIED = "applied"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


WITHDRAWAL_NOTE = "Application withdrawn by staff"
