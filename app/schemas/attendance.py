"""
Attendance Schemas for records, scans and admin views
"""
from typing import Optional, Dict, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import fix_datetime_timezone


class Duration(BaseModel):
    hours: int
    minutes: int
    formatted: str


class AttendanceRecordInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ar_id: int
    ar_event_id: int
    ar_staff_id: int
    ar_role_id: int
    ar_status: str
    ar_check_in_time: Optional[datetime] = None
    ar_check_in_method: Optional[str] = None
    ar_check_in_verified_by: Optional[int] = None
    ar_check_out_time: Optional[datetime] = None
    ar_check_out_method: Optional[str] = None
    ar_check_out_verified_by: Optional[int] = None
    ar_overridden: bool = False
    ar_notes: Optional[str] = None
    ar_created_at: Optional[datetime] = None
    ar_updated_at: Optional[datetime] = None

    @field_validator(
        'ar_check_in_time', 'ar_check_out_time', 'ar_created_at', 'ar_updated_at', mode='before'
    )
    @classmethod
    def fix_datetime_timezone(cls, v):
        return fix_datetime_timezone(v)


class AttendanceRecord(AttendanceRecordInDB):
    duration: Optional[Duration] = None


# Request/Response schemas for API endpoints
class ScanRequest(BaseModel):
    """Request schema for check-in and check-out"""
    token: str = Field(..., min_length=1)  # JWT from QR code


class ScanResponse(BaseModel):
    ar_id: int
    ev_id: int
    ev_title: str
    ar_status: str
    timestamp: datetime
    duration: Optional[Duration] = None
    message: str


class MyStatusResponse(BaseModel):
    ar_id: int
    ar_status: str
    ar_check_in_time: Optional[datetime] = None
    ar_check_in_method: Optional[str] = None
    ar_check_out_time: Optional[datetime] = None
    ar_check_out_method: Optional[str] = None
    duration: Optional[Duration] = None
    ev_id: int
    ev_title: str
    ro_name: Optional[str] = None
    ar_overridden: bool
    ar_notes: Optional[str] = None


class AttendanceSummary(BaseModel):
    total_approved: int
    assigned: int = 0
    checked_in: int = 0
    active: int = 0
    completed: int = 0
    absent: int = 0


class LiveStatsResponse(BaseModel):
    ev_id: int
    ev_title: str
    summary: AttendanceSummary
    percentages: Dict[str, float]
    last_updated: datetime


class AttendanceListItem(AttendanceRecord):
    ro_name: Optional[str] = None


class AttendanceListResponse(BaseModel):
    ev_id: int
    ev_title: str
    attendances: List[AttendanceListItem]
