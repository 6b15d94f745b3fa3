"""
Override Schemas for admin attendance overrides and their audit trail
"""
from typing import Optional, Any, Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.constants import OverrideAction
from app.schemas.common import fix_datetime_timezone
from app.schemas.attendance import AttendanceRecord


class OverrideRequest(BaseModel):
    action: OverrideAction
    reason: str
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    new_status: Optional[str] = Field(default=None, description="Required for STATUS_CHANGE")


class AttendanceOverrideInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ao_id: int
    ao_attendance_id: int
    ao_admin_id: int
    ao_action: str
    ao_reason: str
    ao_before: Dict[str, Any]
    ao_after: Dict[str, Any]
    ao_ip_address: Optional[str] = None
    ao_created_at: datetime

    @field_validator('ao_created_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return fix_datetime_timezone(v)


class AttendanceOverride(AttendanceOverrideInDB):
    pass


class OverrideResult(BaseModel):
    attendance: AttendanceRecord
    override: AttendanceOverride
