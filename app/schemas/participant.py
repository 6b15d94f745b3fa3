"""
Participant Schemas for applications and their review
"""
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import fix_datetime_timezone


class ParticipantInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pa_id: int
    pa_event_id: int
    pa_staff_id: int
    pa_role_id: int
    pa_role_name: str
    pa_role_price: Decimal
    pa_status: str
    pa_status_reason: Optional[str] = None
    pa_applied_at: Optional[datetime] = None
    pa_updated_at: Optional[datetime] = None

    @field_validator('pa_applied_at', 'pa_updated_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return fix_datetime_timezone(v)


class Participant(ParticipantInDB):
    pass


class ApplyRequest(BaseModel):
    role_id: int


class ChangeRoleRequest(BaseModel):
    role_id: int
    reason: str = Field(..., min_length=1)


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class ApprovalResult(BaseModel):
    participant: Participant
    ar_id: int
    attendance_created: bool


class RoleGroup(BaseModel):
    ro_name: str
    participants: List[Participant]


class ParticipantsByRole(BaseModel):
    ev_id: int
    total: int
    summary: Dict[str, int]
    roles: List[RoleGroup]
