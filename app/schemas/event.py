"""
Event Schemas for events and their roles
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.constants import EventStatus
from app.schemas.common import fix_datetime_timezone


class EventBase(BaseModel):
    ev_title: str = Field(..., min_length=1, max_length=255)
    ev_description: Optional[str] = None
    ev_location: Optional[str] = Field(default=None, max_length=255)
    ev_start_time: datetime
    ev_end_time: datetime


class EventCreate(EventBase):
    ev_status: EventStatus = EventStatus.DRAFT

    @model_validator(mode='after')
    def check_times(self):
        if self.ev_end_time <= self.ev_start_time:
            raise ValueError("ev_end_time must be after ev_start_time")
        return self


class EventStatusUpdate(BaseModel):
    ev_status: EventStatus


class EventInDB(EventBase):
    model_config = ConfigDict(from_attributes=True)

    ev_id: int
    ev_status: str
    ev_created_by: int
    ev_created_at: Optional[datetime] = None
    ev_updated_at: Optional[datetime] = None

    @field_validator('ev_start_time', 'ev_end_time', 'ev_created_at', 'ev_updated_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return fix_datetime_timezone(v)


class Event(EventInDB):
    pass


class EventRoleCreate(BaseModel):
    ro_name: str = Field(..., min_length=1, max_length=100)
    ro_description: Optional[str] = None
    ro_price: Decimal = Field(default=Decimal("0"), ge=0)
    ro_capacity: int = Field(..., ge=1)


class EventRole(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ro_id: int
    ro_event_id: int
    ro_name: str
    ro_description: Optional[str] = None
    ro_price: Decimal
    ro_capacity: int
    ro_filled_slots: int
    ro_is_active: bool
