"""
QR Code Schemas
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class QrGenerateRequest(BaseModel):
    event_id: int
    expires_in_minutes: Optional[int] = Field(default=None, description="30 to 480, defaults to 120")


class QrIssued(BaseModel):
    qr_id: int
    event_id: int
    event_title: str
    token: str
    expires_at: datetime
    expires_in_minutes: int
    qr_image: str


class ActiveQr(BaseModel):
    qr_id: int
    event_id: int
    event_title: str
    token: str
    expires_at: datetime
    created_at: Optional[datetime] = None
    is_expired: bool
    remaining_minutes: int
    qr_image: str
