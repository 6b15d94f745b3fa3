"""
Event Model - Events owned by an admin, the unit QR codes are issued for
"""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, Boolean
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import IdType
from app.core.constants import DB_SCHEMA, EventStatus


class Event(Base):
    """Event model for staffing schema - Table: staffing.events"""
    __tablename__ = "events"
    __table_args__ = {"schema": DB_SCHEMA}

    ev_id = Column(IdType, primary_key=True, index=True, autoincrement=True)
    ev_title = Column(String(255), nullable=False)
    ev_description = Column(Text, nullable=True)
    ev_location = Column(String(255), nullable=True)
    ev_status = Column(String(20), nullable=False, default=EventStatus.DRAFT.value, index=True)
    ev_created_by = Column(BigInteger, nullable=False, index=True)  # References Atlas users(u_id)
    ev_start_time = Column(DateTime(timezone=True), nullable=False)
    ev_end_time = Column(DateTime(timezone=True), nullable=False)
    ev_is_deleted = Column(Boolean, nullable=False, default=False)
    ev_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ev_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
