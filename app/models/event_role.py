"""
Event Role Model - Paid positions within an event, with slot capacity
"""
from sqlalchemy import (
    Column, BigInteger, Integer, String, Text, Numeric, DateTime, Boolean, ForeignKey, CheckConstraint
)
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import IdType
from app.core.constants import DB_SCHEMA


class EventRole(Base):
    """Event role model for staffing schema - Table: staffing.event_roles"""
    __tablename__ = "event_roles"
    __table_args__ = (
        CheckConstraint("ro_capacity >= 1", name="ck_event_roles_capacity"),
        CheckConstraint(
            "ro_filled_slots >= 0 AND ro_filled_slots <= ro_capacity",
            name="ck_event_roles_filled_slots"
        ),
        {"schema": DB_SCHEMA},
    )

    ro_id = Column(IdType, primary_key=True, index=True, autoincrement=True)
    ro_event_id = Column(BigInteger, ForeignKey(f"{DB_SCHEMA}.events.ev_id"), nullable=False, index=True)
    ro_name = Column(String(255), nullable=False)
    ro_description = Column(Text, nullable=True)
    ro_price = Column(Numeric(12, 2), nullable=False, default=0)
    ro_capacity = Column(Integer, nullable=False)
    ro_filled_slots = Column(Integer, nullable=False, default=0)
    ro_is_active = Column(Boolean, nullable=False, default=True)
    ro_is_deleted = Column(Boolean, nullable=False, default=False)
    ro_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ro_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
