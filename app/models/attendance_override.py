"""
Attendance Override Model - Append-only audit trail for admin overrides
"""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import IdType
from app.core.constants import DB_SCHEMA


class AttendanceOverride(Base):
    """Attendance override model for staffing schema - Table: staffing.attendance_overrides"""
    __tablename__ = "attendance_overrides"
    __table_args__ = {"schema": DB_SCHEMA}

    ao_id = Column(IdType, primary_key=True, index=True, autoincrement=True)
    ao_attendance_id = Column(
        BigInteger, ForeignKey(f"{DB_SCHEMA}.attendance_records.ar_id"), nullable=False, index=True
    )
    ao_admin_id = Column(BigInteger, nullable=False, index=True)  # References Atlas users(u_id)
    ao_action = Column(String(30), nullable=False)
    ao_reason = Column(Text, nullable=False)
    ao_before = Column(JSON, nullable=False)  # {"status", "checkIn": {...}, "checkOut": {...}}
    ao_after = Column(JSON, nullable=False)
    ao_ip_address = Column(String(64), nullable=True)
    ao_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
