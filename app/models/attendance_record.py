"""
Attendance Record Model - One check-in/check-out tracker per (event, staff)
"""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import IdType
from app.core.constants import DB_SCHEMA, AttendanceStatus


class AttendanceRecord(Base):
    """Attendance record model for staffing schema - Table: staffing.attendance_records"""
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("ar_event_id", "ar_staff_id", name="uq_attendance_records_event_staff"),
        {"schema": DB_SCHEMA},
    )

    ar_id = Column(IdType, primary_key=True, index=True, autoincrement=True)
    ar_event_id = Column(BigInteger, ForeignKey(f"{DB_SCHEMA}.events.ev_id"), nullable=False, index=True)
    ar_staff_id = Column(BigInteger, nullable=False, index=True)  # References Atlas users(u_id)
    ar_role_id = Column(BigInteger, ForeignKey(f"{DB_SCHEMA}.event_roles.ro_id"), nullable=False)
    ar_status = Column(String(20), nullable=False, default=AttendanceStatus.ASSIGNED.value, index=True)
    ar_check_in_time = Column(DateTime(timezone=True), nullable=True)
    ar_check_in_method = Column(String(10), nullable=True)  # 'qr', 'manual' or 'override'
    ar_check_in_verified_by = Column(BigInteger, nullable=True)
    ar_check_out_time = Column(DateTime(timezone=True), nullable=True)
    ar_check_out_method = Column(String(10), nullable=True)
    ar_check_out_verified_by = Column(BigInteger, nullable=True)
    ar_overridden = Column(Boolean, nullable=False, default=False)
    ar_notes = Column(Text, nullable=False, default="")
    ar_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ar_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
