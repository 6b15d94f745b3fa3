"""
Participant Model - A staff member's application to a role within an event
"""
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import IdType
from app.core.constants import DB_SCHEMA, ParticipantStatus


class Participant(Base):
    """Participant model for staffing schema - Table: staffing.participants"""
    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("pa_event_id", "pa_staff_id", name="uq_participants_event_staff"),
        {"schema": DB_SCHEMA},
    )

    pa_id = Column(IdType, primary_key=True, index=True, autoincrement=True)
    pa_event_id = Column(BigInteger, ForeignKey(f"{DB_SCHEMA}.events.ev_id"), nullable=False, index=True)
    pa_staff_id = Column(BigInteger, nullable=False, index=True)  # References Atlas users(u_id)
    pa_role_id = Column(BigInteger, ForeignKey(f"{DB_SCHEMA}.event_roles.ro_id"), nullable=False, index=True)
    # Snapshot of the role at application time
    pa_role_name = Column(String(255), nullable=False)
    pa_role_price = Column(Numeric(12, 2), nullable=False)
    pa_status = Column(String(20), nullable=False, default=ParticipantStatus.APPLIED.value)
    pa_status_reason = Column(String(500), nullable=True)
    pa_applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    pa_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
