"""
QR Code Model - Signed event tokens, at most one active per event
"""
from sqlalchemy import Column, BigInteger, String, DateTime, Boolean, ForeignKey, Index, text
from sqlalchemy.sql import func
from atams.db import Base

from app.db.types import IdType
from app.core.constants import DB_SCHEMA


class QrCode(Base):
    """QR code model for staffing schema - Table: staffing.qr_codes"""
    __tablename__ = "qr_codes"
    __table_args__ = (
        Index(
            "uq_qr_codes_active_event",
            "qr_event_id",
            unique=True,
            postgresql_where=text("qr_is_active"),
            sqlite_where=text("qr_is_active = 1"),
        ),
        {"schema": DB_SCHEMA},
    )

    qr_id = Column(IdType, primary_key=True, index=True, autoincrement=True)
    qr_event_id = Column(BigInteger, ForeignKey(f"{DB_SCHEMA}.events.ev_id"), nullable=False, index=True)
    qr_token = Column(String(1024), nullable=False, unique=True)
    qr_jti = Column(String(64), nullable=False, unique=True)  # JWT ID
    qr_expires_at = Column(DateTime(timezone=True), nullable=False)
    qr_created_by = Column(BigInteger, nullable=False)  # References Atlas users(u_id)
    qr_is_active = Column(Boolean, nullable=False, default=True)
    qr_deactivated_at = Column(DateTime(timezone=True), nullable=True)
    qr_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
