"""
QR Code Repository - Data access layer for issued event tokens
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import update

from atams.db import BaseRepository
from app.models.qr_code import QrCode


class QrCodeRepository(BaseRepository[QrCode]):
    def __init__(self):
        super().__init__(QrCode)

    def get_by_token(self, db: Session, token: str) -> Optional[QrCode]:
        return db.query(QrCode).populate_existing().filter(QrCode.qr_token == token).first()

    def get_active_for_event(self, db: Session, event_id: int) -> Optional[QrCode]:
        return db.query(QrCode).populate_existing().filter(
            QrCode.qr_event_id == event_id,
            QrCode.qr_is_active.is_(True)
        ).order_by(QrCode.qr_id.desc()).first()

    def add(self, db: Session, qr_data: dict) -> QrCode:
        """Stage a new token; a concurrent active token surfaces as IntegrityError"""
        db_qr = QrCode(**qr_data)
        db.add(db_qr)
        db.flush()
        return db_qr

    def deactivate_active_for_event(self, db: Session, event_id: int, now: datetime) -> int:
        """Deactivate every active token of an event, returns affected count"""
        result = db.execute(
            update(QrCode)
            .where(
                QrCode.qr_event_id == event_id,
                QrCode.qr_is_active.is_(True)
            )
            .values(qr_is_active=False, qr_deactivated_at=now),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount

    def deactivate(self, db: Session, qr_id: int, now: datetime) -> bool:
        """Conditional deactivation, False if the token was already inactive"""
        result = db.execute(
            update(QrCode)
            .where(
                QrCode.qr_id == qr_id,
                QrCode.qr_is_active.is_(True)
            )
            .values(qr_is_active=False, qr_deactivated_at=now),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount == 1

    def deactivate_expired(self, db: Session, now: datetime) -> int:
        """Deactivate every active token past its expiry"""
        result = db.execute(
            update(QrCode)
            .where(
                QrCode.qr_is_active.is_(True),
                QrCode.qr_expires_at < now
            )
            .values(qr_is_active=False, qr_deactivated_at=now),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount
