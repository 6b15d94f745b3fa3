"""
Cleanup Service - Maintenance operations for database hygiene
"""
from sqlalchemy.orm import Session

from atams.logging import get_logger
from atams.transaction import transaction

from app.repositories.qr_code_repository import QrCodeRepository
from app.utils.time_utils import utcnow

logger = get_logger(__name__)


class CleanupService:
    def __init__(self) -> None:
        self.qr_repo = QrCodeRepository()

    def deactivate_expired_qr(self, db: Session) -> int:
        """
        Deactivate QR codes past their expiry. Validation already does this
        lazily per token; this sweeps the ones nobody scanned.

        Args:
            db: Database session

        Returns:
            int: Number of QR codes deactivated
        """
        with transaction(db):
            count = self.qr_repo.deactivate_expired(db, utcnow())

        logger.info("Expired QR codes deactivated", extra={'extra_data': {'count': count}})
        return count
