"""
Audit Service - Append-only trail of admin overrides
"""
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from atams.logging import get_logger

from app.core.config import settings
from app.models.attendance_override import AttendanceOverride
from app.repositories.attendance_override_repository import AttendanceOverrideRepository
from app.utils.time_utils import utcnow

logger = get_logger(__name__)


class AuditService:
    def __init__(self) -> None:
        self.repo = AttendanceOverrideRepository()

    def record(self, db: Session, entry: dict) -> AttendanceOverride:
        """
        Append one entry in the caller's transaction.

        Nothing is committed here; storage errors propagate so the caller's
        transaction rolls back together with the change being audited.
        """
        entry_data = dict(entry)
        entry_data.setdefault("ao_created_at", utcnow())
        return self.repo.append(db, entry_data)

    def record_best_effort(self, db: Session, entry: dict) -> bool:
        """Append on a non-critical path, a storage failure is logged and dropped"""
        try:
            with db.begin_nested():
                self.record(db, entry)
            return True
        except SQLAlchemyError as e:
            logger.error(
                f"Audit entry dropped: {str(e)}",
                extra={'extra_data': {
                    'attendance_id': entry.get("ao_attendance_id"),
                    'action': entry.get("ao_action")
                }}
            )
            return False

    def history_for_attendance(self, db: Session, attendance_id: int) -> List[AttendanceOverride]:
        return self.repo.get_for_attendance(db, attendance_id)

    def history_for_actor(self, db: Session, admin_id: int, limit: int = 50) -> List[AttendanceOverride]:
        limit = max(1, min(limit, settings.AUDIT_HISTORY_MAX_LIMIT))
        return self.repo.get_for_admin(db, admin_id, limit)
