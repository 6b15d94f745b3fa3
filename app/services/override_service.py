"""
Override Service - Admin corrections of attendance outside the normal transitions

Each call locks the record, applies the action, and writes exactly one audit
entry in the same transaction. Calls are not idempotent: repeating one
produces another entry.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from atams.logging import get_logger
from atams.transaction import transaction

from app.core.config import settings
from app.core.constants import AttendanceMethod, AttendanceStatus, OverrideAction
from app.core.exceptions import (
    NotCheckedInException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from app.models.attendance_record import AttendanceRecord as AttendanceRecordModel
from app.repositories.attendance_record_repository import AttendanceRecordRepository
from app.repositories.event_repository import EventRepository
from app.services.attendance_service import to_schema
from app.services.attendance_state_machine import AttendanceStateMachine
from app.services.audit_service import AuditService
from app.schemas.override import AttendanceOverride, OverrideResult
from app.utils.time_utils import utcnow, as_utc

logger = get_logger(__name__)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def snapshot(record: AttendanceRecordModel) -> dict:
    """Status plus both check-in and check-out blocks, JSON ready"""
    return {
        "status": record.ar_status,
        "checkIn": {
            "time": _isoformat(record.ar_check_in_time),
            "method": record.ar_check_in_method,
            "verifiedBy": record.ar_check_in_verified_by
        },
        "checkOut": {
            "time": _isoformat(record.ar_check_out_time),
            "method": record.ar_check_out_method,
            "verifiedBy": record.ar_check_out_verified_by
        }
    }


class OverrideService:
    def __init__(self) -> None:
        self.event_repo = EventRepository()
        self.record_repo = AttendanceRecordRepository()
        self.audit_service = AuditService()
        self.state_machine = AttendanceStateMachine()

    def _check_owner(self, db: Session, record: AttendanceRecordModel, admin_id: int) -> None:
        event = self.event_repo.get(db, record.ar_event_id)
        if not event or event.ev_created_by != admin_id:
            raise PermissionDeniedException("You don't have permission to override this attendance")

    def override(
        self,
        db: Session,
        attendance_id: int,
        admin_id: int,
        action: str,
        reason: str,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        new_status: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> OverrideResult:
        """
        Apply an admin override

        Raises:
            ValidationException: Reason too short, unknown action, bad target status
            ResourceNotFoundException: Attendance record not found
            PermissionDeniedException: Admin does not own the event
            NotCheckedInException: Check-out override without a check-in
        """
        reason = (reason or "").strip()
        if len(reason) < settings.OVERRIDE_REASON_MIN_LENGTH:
            raise ValidationException(
                f"Reason must be at least {settings.OVERRIDE_REASON_MIN_LENGTH} characters",
                {"length": len(reason)}
            )

        try:
            action = OverrideAction(action)
        except ValueError:
            raise ValidationException(
                "Invalid override action", {"valid_actions": [a.value for a in OverrideAction]}
            )

        if action is OverrideAction.STATUS_CHANGE:
            valid_statuses = [s.value for s in AttendanceStatus]
            if not new_status:
                raise ValidationException("New status is required for STATUS_CHANGE action")
            if new_status not in valid_statuses:
                raise ValidationException("Invalid status value", {"valid_statuses": valid_statuses})

        with transaction(db):
            record = self.record_repo.get_for_update(db, attendance_id)
            if not record:
                raise ResourceNotFoundException("Attendance record not found")
            self._check_owner(db, record, admin_id)

            before = snapshot(record)
            now = utcnow()

            if action is OverrideAction.CHECK_IN_OVERRIDE:
                record.ar_check_in_time = as_utc(check_in_time) or now
                record.ar_check_in_method = AttendanceMethod.OVERRIDE.value
                record.ar_check_in_verified_by = admin_id
                record.ar_status = AttendanceStatus.ACTIVE.value

            elif action is OverrideAction.CHECK_OUT_OVERRIDE:
                if record.ar_check_in_time is None:
                    raise NotCheckedInException(
                        "Cannot override check-out without check-in",
                        {"hint": "Perform check-in override first"}
                    )
                record.ar_check_out_time = as_utc(check_out_time) or now
                record.ar_check_out_method = AttendanceMethod.OVERRIDE.value
                record.ar_check_out_verified_by = admin_id
                record.ar_status = AttendanceStatus.COMPLETED.value

            elif action is OverrideAction.MARK_ABSENT:
                self.state_machine.mark_absent(db, record, reason)

            else:
                record.ar_status = new_status

            record.ar_overridden = True
            if action is not OverrideAction.MARK_ABSENT:
                tag = f"[Override: {reason}]"
                record.ar_notes = f"{record.ar_notes}\n{tag}" if record.ar_notes else tag

            db.flush()
            after = snapshot(record)

            entry = self.audit_service.record(db, {
                "ao_attendance_id": record.ar_id,
                "ao_admin_id": admin_id,
                "ao_action": action.value,
                "ao_reason": reason,
                "ao_before": before,
                "ao_after": after,
                "ao_ip_address": ip_address,
                "ao_created_at": now
            })

        logger.info(
            "Attendance overridden",
            extra={'extra_data': {
                'attendance_id': attendance_id,
                'admin_id': admin_id,
                'action': action.value,
                'previous_status': before["status"],
                'updated_status': after["status"]
            }}
        )

        return OverrideResult(
            attendance=to_schema(record),
            override=AttendanceOverride.model_validate(entry)
        )

    def history(self, db: Session, attendance_id: int, admin_id: int) -> List[AttendanceOverride]:
        """Override entries for one record, newest first"""
        record = self.record_repo.get(db, attendance_id)
        if not record:
            raise ResourceNotFoundException("Attendance record not found")
        self._check_owner(db, record, admin_id)

        entries = self.audit_service.history_for_attendance(db, attendance_id)
        return [AttendanceOverride.model_validate(e) for e in entries]

    def history_for_admin(self, db: Session, admin_id: int, limit: int = 50) -> List[AttendanceOverride]:
        entries = self.audit_service.history_for_actor(db, admin_id, limit)
        return [AttendanceOverride.model_validate(e) for e in entries]
