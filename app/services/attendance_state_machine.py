"""
Attendance State Machine - Guarded transitions of a single attendance record

    ASSIGNED --check_in--> ACTIVE --check_out--> COMPLETED
    ASSIGNED --mark_absent--> ABSENT

Every transition is one conditional UPDATE on ar_status. When it matches
zero rows the record is re-read and the refusal for the state it is
actually in is raised, so a lost race looks exactly like a failed guard.
The caller owns the transaction.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from atams.logging import get_logger

from app.core.constants import AttendanceStatus, AttendanceMethod, WITHDRAWAL_NOTE
from app.core.exceptions import (
    AlreadyCheckedInException,
    AlreadyCheckedOutException,
    AttendanceForbiddenException,
    InvalidTransitionException,
    NotCheckedInException,
    TransitionError,
)
from app.models.attendance_record import AttendanceRecord
from app.repositories.attendance_record_repository import AttendanceRecordRepository
from app.utils.time_utils import utcnow, format_duration

logger = get_logger(__name__)

CHECK_IN_FROM = (AttendanceStatus.ASSIGNED.value,)
CHECK_OUT_FROM = (AttendanceStatus.ACTIVE.value, AttendanceStatus.CHECKED_IN.value)


def check_in_refusal(status: str) -> TransitionError:
    if status in (
        AttendanceStatus.ACTIVE.value,
        AttendanceStatus.CHECKED_IN.value,
        AttendanceStatus.COMPLETED.value,
    ):
        return AlreadyCheckedInException(
            "You have already checked in for this event", {"status": status}
        )
    if status == AttendanceStatus.ABSENT.value:
        return AttendanceForbiddenException(details={"status": status})
    return InvalidTransitionException(
        f"Cannot check in from status {status}", {"status": status}
    )


def check_out_refusal(status: str) -> TransitionError:
    if status == AttendanceStatus.COMPLETED.value:
        return AlreadyCheckedOutException(
            "You have already checked out from this event", {"status": status}
        )
    return NotCheckedInException(details={"status": status})


class AttendanceStateMachine:
    def __init__(self) -> None:
        self.repo = AttendanceRecordRepository()

    def check_in(
        self,
        db: Session,
        record: AttendanceRecord,
        method: str = AttendanceMethod.QR.value,
        verified_by: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> AttendanceRecord:
        if record.ar_status not in CHECK_IN_FROM:
            raise check_in_refusal(record.ar_status)

        applied = self.repo.compare_and_set(db, record.ar_id, CHECK_IN_FROM, {
            "ar_status": AttendanceStatus.ACTIVE.value,
            "ar_check_in_time": now or utcnow(),
            "ar_check_in_method": method,
            "ar_check_in_verified_by": verified_by
        })
        db.refresh(record)
        if not applied:
            raise check_in_refusal(record.ar_status)

        logger.info(
            "Attendance checked in",
            extra={'extra_data': {
                'attendance_id': record.ar_id,
                'event_id': record.ar_event_id,
                'staff_id': record.ar_staff_id,
                'method': method
            }}
        )
        return record

    def check_out(
        self,
        db: Session,
        record: AttendanceRecord,
        method: str = AttendanceMethod.QR.value,
        verified_by: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> AttendanceRecord:
        if record.ar_status not in CHECK_OUT_FROM:
            raise check_out_refusal(record.ar_status)

        applied = self.repo.compare_and_set(db, record.ar_id, CHECK_OUT_FROM, {
            "ar_status": AttendanceStatus.COMPLETED.value,
            "ar_check_out_time": now or utcnow(),
            "ar_check_out_method": method,
            "ar_check_out_verified_by": verified_by
        })
        db.refresh(record)
        if not applied:
            raise check_out_refusal(record.ar_status)

        logger.info(
            "Attendance checked out",
            extra={'extra_data': {
                'attendance_id': record.ar_id,
                'event_id': record.ar_event_id,
                'staff_id': record.ar_staff_id,
                'method': method
            }}
        )
        return record

    def mark_absent(self, db: Session, record: AttendanceRecord, notes: str) -> AttendanceRecord:
        """Unconditional; callers gate this to admins"""
        self.repo.compare_and_set(db, record.ar_id, None, {
            "ar_status": AttendanceStatus.ABSENT.value,
            "ar_notes": notes,
            "ar_overridden": True
        })
        db.refresh(record)

        logger.info(
            "Attendance marked absent",
            extra={'extra_data': {'attendance_id': record.ar_id, 'event_id': record.ar_event_id}}
        )
        return record

    @staticmethod
    def duration(record: AttendanceRecord) -> Optional[dict]:
        return format_duration(record.ar_check_in_time, record.ar_check_out_time)

    def mark_withdrawn(self, db: Session, record: AttendanceRecord) -> AttendanceRecord:
        """Staff withdrew after approval; the record ends ABSENT without an override flag"""
        self.repo.compare_and_set(db, record.ar_id, None, {
            "ar_status": AttendanceStatus.ABSENT.value,
            "ar_notes": WITHDRAWAL_NOTE
        })
        db.refresh(record)

        logger.info(
            "Attendance closed after withdrawal",
            extra={'extra_data': {'attendance_id': record.ar_id, 'event_id': record.ar_event_id}}
        )
        return record
