"""
Attendance Service - Staff check-in/check-out flow and admin attendance views
"""
from datetime import timedelta
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from atams.logging import get_logger
from atams.transaction import transaction

from app.core.config import settings
from app.core.constants import AttendanceMethod, AttendanceStatus, EVENT_ACTIVE_STATUSES
from app.core.exceptions import (
    EventTimeInvalidException,
    InvalidStateException,
    NotApprovedException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from app.models.attendance_record import AttendanceRecord as AttendanceRecordModel
from app.models.event import Event
from app.repositories.attendance_record_repository import AttendanceRecordRepository
from app.repositories.event_repository import EventRepository
from app.repositories.event_role_repository import EventRoleRepository
from app.repositories.participant_repository import ParticipantRepository
from app.services.attendance_state_machine import AttendanceStateMachine
from app.services.qr_service import QrService
from app.schemas.attendance import (
    AttendanceListItem,
    AttendanceListResponse,
    AttendanceRecord,
    AttendanceSummary,
    Duration,
    LiveStatsResponse,
    MyStatusResponse,
    ScanResponse,
)
from app.utils.time_utils import utcnow, as_utc

logger = get_logger(__name__)


def duration_of(record: AttendanceRecordModel) -> Optional[Duration]:
    value = AttendanceStateMachine.duration(record)
    return Duration(**value) if value else None


def to_schema(record: AttendanceRecordModel) -> AttendanceRecord:
    result = AttendanceRecord.model_validate(record)
    result.duration = duration_of(record)
    return result


class AttendanceService:
    def __init__(self) -> None:
        self.event_repo = EventRepository()
        self.role_repo = EventRoleRepository()
        self.participant_repo = ParticipantRepository()
        self.record_repo = AttendanceRecordRepository()
        self.qr_service = QrService()
        self.state_machine = AttendanceStateMachine()

    def _get_scannable_event(self, db: Session, token: str) -> Event:
        validation = self.qr_service.validate_or_raise(db, token)

        event = self.event_repo.get_by_id(db, validation.event_id)
        if not event:
            raise ResourceNotFoundException("Event not found")
        if event.ev_status not in EVENT_ACTIVE_STATUSES:
            raise InvalidStateException(
                "Event is not active for attendance", {"event_status": event.ev_status}
            )
        return event

    def _check_time_window(self, event: Event) -> None:
        """Check-in opens before the start and closes after the end by the same margin"""
        window = timedelta(hours=settings.CHECKIN_WINDOW_HOURS)
        now = utcnow()
        opens_at = as_utc(event.ev_start_time) - window
        closes_at = as_utc(event.ev_end_time) + window

        if now < opens_at or now > closes_at:
            raise EventTimeInvalidException(details={
                "opens_at": opens_at.isoformat(),
                "closes_at": closes_at.isoformat()
            })

    def check_in(self, db: Session, staff_id: int, token: str) -> ScanResponse:
        """
        Check in by scanning the event QR code

        Args:
            db: Database session
            staff_id: Current user ID from auth
            token: Scanned QR token

        Returns:
            ScanResponse: Check-in result

        Raises:
            TokenExpiredException / InvalidTokenException / ResourceNotFoundException: QR rejected
            InvalidStateException: Event not active or outside the check-in window
            NotApprovedException: Staff is not an approved participant
            AlreadyCheckedInException / AttendanceForbiddenException: Transition refused
        """
        # 1. Token, event status, time window
        event = self._get_scannable_event(db, token)
        self._check_time_window(event)

        # 2. Approval
        participant = self.participant_repo.get_approved(db, event.ev_id, staff_id)
        if not participant:
            logger.warning(
                "Check-in refused, staff not approved",
                extra={'extra_data': {'event_id': event.ev_id, 'staff_id': staff_id}}
            )
            raise NotApprovedException()

        # 3. Transition
        with transaction(db):
            record, created = self.record_repo.create_if_absent(db, {
                "ar_event_id": event.ev_id,
                "ar_staff_id": staff_id,
                "ar_role_id": participant.pa_role_id,
                "ar_status": AttendanceStatus.ASSIGNED.value
            })
            if created:
                logger.info(
                    "Attendance record created at check-in",
                    extra={'extra_data': {'attendance_id': record.ar_id, 'event_id': event.ev_id}}
                )
            self.state_machine.check_in(db, record, AttendanceMethod.QR.value, None)

        return ScanResponse(
            ar_id=record.ar_id,
            ev_id=event.ev_id,
            ev_title=event.ev_title,
            ar_status=record.ar_status,
            timestamp=as_utc(record.ar_check_in_time),
            message="Check-in successful"
        )

    def check_out(self, db: Session, staff_id: int, token: str) -> ScanResponse:
        """
        Check out by scanning the event QR code

        Raises:
            ResourceNotFoundException: No attendance record for this staff
            AlreadyCheckedOutException / NotCheckedInException: Transition refused
        """
        event = self._get_scannable_event(db, token)

        record = self.record_repo.get_for_event_and_staff(db, event.ev_id, staff_id)
        if not record:
            raise ResourceNotFoundException("Attendance record not found")

        with transaction(db):
            self.state_machine.check_out(db, record, AttendanceMethod.QR.value, None)

        return ScanResponse(
            ar_id=record.ar_id,
            ev_id=event.ev_id,
            ev_title=event.ev_title,
            ar_status=record.ar_status,
            timestamp=as_utc(record.ar_check_out_time),
            duration=duration_of(record),
            message="Check-out successful"
        )

    def get_my_status(self, db: Session, staff_id: int, event_id: int) -> MyStatusResponse:
        """Current staff member's attendance for one event"""
        record = self.record_repo.get_for_event_and_staff(db, event_id, staff_id)
        if not record:
            raise ResourceNotFoundException(
                "No attendance record found for this event",
                {"hint": "You may not be approved for this event yet"}
            )

        event = self.event_repo.get(db, event_id)
        role = self.role_repo.get(db, record.ar_role_id)

        return MyStatusResponse(
            ar_id=record.ar_id,
            ar_status=record.ar_status,
            ar_check_in_time=as_utc(record.ar_check_in_time),
            ar_check_in_method=record.ar_check_in_method,
            ar_check_out_time=as_utc(record.ar_check_out_time),
            ar_check_out_method=record.ar_check_out_method,
            duration=duration_of(record),
            ev_id=event_id,
            ev_title=event.ev_title if event else "",
            ro_name=role.ro_name if role else None,
            ar_overridden=record.ar_overridden,
            ar_notes=record.ar_notes or None
        )

    def _get_owned_event(self, db: Session, event_id: int, admin_id: int) -> Event:
        event = self.event_repo.get_by_id(db, event_id)
        if not event:
            raise ResourceNotFoundException("Event not found")
        if event.ev_created_by != admin_id:
            raise PermissionDeniedException("You don't have permission to view this event's attendance")
        return event

    def live_stats(self, db: Session, event_id: int, admin_id: int) -> LiveStatsResponse:
        """Attendance counts per status with attendance and completion rates"""
        event = self._get_owned_event(db, event_id, admin_id)

        total_approved = self.participant_repo.count_approved(db, event_id)
        counts = self.record_repo.count_by_status(db, event_id)

        summary = AttendanceSummary(
            total_approved=total_approved,
            assigned=counts.get(AttendanceStatus.ASSIGNED.value, 0),
            checked_in=counts.get(AttendanceStatus.CHECKED_IN.value, 0),
            active=counts.get(AttendanceStatus.ACTIVE.value, 0),
            completed=counts.get(AttendanceStatus.COMPLETED.value, 0),
            absent=counts.get(AttendanceStatus.ABSENT.value, 0)
        )

        attended = summary.active + summary.checked_in + summary.completed
        if total_approved > 0:
            attendance_rate = round(attended / total_approved * 100, 1)
            completion_rate = round(summary.completed / total_approved * 100, 1)
        else:
            attendance_rate = completion_rate = 0.0

        return LiveStatsResponse(
            ev_id=event.ev_id,
            ev_title=event.ev_title,
            summary=summary,
            percentages={"attendance": attendance_rate, "completion": completion_rate},
            last_updated=utcnow()
        )

    def list_attendance(
        self,
        db: Session,
        event_id: int,
        admin_id: int,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[AttendanceListResponse, int]:
        """
        Attendance records of an event, optionally filtered by status

        Returns:
            (page, total)
        """
        event = self._get_owned_event(db, event_id, admin_id)

        if status:
            status = status.upper()
            valid = [s.value for s in AttendanceStatus]
            if status not in valid:
                raise ValidationException(
                    "Invalid status filter", {"valid_statuses": valid}
                )

        records = self.record_repo.get_records_for_event(db, event_id, status, skip, limit)
        total = self.record_repo.count_records_for_event(db, event_id, status)

        role_names = {r.ro_id: r.ro_name for r in self.role_repo.list_for_event(db, event_id)}
        items: List[AttendanceListItem] = []
        for record in records:
            item = AttendanceListItem.model_validate(record)
            item.duration = duration_of(record)
            item.ro_name = role_names.get(record.ar_role_id, "Unknown")
            items.append(item)

        return AttendanceListResponse(ev_id=event.ev_id, ev_title=event.ev_title, attendances=items), total
