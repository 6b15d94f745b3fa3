"""
Participant Service - Applications, their review, and role slot bookkeeping

Slot counters only move through EventRoleRepository.reserve_slot /
release_slot, each a single conditional UPDATE, and always inside the same
transaction as the participant write they belong to.
"""
from collections import OrderedDict
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from atams.logging import get_logger
from atams.transaction import transaction

from app.core.constants import AttendanceStatus, EventStatus, ParticipantStatus
from app.core.exceptions import (
    AlreadyAppliedException,
    AlreadyApprovedException,
    AlreadyRejectedException,
    InvalidRoleException,
    InvalidStateException,
    PermissionDeniedException,
    ResourceNotFoundException,
    RoleFullException,
    ValidationException,
)
from app.models.event import Event
from app.models.participant import Participant as ParticipantModel
from app.repositories.attendance_record_repository import AttendanceRecordRepository
from app.repositories.event_repository import EventRepository
from app.repositories.event_role_repository import EventRoleRepository
from app.repositories.participant_repository import ParticipantRepository
from app.services.attendance_state_machine import AttendanceStateMachine
from app.schemas.participant import ApprovalResult, Participant, ParticipantsByRole, RoleGroup
from app.utils.time_utils import utcnow

logger = get_logger(__name__)


class ParticipantService:
    def __init__(self) -> None:
        self.event_repo = EventRepository()
        self.role_repo = EventRoleRepository()
        self.participant_repo = ParticipantRepository()
        self.record_repo = AttendanceRecordRepository()
        self.state_machine = AttendanceStateMachine()

    def _get_event(self, db: Session, event_id: int) -> Event:
        event = self.event_repo.get_by_id(db, event_id)
        if not event:
            raise ResourceNotFoundException("Event not found")
        return event

    def _get_reviewable(self, db: Session, participant_id: int, admin_id: int) -> ParticipantModel:
        participant = self.participant_repo.get_by_id(db, participant_id)
        if not participant:
            raise ResourceNotFoundException("Participant not found")

        event = self.event_repo.get(db, participant.pa_event_id)
        if not event or event.ev_created_by != admin_id:
            raise PermissionDeniedException("You don't have permission to manage this event's participants")
        return participant

    def apply(self, db: Session, event_id: int, staff_id: int, role_id: int) -> Participant:
        """
        Apply to a role of a published event

        Raises:
            ResourceNotFoundException: Event not found
            InvalidStateException: Event not published
            InvalidRoleException: Role not part of the event
            RoleFullException: No free slot left
            AlreadyAppliedException: Staff already applied to this event
        """
        event = self._get_event(db, event_id)
        if event.ev_status != EventStatus.PUBLISHED.value:
            raise InvalidStateException(
                "Event is not open for applications", {"event_status": event.ev_status}
            )

        role = self.role_repo.get_for_event(db, role_id, event_id)
        if not role:
            raise InvalidRoleException()
        if role.ro_filled_slots >= role.ro_capacity:
            raise RoleFullException(details={"role_id": role_id})

        if self.participant_repo.get_for_event_and_staff(db, event_id, staff_id):
            raise AlreadyAppliedException()

        try:
            with transaction(db):
                if not self.role_repo.reserve_slot(db, role_id):
                    raise RoleFullException(details={"role_id": role_id})

                participant = self.participant_repo.add(db, {
                    "pa_event_id": event_id,
                    "pa_staff_id": staff_id,
                    "pa_role_id": role_id,
                    "pa_role_name": role.ro_name,
                    "pa_role_price": role.ro_price,
                    "pa_status": ParticipantStatus.APPLIED.value,
                    "pa_applied_at": utcnow()
                })
        except IntegrityError:
            # Concurrent application by the same staff; the slot was rolled back too
            raise AlreadyAppliedException()

        logger.info(
            "Participant applied",
            extra={'extra_data': {'event_id': event_id, 'staff_id': staff_id, 'role_id': role_id}}
        )
        return Participant.model_validate(participant)

    def approve(self, db: Session, participant_id: int, admin_id: int) -> ApprovalResult:
        """
        Approve an application and open its attendance record

        The record insert is idempotent: an existing record for the
        (event, staff) pair is returned instead of failing.
        """
        participant = self._get_reviewable(db, participant_id, admin_id)

        if participant.pa_status == ParticipantStatus.APPROVED.value:
            raise AlreadyApprovedException()
        if participant.pa_status != ParticipantStatus.APPLIED.value:
            raise InvalidStateException(
                f"Cannot approve participant with status: {participant.pa_status}",
                {"status": participant.pa_status}
            )

        with transaction(db):
            approved = self.participant_repo.transition_status(
                db,
                participant_id,
                [ParticipantStatus.APPLIED.value],
                {"pa_status": ParticipantStatus.APPROVED.value, "pa_updated_at": utcnow()}
            )
            if not approved:
                db.refresh(participant)
                if participant.pa_status == ParticipantStatus.APPROVED.value:
                    raise AlreadyApprovedException()
                raise InvalidStateException(
                    f"Cannot approve participant with status: {participant.pa_status}",
                    {"status": participant.pa_status}
                )

            record, created = self.record_repo.create_if_absent(db, {
                "ar_event_id": participant.pa_event_id,
                "ar_staff_id": participant.pa_staff_id,
                "ar_role_id": participant.pa_role_id,
                "ar_status": AttendanceStatus.ASSIGNED.value
            })
            db.refresh(participant)

        logger.info(
            "Participant approved",
            extra={'extra_data': {
                'participant_id': participant_id,
                'admin_id': admin_id,
                'attendance_id': record.ar_id,
                'attendance_created': created
            }}
        )
        return ApprovalResult(
            participant=Participant.model_validate(participant),
            ar_id=record.ar_id,
            attendance_created=created
        )

    def reject(
        self,
        db: Session,
        participant_id: int,
        admin_id: int,
        reason: Optional[str] = None
    ) -> Participant:
        """Reject an application and free its slot"""
        participant = self._get_reviewable(db, participant_id, admin_id)

        if participant.pa_status == ParticipantStatus.REJECTED.value:
            raise AlreadyRejectedException()
        if participant.pa_status != ParticipantStatus.APPLIED.value:
            raise InvalidStateException(
                f"Cannot reject participant with status: {participant.pa_status}",
                {"status": participant.pa_status}
            )

        with transaction(db):
            rejected = self.participant_repo.transition_status(
                db,
                participant_id,
                [ParticipantStatus.APPLIED.value],
                {
                    "pa_status": ParticipantStatus.REJECTED.value,
                    "pa_status_reason": reason,
                    "pa_updated_at": utcnow()
                }
            )
            if not rejected:
                db.refresh(participant)
                if participant.pa_status == ParticipantStatus.REJECTED.value:
                    raise AlreadyRejectedException()
                raise InvalidStateException(
                    f"Cannot reject participant with status: {participant.pa_status}",
                    {"status": participant.pa_status}
                )
            self.role_repo.release_slot(db, participant.pa_role_id)
            db.refresh(participant)

        logger.info(
            "Participant rejected",
            extra={'extra_data': {'participant_id': participant_id, 'admin_id': admin_id}}
        )
        return Participant.model_validate(participant)

    def change_role(
        self,
        db: Session,
        event_id: int,
        staff_id: int,
        new_role_id: int,
        reason: str
    ) -> Participant:
        """
        Move a pending application to another role of the same event

        Raises:
            ValidationException: Missing reason or same role
            ResourceNotFoundException: No application for this event
            InvalidStateException: Application already reviewed or withdrawn
            InvalidRoleException: Role not part of the event
            RoleFullException: Destination role has no free slot
        """
        if not reason or not reason.strip():
            raise ValidationException("Reason for role change is required")

        participant = self.participant_repo.get_for_event_and_staff(db, event_id, staff_id)
        if not participant:
            raise ResourceNotFoundException("Application not found")
        if participant.pa_status != ParticipantStatus.APPLIED.value:
            raise InvalidStateException(
                "Role can only be changed while the application is pending",
                {"status": participant.pa_status}
            )

        new_role = self.role_repo.get_for_event(db, new_role_id, event_id)
        if not new_role:
            raise InvalidRoleException()

        old_role_id = participant.pa_role_id
        if old_role_id == new_role_id:
            raise ValidationException("New role must be different from the current role")

        with transaction(db):
            if not self.role_repo.reserve_slot(db, new_role_id):
                raise RoleFullException(details={"role_id": new_role_id})

            moved = self.participant_repo.transition_status(
                db,
                participant.pa_id,
                [ParticipantStatus.APPLIED.value],
                {
                    "pa_role_id": new_role_id,
                    "pa_role_name": new_role.ro_name,
                    "pa_role_price": new_role.ro_price,
                    "pa_status_reason": reason.strip(),
                    "pa_updated_at": utcnow()
                }
            )
            if not moved:
                raise InvalidStateException("Role can only be changed while the application is pending")

            self.role_repo.release_slot(db, old_role_id)
            db.refresh(participant)

        logger.info(
            "Participant role changed",
            extra={'extra_data': {
                'participant_id': participant.pa_id,
                'old_role_id': old_role_id,
                'new_role_id': new_role_id
            }}
        )
        return Participant.model_validate(participant)

    def withdraw(self, db: Session, event_id: int, staff_id: int) -> Participant:
        """
        Withdraw an application. An existing attendance record is closed as ABSENT.
        """
        participant = self.participant_repo.get_for_event_and_staff(db, event_id, staff_id)
        if not participant:
            raise ResourceNotFoundException("Application not found")

        closed = (ParticipantStatus.CANCELLED.value, ParticipantStatus.REJECTED.value)
        if participant.pa_status in closed:
            raise InvalidStateException(
                f"Application is already {participant.pa_status}",
                {"status": participant.pa_status}
            )

        with transaction(db):
            withdrawn = self.participant_repo.transition_status(
                db,
                participant.pa_id,
                [ParticipantStatus.APPLIED.value, ParticipantStatus.APPROVED.value],
                {"pa_status": ParticipantStatus.CANCELLED.value, "pa_updated_at": utcnow()}
            )
            if not withdrawn:
                db.refresh(participant)
                raise InvalidStateException(
                    f"Application is already {participant.pa_status}",
                    {"status": participant.pa_status}
                )
            self.role_repo.release_slot(db, participant.pa_role_id)

            record = self.record_repo.get_for_event_and_staff(db, event_id, staff_id)
            if record:
                self.state_machine.mark_withdrawn(db, record)
            db.refresh(participant)

        logger.info(
            "Participant withdrew",
            extra={'extra_data': {'participant_id': participant.pa_id, 'event_id': event_id}}
        )
        return Participant.model_validate(participant)

    def list_participants(self, db: Session, event_id: int, admin_id: int) -> ParticipantsByRole:
        """Participants of an event grouped by role name, with a status summary"""
        event = self._get_event(db, event_id)
        if event.ev_created_by != admin_id:
            raise PermissionDeniedException("You don't have permission to view participants for this event")

        participants = self.participant_repo.list_for_event(db, event_id)

        grouped = OrderedDict()
        for p in participants:
            grouped.setdefault(p.pa_role_name, []).append(Participant.model_validate(p))

        summary = {s.value: 0 for s in ParticipantStatus}
        for p in participants:
            summary[p.pa_status] = summary.get(p.pa_status, 0) + 1

        return ParticipantsByRole(
            ev_id=event_id,
            total=len(participants),
            summary=summary,
            roles=[RoleGroup(ro_name=name, participants=items) for name, items in grouped.items()]
        )
