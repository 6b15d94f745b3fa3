"""
Participant Repository - Data access layer for event applications
"""
from typing import Optional, List, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import update

from atams.db import BaseRepository
from app.models.participant import Participant
from app.core.constants import ParticipantStatus


class ParticipantRepository(BaseRepository[Participant]):
    def __init__(self):
        super().__init__(Participant)

    def get_for_event_and_staff(self, db: Session, event_id: int, staff_id: int) -> Optional[Participant]:
        return db.query(Participant).populate_existing().filter(
            Participant.pa_event_id == event_id,
            Participant.pa_staff_id == staff_id
        ).first()

    def get_by_id(self, db: Session, participant_id: int) -> Optional[Participant]:
        """Current row state, overriding whatever the session holds"""
        return db.query(Participant).populate_existing().filter(
            Participant.pa_id == participant_id
        ).first()

    def get_approved(self, db: Session, event_id: int, staff_id: int) -> Optional[Participant]:
        return db.query(Participant).populate_existing().filter(
            Participant.pa_event_id == event_id,
            Participant.pa_staff_id == staff_id,
            Participant.pa_status == ParticipantStatus.APPROVED.value
        ).first()

    def list_for_event(self, db: Session, event_id: int) -> List[Participant]:
        return db.query(Participant).filter(
            Participant.pa_event_id == event_id
        ).order_by(Participant.pa_applied_at.desc(), Participant.pa_id.desc()).all()

    def add(self, db: Session, participant_data: dict) -> Participant:
        """Stage a new participant; duplicates surface as IntegrityError on flush"""
        db_participant = Participant(**participant_data)
        db.add(db_participant)
        db.flush()
        return db_participant

    def transition_status(
        self,
        db: Session,
        participant_id: int,
        expected: Sequence[str],
        values: dict
    ) -> bool:
        """Conditional status update, True only if the row was still in an expected status"""
        result = db.execute(
            update(Participant)
            .where(
                Participant.pa_id == participant_id,
                Participant.pa_status.in_(list(expected))
            )
            .values(**values),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount == 1

    def count_approved(self, db: Session, event_id: int) -> int:
        """Count approved participants of an event using native SQL"""
        query = """
            SELECT COUNT(*)
            FROM staffing.participants
            WHERE pa_event_id = :event_id
            AND pa_status = :status
        """
        return self.execute_raw_sql_scalar(
            db, query, {"event_id": event_id, "status": ParticipantStatus.APPROVED.value}
        )
