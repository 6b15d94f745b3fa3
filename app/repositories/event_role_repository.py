"""
Event Role Repository - Data access layer for roles and their slot counters
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import update

from atams.db import BaseRepository
from app.models.event_role import EventRole


class EventRoleRepository(BaseRepository[EventRole]):
    def __init__(self):
        super().__init__(EventRole)

    def get_for_event(self, db: Session, role_id: int, event_id: int) -> Optional[EventRole]:
        """Get a live role that belongs to the given event using ORM"""
        return db.query(EventRole).populate_existing().filter(
            EventRole.ro_id == role_id,
            EventRole.ro_event_id == event_id,
            EventRole.ro_is_deleted.is_(False),
            EventRole.ro_is_active.is_(True)
        ).first()

    def list_for_event(self, db: Session, event_id: int) -> List[EventRole]:
        return db.query(EventRole).filter(
            EventRole.ro_event_id == event_id,
            EventRole.ro_is_deleted.is_(False)
        ).order_by(EventRole.ro_id.asc()).all()

    def add(self, db: Session, role_data: dict) -> EventRole:
        """Stage a new role in the current transaction"""
        db_role = EventRole(**role_data)
        db.add(db_role)
        db.flush()
        return db_role

    def reserve_slot(self, db: Session, role_id: int) -> bool:
        """
        Take one slot in a single conditional UPDATE.
        Returns False when the role is full (or gone), never over-allocates.
        """
        result = db.execute(
            update(EventRole)
            .where(
                EventRole.ro_id == role_id,
                EventRole.ro_filled_slots < EventRole.ro_capacity,
                EventRole.ro_is_deleted.is_(False),
                EventRole.ro_is_active.is_(True)
            )
            .values(ro_filled_slots=EventRole.ro_filled_slots + 1),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount == 1

    def release_slot(self, db: Session, role_id: int) -> bool:
        """Give one slot back, floor at zero"""
        result = db.execute(
            update(EventRole)
            .where(
                EventRole.ro_id == role_id,
                EventRole.ro_filled_slots > 0
            )
            .values(ro_filled_slots=EventRole.ro_filled_slots - 1),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount == 1
