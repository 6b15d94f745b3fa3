"""
Event Service - Event directory operations: events, their status and roles
"""
from typing import List
from sqlalchemy.orm import Session

from atams.logging import get_logger

from app.core.exceptions import PermissionDeniedException, ResourceNotFoundException
from app.models.event import Event as EventModel
from app.repositories.event_repository import EventRepository
from app.repositories.event_role_repository import EventRoleRepository
from app.schemas.event import Event, EventCreate, EventRole, EventRoleCreate
from app.utils.time_utils import utcnow, as_utc

logger = get_logger(__name__)


class EventService:
    def __init__(self) -> None:
        self.repo = EventRepository()
        self.role_repo = EventRoleRepository()

    def _get_owned(self, db: Session, event_id: int, admin_id: int) -> EventModel:
        event = self.repo.get_by_id(db, event_id)
        if not event:
            raise ResourceNotFoundException("Event not found")
        if event.ev_created_by != admin_id:
            raise PermissionDeniedException("You can only manage your own events")
        return event

    def create_event(self, db: Session, payload: EventCreate, admin_id: int) -> Event:
        obj = self.repo.create(db, {
            "ev_title": payload.ev_title,
            "ev_description": payload.ev_description,
            "ev_location": payload.ev_location,
            "ev_status": payload.ev_status.value,
            "ev_created_by": admin_id,
            "ev_start_time": as_utc(payload.ev_start_time),
            "ev_end_time": as_utc(payload.ev_end_time),
            "ev_created_at": utcnow()
        })
        logger.info("Event created", extra={'extra_data': {'event_id': obj.ev_id, 'admin_id': admin_id}})
        return Event.model_validate(obj)

    def update_status(self, db: Session, event_id: int, admin_id: int, status: str) -> Event:
        event = self._get_owned(db, event_id, admin_id)
        obj = self.repo.update(db, event, {"ev_status": status})
        logger.info("Event status changed", extra={'extra_data': {'event_id': event_id, 'status': status}})
        return Event.model_validate(obj)

    def add_role(self, db: Session, event_id: int, admin_id: int, payload: EventRoleCreate) -> EventRole:
        self._get_owned(db, event_id, admin_id)
        obj = self.role_repo.create(db, {
            "ro_event_id": event_id,
            "ro_name": payload.ro_name,
            "ro_description": payload.ro_description,
            "ro_price": payload.ro_price,
            "ro_capacity": payload.ro_capacity,
            "ro_filled_slots": 0
        })
        return EventRole.model_validate(obj)

    def list_roles(self, db: Session, event_id: int) -> List[EventRole]:
        if not self.repo.get_by_id(db, event_id):
            raise ResourceNotFoundException("Event not found")
        roles = self.role_repo.list_for_event(db, event_id)
        return [EventRole.model_validate(r) for r in roles]
