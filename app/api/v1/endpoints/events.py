"""
Event Endpoints - Events, roles and staff applications
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.event_service import EventService
from app.services.participant_service import ParticipantService
from app.schemas import (
    ApplyRequest,
    ChangeRoleRequest,
    Event,
    EventCreate,
    EventRole,
    EventRoleCreate,
    EventStatusUpdate,
    Participant,
    DataResponse
)
from app.api.deps import require_admin, require_staff, require_capability
from app.core.actor import Actor, Capability
from app.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
event_service = EventService()
participant_service = ParticipantService()


@router.post(
    "",
    response_model=DataResponse[Event],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)]
)
async def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.MANAGE_EVENTS))
):
    """
    Create an event owned by the current admin

    **Authorization:**
    - Requires role level >= ADMIN_MIN_ROLE_LEVEL
    """
    event = event_service.create_event(db, payload, actor.user_id)
    return DataResponse(success=True, message="Event created successfully", data=event)


@router.patch(
    "/{event_id}/status",
    response_model=DataResponse[Event],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def update_event_status(
    event_id: int,
    payload: EventStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.MANAGE_EVENTS))
):
    event = event_service.update_status(db, event_id, actor.user_id, payload.ev_status.value)
    return DataResponse(success=True, message="Event status updated successfully", data=event)


@router.post(
    "/{event_id}/roles",
    response_model=DataResponse[EventRole],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)]
)
async def add_role(
    event_id: int,
    payload: EventRoleCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.MANAGE_EVENTS))
):
    role = event_service.add_role(db, event_id, actor.user_id, payload)
    return DataResponse(success=True, message="Role created successfully", data=role)


@router.get(
    "/{event_id}/roles",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_staff)]
)
async def list_roles(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.VIEW_EVENTS))
):
    roles = event_service.list_roles(db, event_id)
    response = DataResponse(success=True, message="Roles retrieved successfully", data=roles)
    return encrypt_response_data(response, settings)


@router.post(
    "/{event_id}/apply",
    response_model=DataResponse[Participant],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)]
)
async def apply_to_event(
    event_id: int,
    payload: ApplyRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.APPLY_TO_EVENTS))
):
    """
    Apply to a role of a published event

    **Errors:**
    - 400: Event not published or role not part of the event
    - 404: Event not found
    - 409: Already applied or role full
    """
    participant = participant_service.apply(db, event_id, actor.user_id, payload.role_id)
    return DataResponse(success=True, message="Application submitted successfully", data=participant)


@router.patch(
    "/{event_id}/role",
    response_model=DataResponse[Participant],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_staff)]
)
async def change_role(
    event_id: int,
    payload: ChangeRoleRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.APPLY_TO_EVENTS))
):
    participant = participant_service.change_role(
        db, event_id, actor.user_id, payload.role_id, payload.reason
    )
    return DataResponse(success=True, message="Role changed successfully", data=participant)


@router.delete(
    "/{event_id}/application",
    response_model=DataResponse[Participant],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_staff)]
)
async def withdraw_application(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.APPLY_TO_EVENTS))
):
    participant = participant_service.withdraw(db, event_id, actor.user_id)
    return DataResponse(success=True, message="Application withdrawn successfully", data=participant)


@router.get(
    "/{event_id}/participants",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def list_participants(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.REVIEW_PARTICIPANTS))
):
    participants = participant_service.list_participants(db, event_id, actor.user_id)
    response = DataResponse(success=True, message="Participants retrieved successfully", data=participants)
    return encrypt_response_data(response, settings)
