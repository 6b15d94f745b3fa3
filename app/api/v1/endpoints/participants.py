"""
Participant Endpoints - Admin review of applications
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.participant_service import ParticipantService
from app.schemas import ApprovalResult, Participant, RejectRequest, DataResponse
from app.api.deps import require_admin, require_capability
from app.core.actor import Actor, Capability

router = APIRouter()
participant_service = ParticipantService()


@router.post(
    "/{participant_id}/approve",
    response_model=DataResponse[ApprovalResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def approve_participant(
    participant_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.REVIEW_PARTICIPANTS))
):
    """
    Approve an application and create the attendance record

    **Errors:**
    - 403: Event not owned by the current admin
    - 409: Already approved
    """
    result = participant_service.approve(db, participant_id, actor.user_id)
    return DataResponse(success=True, message="Participant approved successfully", data=result)


@router.post(
    "/{participant_id}/reject",
    response_model=DataResponse[Participant],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def reject_participant(
    participant_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.REVIEW_PARTICIPANTS))
):
    participant = participant_service.reject(db, participant_id, actor.user_id, payload.reason)
    return DataResponse(success=True, message="Participant rejected successfully", data=participant)
