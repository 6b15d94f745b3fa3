"""
QR Endpoints - Issue, inspect and revoke event QR codes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.qr_service import QrService
from app.schemas import QrGenerateRequest, QrIssued, DataResponse
from app.api.deps import require_admin, require_capability
from app.core.actor import Actor, Capability
from app.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
qr_service = QrService()


@router.post(
    "/generate",
    response_model=DataResponse[QrIssued],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)]
)
async def generate_qr(
    request: QrGenerateRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.ISSUE_QR))
):
    """
    Generate the QR code staff scan to check in and out

    **Process:**
    1. Verify the event is owned by the admin and published or in progress
    2. Deactivate the event's current QR code
    3. Sign and store a new token, render it as a PNG data URL

    **Errors:**
    - 400: Event not published or in progress
    - 403: Event not owned by the current admin
    - 404: Event not found
    - 422: Expiration outside 30-480 minutes
    """
    issued = qr_service.issue(db, request.event_id, actor.user_id, request.expires_in_minutes)
    return DataResponse(success=True, message="QR code generated successfully", data=issued)


@router.get(
    "/event/{event_id}",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def get_active_qr(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.ISSUE_QR))
):
    """Active QR code of an event with its remaining lifetime"""
    active = qr_service.get_active(db, event_id, actor.user_id)
    response = DataResponse(success=True, message="Active QR code retrieved", data=active)
    return encrypt_response_data(response, settings)


@router.delete(
    "/{qr_id}",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def deactivate_qr(
    qr_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.ISSUE_QR))
):
    """
    Deactivate a QR code

    **Errors:**
    - 400: QR code already inactive
    - 403: Event not owned by the current admin
    - 404: QR code not found
    """
    qr_service.deactivate(db, qr_id, actor.user_id)
    return DataResponse(success=True, message="QR code deactivated successfully", data=None)
