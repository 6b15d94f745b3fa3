"""
Maintenance Endpoints - System maintenance and cleanup operations
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.cleanup_service import CleanupService
from app.schemas import DataResponse
from app.api.deps import require_admin, require_capability
from app.core.actor import Actor, Capability
from pydantic import BaseModel

router = APIRouter()
cleanup_service = CleanupService()


class CleanupResult(BaseModel):
    """Cleanup operation result"""
    deactivated_count: int
    message: str


@router.post(
    "/deactivate-expired-qr",
    response_model=DataResponse[CleanupResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def deactivate_expired_qr(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.RUN_MAINTENANCE))
):
    """
    Deactivate every active QR code past its expiry

    **Authorization:**
    - Requires role level >= ADMIN_MIN_ROLE_LEVEL

    **Use case:**
    - Scans already deactivate expired codes lazily; run this on a schedule
      to close codes nobody scanned
    """
    count = cleanup_service.deactivate_expired_qr(db)

    result = CleanupResult(
        deactivated_count=count,
        message=f"Successfully deactivated {count} expired QR codes"
    )

    return DataResponse(
        success=True,
        message="Expired QR cleanup completed",
        data=result
    )
