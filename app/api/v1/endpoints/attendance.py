"""
Attendance Endpoints - Staff check-in/check-out and admin attendance management
"""
import math
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.attendance_service import AttendanceService
from app.services.override_service import OverrideService
from app.schemas import (
    OverrideRequest,
    OverrideResult,
    ScanRequest,
    ScanResponse,
    DataResponse,
    PaginationResponse
)
from app.api.deps import require_admin, require_staff, require_capability, get_client_ip
from app.core.actor import Actor, Capability
from app.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
attendance_service = AttendanceService()
override_service = OverrideService()


@router.post(
    "/check-in",
    response_model=DataResponse[ScanResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_staff)]
)
async def check_in(
    request: ScanRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.SCAN_QR))
):
    """
    Check in by scanning the event QR code

    **Process:**
    1. Verify token signature, type, active record and expiry
    2. Event must be published or in progress, now within the check-in window
    3. Staff must be an approved participant
    4. ASSIGNED -> ACTIVE in one conditional update

    **Errors:**
    - 400: Invalid or expired token, event inactive, outside the window
    - 403: Not approved, or marked absent
    - 409: Already checked in
    """
    result = attendance_service.check_in(db, actor.user_id, request.token)
    return DataResponse(success=True, message="Check-in successful", data=result)


@router.post(
    "/check-out",
    response_model=DataResponse[ScanResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_staff)]
)
async def check_out(
    request: ScanRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.SCAN_QR))
):
    """
    Check out by scanning the event QR code

    **Errors:**
    - 400: Invalid or expired token, not checked in
    - 404: No attendance record
    - 409: Already checked out
    """
    result = attendance_service.check_out(db, actor.user_id, request.token)
    return DataResponse(success=True, message="Check-out successful", data=result)


@router.get(
    "/events/{event_id}/me",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_staff)]
)
async def get_my_status(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.VIEW_EVENTS))
):
    status_data = attendance_service.get_my_status(db, actor.user_id, event_id)
    response = DataResponse(success=True, message="Attendance status retrieved", data=status_data)
    return encrypt_response_data(response, settings)


@router.get(
    "/admin/events/{event_id}/stats",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def get_live_stats(
    event_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.VIEW_AUDIT))
):
    stats = attendance_service.live_stats(db, event_id, actor.user_id)
    response = DataResponse(success=True, message="Live attendance statistics retrieved", data=stats)
    return encrypt_response_data(response, settings)


@router.get(
    "/admin/events/{event_id}",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def get_attendance_details(
    event_id: int,
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by attendance status"),
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.VIEW_AUDIT))
):
    """
    Attendance records of an event with status filter and pagination

    **Query Parameters:**
    - status: ASSIGNED, CHECKED_IN, ACTIVE, COMPLETED or ABSENT
    - page, size: Pagination (size max 100)
    """
    skip = (page - 1) * size
    details, total = attendance_service.list_attendance(
        db, event_id, actor.user_id, status_filter, skip, size
    )

    response = PaginationResponse(
        success=True,
        message=f"Attendance for {details.ev_title} retrieved successfully",
        data=details.attendances,
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0
    )
    return encrypt_response_data(response, settings)


@router.post(
    "/admin/{attendance_id}/override",
    response_model=DataResponse[OverrideResult],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def override_attendance(
    attendance_id: int,
    payload: OverrideRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.OVERRIDE_ATTENDANCE))
):
    """
    Force an attendance change and record it in the audit trail

    **Actions:**
    - CHECK_IN_OVERRIDE: set check-in (time defaults to now), status ACTIVE
    - CHECK_OUT_OVERRIDE: set check-out, requires a check-in, status COMPLETED
    - MARK_ABSENT: status ABSENT, notes replaced by the reason
    - STATUS_CHANGE: set new_status directly

    **Errors:**
    - 400: Check-out override without check-in
    - 403: Event not owned by the current admin
    - 404: Attendance record not found
    - 422: Reason under 10 characters, invalid action or status
    """
    result = override_service.override(
        db,
        attendance_id,
        actor.user_id,
        payload.action.value,
        payload.reason,
        check_in_time=payload.check_in_time,
        check_out_time=payload.check_out_time,
        new_status=payload.new_status,
        ip_address=get_client_ip(http_request)
    )
    return DataResponse(success=True, message="Attendance overridden successfully", data=result)


@router.get(
    "/admin/{attendance_id}/overrides",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def get_override_history(
    attendance_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.VIEW_AUDIT))
):
    entries = override_service.history(db, attendance_id, actor.user_id)
    response = DataResponse(success=True, message="Override history retrieved", data=entries)
    return encrypt_response_data(response, settings)


@router.get(
    "/admin/overrides/me",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)]
)
async def get_my_overrides(
    limit: int = Query(50, ge=1, le=500, description="Maximum entries to return"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_capability(Capability.VIEW_AUDIT))
):
    entries = override_service.history_for_admin(db, actor.user_id, limit)
    response = DataResponse(success=True, message="Override history retrieved", data=entries)
    return encrypt_response_data(response, settings)
