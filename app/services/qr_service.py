"""
QR Service - Issues event QR tokens and validates them at scan time
"""
import base64
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

import qrcode
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from atams.logging import get_logger
from atams.transaction import transaction

from app.core.config import settings
from app.core.constants import QR_TOKEN_TYPE_EVENT, EVENT_ACTIVE_STATUSES
from app.core.exceptions import (
    InternalErrorException,
    InvalidStateException,
    InvalidTokenException,
    PermissionDeniedException,
    ResourceNotFoundException,
    TokenExpiredException,
    ValidationException,
)
from app.models.event import Event
from app.models.qr_code import QrCode
from app.repositories.event_repository import EventRepository
from app.repositories.qr_code_repository import QrCodeRepository
from app.services.jwt_service import JwtService
from app.utils.time_utils import utcnow, as_utc

logger = get_logger(__name__)


@dataclass(frozen=True)
class QrValidation:
    """Outcome of validate(): event_id on success, an error code otherwise"""
    ok: bool
    event_id: Optional[int] = None
    qr_id: Optional[int] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, event_id: int, qr_id: int) -> "QrValidation":
        return cls(ok=True, event_id=event_id, qr_id=qr_id)

    @classmethod
    def failure(cls, error: str, message: str) -> "QrValidation":
        return cls(ok=False, error=error, message=message)


_VALIDATION_ERRORS = {
    TokenExpiredException.code: TokenExpiredException,
    InvalidTokenException.code: InvalidTokenException,
    ResourceNotFoundException.code: ResourceNotFoundException,
    InternalErrorException.code: InternalErrorException,
}


def render_qr_image(data: str) -> str:
    """Render data as a PNG QR code, returned as a base64 data URL"""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


class QrService:
    def __init__(self) -> None:
        self.event_repo = EventRepository()
        self.qr_repo = QrCodeRepository()
        self.jwt_service = JwtService()

    def _get_owned_event(self, db: Session, event_id: int, admin_id: int) -> Event:
        event = self.event_repo.get_by_id(db, event_id)
        if not event:
            raise ResourceNotFoundException("Event not found")
        if event.ev_created_by != admin_id:
            raise PermissionDeniedException("You can only manage QR codes for your own events")
        return event

    def issue(
        self,
        db: Session,
        event_id: int,
        issuer_id: int,
        ttl_minutes: Optional[int] = None
    ) -> dict:
        """
        Issue a new QR token for an event, revoking any active one

        Raises:
            ValidationException: ttl outside the allowed range
            ResourceNotFoundException: Event missing or deleted
            PermissionDeniedException: Issuer does not own the event
            InvalidStateException: Event is not published or in progress
        """
        if ttl_minutes is None:
            ttl_minutes = settings.QR_DEFAULT_TTL_MINUTES
        if not settings.QR_MIN_TTL_MINUTES <= ttl_minutes <= settings.QR_MAX_TTL_MINUTES:
            raise ValidationException(
                f"Expiration must be between {settings.QR_MIN_TTL_MINUTES} "
                f"and {settings.QR_MAX_TTL_MINUTES} minutes",
                {"ttl_minutes": ttl_minutes}
            )

        event = self._get_owned_event(db, event_id, issuer_id)
        if event.ev_status not in EVENT_ACTIVE_STATUSES:
            raise InvalidStateException(
                "QR codes can only be generated for published or in-progress events",
                {"event_status": event.ev_status}
            )

        try:
            qr = self._issue_once(db, event_id, issuer_id, ttl_minutes)
        except IntegrityError:
            # A concurrent issuance committed first; revoke it and issue again
            logger.warning(
                "Concurrent QR issuance detected, retrying",
                extra={'extra_data': {'event_id': event_id}}
            )
            qr = self._issue_once(db, event_id, issuer_id, ttl_minutes)

        logger.info(
            "QR code issued",
            extra={'extra_data': {
                'event_id': event_id,
                'qr_id': qr.qr_id,
                'issuer_id': issuer_id,
                'ttl_minutes': ttl_minutes
            }}
        )

        return {
            "qr_id": qr.qr_id,
            "event_id": event_id,
            "event_title": event.ev_title,
            "token": qr.qr_token,
            "expires_at": as_utc(qr.qr_expires_at),
            "expires_in_minutes": ttl_minutes,
            "qr_image": render_qr_image(qr.qr_token)
        }

    def _issue_once(self, db: Session, event_id: int, issuer_id: int, ttl_minutes: int) -> QrCode:
        now = utcnow()
        with transaction(db):
            self.qr_repo.deactivate_active_for_event(db, event_id, now)
            signed = self.jwt_service.sign_event_token(event_id, ttl_minutes, now=now)
            qr = self.qr_repo.add(db, {
                "qr_event_id": event_id,
                "qr_token": signed["token"],
                "qr_jti": signed["jti"],
                "qr_expires_at": signed["expires_at"],
                "qr_created_by": issuer_id,
                "qr_is_active": True,
                "qr_created_at": now
            })
        return qr

    def validate(self, db: Session, token: str) -> QrValidation:
        """
        Check a scanned token. Never raises; every failure comes back tagged.

        All four checks run in order: signature and expiry, token type,
        persisted active record, persisted expiry.
        """
        try:
            # 1. Signature and embedded expiry
            try:
                payload = self.jwt_service.verify_token(token)
            except (TokenExpiredException, InvalidTokenException) as e:
                return QrValidation.failure(e.code, e.message)

            # 2. Token type
            if payload.get("type") != QR_TOKEN_TYPE_EVENT:
                return QrValidation.failure(InvalidTokenException.code, "Invalid QR code type")

            # 3. Persisted and still active
            qr = self.qr_repo.get_by_token(db, token)
            if not qr or not qr.qr_is_active:
                return QrValidation.failure(
                    ResourceNotFoundException.code, "QR code not found or has been deactivated"
                )

            # 4. Persisted expiry
            now = utcnow()
            if as_utc(qr.qr_expires_at) < now:
                with transaction(db):
                    self.qr_repo.deactivate(db, qr.qr_id, now)
                return QrValidation.failure(TokenExpiredException.code, "QR code has expired")

            return QrValidation.success(qr.qr_event_id, qr.qr_id)
        except Exception:
            logger.exception("QR validation failed unexpectedly")
            return QrValidation.failure(InternalErrorException.code, "QR validation failed")

    def validate_or_raise(self, db: Session, token: str) -> QrValidation:
        """validate() for callers that want the typed exception"""
        result = self.validate(db, token)
        if not result.ok:
            exc_class = _VALIDATION_ERRORS.get(result.error, InvalidTokenException)
            raise exc_class(result.message)
        return result

    def deactivate(self, db: Session, qr_id: int, requester_id: int) -> None:
        """
        Deactivate one token. Fails on an already inactive token.

        Raises:
            ResourceNotFoundException: Token not found
            PermissionDeniedException: Requester does not own the event
            InvalidStateException: Token already inactive
        """
        qr = self.qr_repo.get(db, qr_id)
        if not qr:
            raise ResourceNotFoundException("QR code not found")

        event = self.event_repo.get(db, qr.qr_event_id)
        if not event or event.ev_created_by != requester_id:
            raise PermissionDeniedException("You can only manage QR codes for your own events")

        with transaction(db):
            deactivated = self.qr_repo.deactivate(db, qr_id, utcnow())
            if not deactivated:
                raise InvalidStateException("QR code is already inactive")

        logger.info(
            "QR code deactivated",
            extra={'extra_data': {'qr_id': qr_id, 'event_id': qr.qr_event_id, 'requester_id': requester_id}}
        )

    def get_active(self, db: Session, event_id: int, requester_id: int) -> dict:
        """Active token of an event with its remaining lifetime"""
        event = self._get_owned_event(db, event_id, requester_id)

        qr = self.qr_repo.get_active_for_event(db, event_id)
        if not qr:
            raise ResourceNotFoundException("No active QR code found for this event")

        now = utcnow()
        expires_at = as_utc(qr.qr_expires_at)
        remaining_minutes = max(0, int((expires_at - now).total_seconds() // 60))

        return {
            "qr_id": qr.qr_id,
            "event_id": event_id,
            "event_title": event.ev_title,
            "token": qr.qr_token,
            "expires_at": expires_at,
            "created_at": as_utc(qr.qr_created_at),
            "is_expired": expires_at < now,
            "remaining_minutes": remaining_minutes,
            "qr_image": render_qr_image(qr.qr_token)
        }
