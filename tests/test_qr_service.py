from datetime import timedelta

import jwt
import pytest

import app.services.qr_service as qr_module
from app.core.config import settings
from app.core.constants import EventStatus
from app.core.exceptions import (
    InvalidStateException,
    InvalidTokenException,
    PermissionDeniedException,
    ResourceNotFoundException,
    TokenExpiredException,
    ValidationException,
)
from app.models import QrCode
from app.services.qr_service import QrService
from app.utils.time_utils import utcnow

from tests.conftest import ADMIN_ID, OTHER_ADMIN_ID, make_event


def test_issue_returns_token_and_image(db):
    event = make_event(db)

    issued = QrService().issue(db, event.ev_id, ADMIN_ID, 60)

    assert issued["event_id"] == event.ev_id
    assert issued["expires_in_minutes"] == 60
    assert issued["qr_image"].startswith("data:image/png;base64,")
    assert db.query(QrCode).filter(QrCode.qr_is_active.is_(True)).count() == 1


def test_issue_uses_default_ttl(db):
    event = make_event(db)

    issued = QrService().issue(db, event.ev_id, ADMIN_ID)

    assert issued["expires_in_minutes"] == settings.QR_DEFAULT_TTL_MINUTES


@pytest.mark.parametrize("ttl", [29, 481])
def test_issue_rejects_ttl_out_of_range(db, ttl):
    event = make_event(db)

    with pytest.raises(ValidationException):
        QrService().issue(db, event.ev_id, ADMIN_ID, ttl)


def test_issue_requires_owner(db):
    event = make_event(db)

    with pytest.raises(PermissionDeniedException):
        QrService().issue(db, event.ev_id, OTHER_ADMIN_ID, 60)


def test_issue_requires_active_event(db):
    event = make_event(db, status=EventStatus.DRAFT.value)

    with pytest.raises(InvalidStateException):
        QrService().issue(db, event.ev_id, ADMIN_ID, 60)


def test_issue_unknown_event(db):
    with pytest.raises(ResourceNotFoundException):
        QrService().issue(db, 999, ADMIN_ID, 60)


def test_second_issuance_revokes_first(db):
    event = make_event(db)
    service = QrService()

    first = service.issue(db, event.ev_id, ADMIN_ID, 60)
    second = service.issue(db, event.ev_id, ADMIN_ID, 60)

    old = service.validate(db, first["token"])
    assert not old.ok
    assert old.error == "NOT_FOUND"

    new = service.validate(db, second["token"])
    assert new.ok
    assert new.event_id == event.ev_id
    assert db.query(QrCode).filter(
        QrCode.qr_event_id == event.ev_id, QrCode.qr_is_active.is_(True)
    ).count() == 1


def test_validate_expired_token(db, monkeypatch):
    event = make_event(db)
    issued_at = utcnow() - timedelta(minutes=31)
    monkeypatch.setattr(qr_module, "utcnow", lambda: issued_at)
    service = QrService()
    issued = service.issue(db, event.ev_id, ADMIN_ID, 30)
    monkeypatch.undo()

    result = service.validate(db, issued["token"])

    assert not result.ok
    assert result.error == "TOKEN_EXPIRED"


def test_validate_checks_persisted_expiry(db):
    event = make_event(db)
    service = QrService()
    issued = service.issue(db, event.ev_id, ADMIN_ID, 60)

    qr = db.query(QrCode).filter(QrCode.qr_id == issued["qr_id"]).one()
    qr.qr_expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    result = service.validate(db, issued["token"])

    assert result.error == "TOKEN_EXPIRED"
    db.refresh(qr)
    assert qr.qr_is_active is False


def test_validate_rejects_wrong_type(db):
    event = make_event(db)
    now = utcnow()
    token = jwt.encode({
        "iss": settings.QR_JWT_ISSUER,
        "aud": f"event:{event.ev_id}",
        "eid": event.ev_id,
        "type": "STAFF_QR",
        "jti": "x",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=30)).timestamp()),
    }, settings.QR_JWT_SECRET, algorithm=settings.QR_JWT_ALG)

    result = QrService().validate(db, token)

    assert result.error == "INVALID_TOKEN"


def test_validate_unpersisted_token(db):
    event = make_event(db)
    service = QrService()
    signed = service.jwt_service.sign_event_token(event.ev_id, 60)

    result = service.validate(db, signed["token"])

    assert result.error == "NOT_FOUND"


def test_validate_never_raises_on_garbage(db):
    result = QrService().validate(db, "garbage")

    assert not result.ok
    assert result.error == "INVALID_TOKEN"


def test_validate_foreign_signature(db):
    now = utcnow()
    token = jwt.encode({
        "iss": settings.QR_JWT_ISSUER,
        "aud": "event:1",
        "eid": 1,
        "type": "EVENT_QR",
        "jti": "x",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=30)).timestamp()),
    }, "another-secret-key-that-is-long-enough-0000", algorithm="HS256")

    result = QrService().validate(db, token)

    assert result.error == "INVALID_TOKEN"


def test_validate_reports_unexpected_failure_with_traceback(db, monkeypatch):
    service = QrService()
    logged = []

    def broken(token):
        raise RuntimeError("signer unavailable")

    monkeypatch.setattr(service.jwt_service, "verify_token", broken)
    monkeypatch.setattr(qr_module.logger, "exception", lambda msg, *args, **kwargs: logged.append(msg))

    result = service.validate(db, "anything")

    assert result.error == "INTERNAL"
    assert logged == ["QR validation failed unexpectedly"]


def test_validate_or_raise_expired_is_client_error(db, monkeypatch):
    event = make_event(db)
    issued_at = utcnow() - timedelta(minutes=31)
    monkeypatch.setattr(qr_module, "utcnow", lambda: issued_at)
    service = QrService()
    issued = service.issue(db, event.ev_id, ADMIN_ID, 30)
    monkeypatch.undo()

    with pytest.raises(TokenExpiredException) as exc:
        service.validate_or_raise(db, issued["token"])
    assert exc.value.status_code == 400
    assert exc.value.details == {"code": "TOKEN_EXPIRED", "kind": "token"}


def test_validate_or_raise_maps_errors(db):
    event = make_event(db)
    service = QrService()
    first = service.issue(db, event.ev_id, ADMIN_ID, 60)
    service.issue(db, event.ev_id, ADMIN_ID, 60)

    with pytest.raises(ResourceNotFoundException):
        service.validate_or_raise(db, first["token"])
    with pytest.raises(InvalidTokenException):
        service.validate_or_raise(db, "garbage")


def test_deactivate_then_again_fails(db):
    event = make_event(db)
    service = QrService()
    issued = service.issue(db, event.ev_id, ADMIN_ID, 60)

    service.deactivate(db, issued["qr_id"], ADMIN_ID)

    assert service.validate(db, issued["token"]).error == "NOT_FOUND"
    with pytest.raises(InvalidStateException):
        service.deactivate(db, issued["qr_id"], ADMIN_ID)


def test_deactivate_requires_owner(db):
    event = make_event(db)
    service = QrService()
    issued = service.issue(db, event.ev_id, ADMIN_ID, 60)

    with pytest.raises(PermissionDeniedException):
        service.deactivate(db, issued["qr_id"], OTHER_ADMIN_ID)


def test_deactivate_unknown(db):
    with pytest.raises(ResourceNotFoundException):
        QrService().deactivate(db, 12345, ADMIN_ID)


def test_get_active(db):
    event = make_event(db)
    service = QrService()
    issued = service.issue(db, event.ev_id, ADMIN_ID, 90)

    active = service.get_active(db, event.ev_id, ADMIN_ID)

    assert active["qr_id"] == issued["qr_id"]
    assert active["is_expired"] is False
    assert 88 <= active["remaining_minutes"] <= 90


def test_get_active_none(db):
    event = make_event(db)

    with pytest.raises(ResourceNotFoundException):
        QrService().get_active(db, event.ev_id, ADMIN_ID)
