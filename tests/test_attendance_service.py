from datetime import timedelta

import pytest

import app.services.qr_service as qr_module

from app.core.constants import EventStatus, ParticipantStatus
from app.core.exceptions import (
    AlreadyCheckedInException,
    AlreadyCheckedOutException,
    AttendanceForbiddenException,
    DomainError,
    EventTimeInvalidException,
    InvalidStateException,
    NotApprovedException,
    NotCheckedInException,
    PermissionDeniedException,
    ResourceNotFoundException,
    TokenExpiredException,
    ValidationException,
)
from app.models import AttendanceRecord, QrCode
from app.services.attendance_service import AttendanceService
from app.services.participant_service import ParticipantService
from app.services.qr_service import QrService
from app.utils.time_utils import utcnow

from tests.conftest import (
    ADMIN_ID,
    OTHER_ADMIN_ID,
    OTHER_STAFF_ID,
    STAFF_ID,
    make_event,
    make_participant,
    make_role,
)


@pytest.fixture()
def approved_setup(db):
    event = make_event(db)
    role = make_role(db, event)
    participant = make_participant(db, event, role)
    ParticipantService().approve(db, participant.pa_id, ADMIN_ID)
    token = QrService().issue(db, event.ev_id, ADMIN_ID, 60)["token"]
    return event, role, token


def test_check_in_then_check_out(db, approved_setup):
    event, _, token = approved_setup
    service = AttendanceService()

    checked_in = service.check_in(db, STAFF_ID, token)
    assert checked_in.ar_status == "ACTIVE"
    assert checked_in.ev_id == event.ev_id

    checked_out = service.check_out(db, STAFF_ID, token)
    assert checked_out.ar_status == "COMPLETED"
    assert checked_out.duration is not None
    assert checked_out.duration.hours == 0

    record = db.query(AttendanceRecord).filter_by(ar_event_id=event.ev_id, ar_staff_id=STAFF_ID).one()
    assert record.ar_check_in_method == "qr"
    assert record.ar_check_out_method == "qr"


def test_second_check_in_is_refused(db, approved_setup):
    _, _, token = approved_setup
    service = AttendanceService()

    service.check_in(db, STAFF_ID, token)

    with pytest.raises(AlreadyCheckedInException) as exc:
        service.check_in(db, STAFF_ID, token)
    assert exc.value.details["code"] == "ALREADY_CHECKED_IN"

    record = db.query(AttendanceRecord).filter_by(ar_staff_id=STAFF_ID).one()
    assert record.ar_status == "ACTIVE"


def test_check_in_after_completion_is_refused(db, approved_setup):
    _, _, token = approved_setup
    service = AttendanceService()
    service.check_in(db, STAFF_ID, token)
    service.check_out(db, STAFF_ID, token)

    with pytest.raises(AlreadyCheckedInException):
        service.check_in(db, STAFF_ID, token)
    with pytest.raises(AlreadyCheckedOutException):
        service.check_out(db, STAFF_ID, token)


def test_check_out_without_check_in(db, approved_setup):
    _, _, token = approved_setup

    with pytest.raises(NotCheckedInException):
        AttendanceService().check_out(db, STAFF_ID, token)


def test_check_out_without_record(db, approved_setup):
    _, _, token = approved_setup

    with pytest.raises(ResourceNotFoundException):
        AttendanceService().check_out(db, OTHER_STAFF_ID, token)


def test_check_in_creates_missing_record(db):
    event = make_event(db)
    role = make_role(db, event)
    make_participant(db, event, role, status=ParticipantStatus.APPROVED.value)
    token = QrService().issue(db, event.ev_id, ADMIN_ID, 60)["token"]

    result = AttendanceService().check_in(db, STAFF_ID, token)

    assert result.ar_status == "ACTIVE"
    assert db.query(AttendanceRecord).count() == 1


def test_absent_staff_cannot_check_in(db, approved_setup):
    event, _, token = approved_setup
    record = db.query(AttendanceRecord).filter_by(ar_event_id=event.ev_id).one()
    record.ar_status = "ABSENT"
    db.commit()

    with pytest.raises(AttendanceForbiddenException):
        AttendanceService().check_in(db, STAFF_ID, token)


def test_check_in_requires_approval(db):
    event = make_event(db)
    role = make_role(db, event)
    make_participant(db, event, role)
    token = QrService().issue(db, event.ev_id, ADMIN_ID, 60)["token"]

    with pytest.raises(NotApprovedException):
        AttendanceService().check_in(db, STAFF_ID, token)
    assert db.query(AttendanceRecord).count() == 0


def test_check_in_outside_time_window(db):
    event = make_event(db, starts_in=timedelta(hours=5))
    role = make_role(db, event)
    make_participant(db, event, role, status=ParticipantStatus.APPROVED.value)
    token = QrService().issue(db, event.ev_id, ADMIN_ID, 60)["token"]

    with pytest.raises(EventTimeInvalidException) as exc:
        AttendanceService().check_in(db, STAFF_ID, token)
    assert exc.value.details["code"] == "EVENT_TIME_INVALID"


def test_check_in_inside_early_window(db):
    event = make_event(db, starts_in=timedelta(minutes=90))
    role = make_role(db, event)
    make_participant(db, event, role, status=ParticipantStatus.APPROVED.value)
    token = QrService().issue(db, event.ev_id, ADMIN_ID, 60)["token"]

    assert AttendanceService().check_in(db, STAFF_ID, token).ar_status == "ACTIVE"


def test_check_in_refused_when_event_no_longer_active(db, approved_setup):
    event, _, token = approved_setup
    event.ev_status = EventStatus.COMPLETED.value
    db.commit()

    with pytest.raises(InvalidStateException):
        AttendanceService().check_in(db, STAFF_ID, token)


def test_check_in_with_revoked_token(db, approved_setup):
    event, _, token = approved_setup
    QrService().issue(db, event.ev_id, ADMIN_ID, 60)

    with pytest.raises(ResourceNotFoundException):
        AttendanceService().check_in(db, STAFF_ID, token)


def test_check_in_with_expired_record(db, approved_setup):
    _, _, token = approved_setup
    qr = db.query(QrCode).filter_by(qr_token=token).one()
    qr.qr_expires_at = qr.qr_created_at - timedelta(minutes=1)
    db.commit()

    with pytest.raises(TokenExpiredException):
        AttendanceService().check_in(db, STAFF_ID, token)


def test_my_status(db, approved_setup):
    event, role, token = approved_setup
    service = AttendanceService()
    service.check_in(db, STAFF_ID, token)

    status = service.get_my_status(db, STAFF_ID, event.ev_id)

    assert status.ar_status == "ACTIVE"
    assert status.ev_title == event.ev_title
    assert status.ro_name == role.ro_name
    assert status.ar_overridden is False


def test_my_status_without_record(db):
    event = make_event(db)

    with pytest.raises(ResourceNotFoundException):
        AttendanceService().get_my_status(db, STAFF_ID, event.ev_id)


def test_live_stats(db, approved_setup):
    event, role, token = approved_setup
    second = make_participant(db, event, role, staff_id=OTHER_STAFF_ID)
    ParticipantService().approve(db, second.pa_id, ADMIN_ID)
    AttendanceService().check_in(db, STAFF_ID, token)

    stats = AttendanceService().live_stats(db, event.ev_id, ADMIN_ID)

    assert stats.summary.total_approved == 2
    assert stats.summary.active == 1
    assert stats.summary.assigned == 1
    assert stats.percentages == {"attendance": 50.0, "completion": 0.0}


def test_live_stats_requires_owner(db, approved_setup):
    event, _, _ = approved_setup

    with pytest.raises(PermissionDeniedException):
        AttendanceService().live_stats(db, event.ev_id, OTHER_ADMIN_ID)


def test_list_attendance_filters_by_status(db, approved_setup):
    event, role, token = approved_setup
    second = make_participant(db, event, role, staff_id=OTHER_STAFF_ID)
    ParticipantService().approve(db, second.pa_id, ADMIN_ID)
    AttendanceService().check_in(db, STAFF_ID, token)

    page, total = AttendanceService().list_attendance(db, event.ev_id, ADMIN_ID, status="active")

    assert total == 1
    assert [a.ar_staff_id for a in page.attendances] == [STAFF_ID]
    assert page.attendances[0].ro_name == role.ro_name

    _, everything = AttendanceService().list_attendance(db, event.ev_id, ADMIN_ID)
    assert everything == 2


def test_list_attendance_rejects_unknown_status(db, approved_setup):
    event, _, _ = approved_setup

    with pytest.raises(ValidationException):
        AttendanceService().list_attendance(db, event.ev_id, ADMIN_ID, status="late")


@pytest.mark.parametrize("token", ["garbage", "a.b.c"])
def test_check_in_with_forged_token_is_a_client_error(db, token):
    with pytest.raises(DomainError) as exc:
        AttendanceService().check_in(db, STAFF_ID, token)

    assert exc.value.status_code == 400
    assert exc.value.details["code"] == "INVALID_TOKEN"


def test_check_out_with_expired_token_is_a_client_error(db, approved_setup, monkeypatch):
    event, _, _ = approved_setup
    issued_at = utcnow() - timedelta(minutes=31)
    monkeypatch.setattr(qr_module, "utcnow", lambda: issued_at)
    token = QrService().issue(db, event.ev_id, ADMIN_ID, 30)["token"]
    monkeypatch.undo()

    with pytest.raises(DomainError) as exc:
        AttendanceService().check_out(db, STAFF_ID, token)

    assert exc.value.status_code == 400
    assert exc.value.details["code"] == "TOKEN_EXPIRED"
