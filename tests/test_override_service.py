from datetime import datetime, timezone

import pytest

from app.core.constants import AttendanceStatus
from app.core.exceptions import (
    NotCheckedInException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from app.models import AttendanceOverride, AttendanceRecord
from app.services.override_service import OverrideService, snapshot

from tests.conftest import ADMIN_ID, OTHER_ADMIN_ID, STAFF_ID, make_event, make_role

REASON = "Scanner at gate B was offline"


@pytest.fixture()
def record(db):
    event = make_event(db)
    role = make_role(db, event)
    rec = AttendanceRecord(
        ar_event_id=event.ev_id,
        ar_staff_id=STAFF_ID,
        ar_role_id=role.ro_id,
        ar_status=AttendanceStatus.ASSIGNED.value,
    )
    db.add(rec)
    db.commit()
    return rec


def test_check_in_then_check_out_override(db, record):
    service = OverrideService()
    check_in = datetime(2025, 5, 1, 8, 0, tzinfo=timezone.utc)
    check_out = datetime(2025, 5, 1, 16, 15, tzinfo=timezone.utc)

    first = service.override(db, record.ar_id, ADMIN_ID, "CHECK_IN_OVERRIDE", REASON, check_in_time=check_in)
    second = service.override(db, record.ar_id, ADMIN_ID, "CHECK_OUT_OVERRIDE", REASON, check_out_time=check_out)

    assert first.attendance.ar_status == "ACTIVE"
    assert second.attendance.ar_status == "COMPLETED"
    assert second.attendance.ar_check_out_method == "override"
    assert second.attendance.ar_check_out_verified_by == ADMIN_ID
    assert second.attendance.ar_overridden is True
    assert second.attendance.duration.formatted == "8 hours 15 minutes"

    history = service.history(db, record.ar_id, ADMIN_ID)
    assert [h.ao_action for h in history] == ["CHECK_OUT_OVERRIDE", "CHECK_IN_OVERRIDE"]


def test_entry_holds_before_and_after(db, record):
    result = OverrideService().override(
        db, record.ar_id, ADMIN_ID, "CHECK_IN_OVERRIDE", REASON, ip_address="10.0.0.7"
    )

    entry = result.override
    assert entry.ao_before["status"] == "ASSIGNED"
    assert entry.ao_before["checkIn"] == {"time": None, "method": None, "verifiedBy": None}
    assert entry.ao_after["status"] == "ACTIVE"
    assert entry.ao_after["checkIn"]["method"] == "override"
    assert entry.ao_after["checkIn"]["verifiedBy"] == ADMIN_ID
    assert entry.ao_after["checkOut"] == {"time": None, "method": None, "verifiedBy": None}
    assert entry.ao_ip_address == "10.0.0.7"
    assert entry.ao_reason == REASON


def test_notes_accumulate(db, record):
    service = OverrideService()

    service.override(db, record.ar_id, ADMIN_ID, "CHECK_IN_OVERRIDE", REASON)
    result = service.override(db, record.ar_id, ADMIN_ID, "STATUS_CHANGE", "Badge scanned twice by mistake",
                              new_status="CHECKED_IN")

    assert result.attendance.ar_status == "CHECKED_IN"
    assert result.attendance.ar_notes == (
        f"[Override: {REASON}]\n[Override: Badge scanned twice by mistake]"
    )


def test_mark_absent_replaces_notes(db, record):
    service = OverrideService()
    service.override(db, record.ar_id, ADMIN_ID, "CHECK_IN_OVERRIDE", REASON)

    result = service.override(db, record.ar_id, ADMIN_ID, "MARK_ABSENT", "Left before the shift started")

    assert result.attendance.ar_status == "ABSENT"
    assert result.attendance.ar_notes == "Left before the shift started"
    assert result.attendance.ar_overridden is True


def test_repeated_override_writes_one_entry_each(db, record):
    service = OverrideService()

    for _ in range(3):
        service.override(db, record.ar_id, ADMIN_ID, "MARK_ABSENT", REASON)

    assert db.query(AttendanceOverride).filter_by(ao_attendance_id=record.ar_id).count() == 3


def test_check_out_override_requires_check_in(db, record):
    with pytest.raises(NotCheckedInException):
        OverrideService().override(db, record.ar_id, ADMIN_ID, "CHECK_OUT_OVERRIDE", REASON)

    assert db.query(AttendanceOverride).count() == 0
    db.refresh(record)
    assert record.ar_status == "ASSIGNED"
    assert record.ar_overridden is False


@pytest.mark.parametrize("reason", ["too short", "   short    ", ""])
def test_reason_must_be_long_enough(db, record, reason):
    with pytest.raises(ValidationException):
        OverrideService().override(db, record.ar_id, ADMIN_ID, "MARK_ABSENT", reason)


def test_unknown_action(db, record):
    with pytest.raises(ValidationException):
        OverrideService().override(db, record.ar_id, ADMIN_ID, "DELETE", REASON)


@pytest.mark.parametrize("new_status", [None, "LATE"])
def test_status_change_needs_valid_status(db, record, new_status):
    with pytest.raises(ValidationException):
        OverrideService().override(db, record.ar_id, ADMIN_ID, "STATUS_CHANGE", REASON, new_status=new_status)


def test_override_requires_event_owner(db, record):
    with pytest.raises(PermissionDeniedException):
        OverrideService().override(db, record.ar_id, OTHER_ADMIN_ID, "MARK_ABSENT", REASON)

    assert db.query(AttendanceOverride).count() == 0


def test_override_unknown_record(db):
    with pytest.raises(ResourceNotFoundException):
        OverrideService().override(db, 999, ADMIN_ID, "MARK_ABSENT", REASON)


def test_history_requires_event_owner(db, record):
    with pytest.raises(PermissionDeniedException):
        OverrideService().history(db, record.ar_id, OTHER_ADMIN_ID)


def test_history_for_admin(db, record):
    service = OverrideService()
    service.override(db, record.ar_id, ADMIN_ID, "CHECK_IN_OVERRIDE", REASON)
    service.override(db, record.ar_id, ADMIN_ID, "MARK_ABSENT", REASON)

    entries = service.history_for_admin(db, ADMIN_ID, limit=1)

    assert [e.ao_action for e in entries] == ["MARK_ABSENT"]
    assert service.history_for_admin(db, OTHER_ADMIN_ID) == []


def test_snapshot_shape():
    rec = AttendanceRecord(
        ar_status="COMPLETED",
        ar_check_in_time=datetime(2025, 5, 1, 8, 0),
        ar_check_in_method="qr",
        ar_check_out_time=datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc),
        ar_check_out_method="override",
        ar_check_out_verified_by=ADMIN_ID,
    )

    assert snapshot(rec) == {
        "status": "COMPLETED",
        "checkIn": {"time": "2025-05-01T08:00:00+00:00", "method": "qr", "verifiedBy": None},
        "checkOut": {"time": "2025-05-01T12:00:00+00:00", "method": "override", "verifiedBy": ADMIN_ID},
    }


def test_mark_absent_goes_through_state_machine(db, record, monkeypatch):
    service = OverrideService()
    calls = []
    original = service.state_machine.mark_absent

    def spy(db_, rec, notes):
        calls.append((rec.ar_id, notes))
        return original(db_, rec, notes)

    monkeypatch.setattr(service.state_machine, "mark_absent", spy)

    result = service.override(db, record.ar_id, ADMIN_ID, "MARK_ABSENT", REASON)

    assert calls == [(record.ar_id, REASON)]
    assert result.override.ao_after["status"] == "ABSENT"
    assert result.attendance.ar_notes == REASON
