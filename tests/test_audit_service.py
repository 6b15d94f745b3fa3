from datetime import datetime, timedelta, timezone

import pytest

from app.core.constants import AttendanceStatus
from app.models import AttendanceOverride, AttendanceRecord
from app.repositories.attendance_override_repository import AttendanceOverrideRepository
from app.services.audit_service import AuditService

from tests.conftest import ADMIN_ID, OTHER_ADMIN_ID, STAFF_ID, make_event, make_role

BASE_TIME = datetime(2025, 5, 1, 9, 0, tzinfo=timezone.utc)


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


def _entry(record, admin_id=ADMIN_ID, minutes=0, action="MARK_ABSENT"):
    return {
        "ao_attendance_id": record.ar_id,
        "ao_admin_id": admin_id,
        "ao_action": action,
        "ao_reason": "Reason long enough",
        "ao_before": {"status": "ASSIGNED"},
        "ao_after": {"status": "ABSENT"},
        "ao_created_at": BASE_TIME + timedelta(minutes=minutes),
    }


def test_record_is_not_committed_by_itself(db, record):
    AuditService().record(db, _entry(record))
    db.rollback()

    assert db.query(AttendanceOverride).count() == 0


def test_record_sets_timestamp(db, record):
    entry = _entry(record)
    del entry["ao_created_at"]

    created = AuditService().record(db, entry)
    db.commit()

    assert created.ao_created_at is not None


def test_history_is_newest_first(db, record):
    service = AuditService()
    service.record(db, _entry(record, minutes=0, action="CHECK_IN_OVERRIDE"))
    service.record(db, _entry(record, minutes=30, action="CHECK_OUT_OVERRIDE"))
    service.record(db, _entry(record, minutes=10, action="STATUS_CHANGE"))
    db.commit()

    history = service.history_for_attendance(db, record.ar_id)

    assert [h.ao_action for h in history] == ["CHECK_OUT_OVERRIDE", "STATUS_CHANGE", "CHECK_IN_OVERRIDE"]


def test_history_for_actor_filters_and_clamps(db, record):
    service = AuditService()
    for minutes in range(3):
        service.record(db, _entry(record, minutes=minutes))
    service.record(db, _entry(record, admin_id=OTHER_ADMIN_ID))
    db.commit()

    assert len(service.history_for_actor(db, ADMIN_ID, limit=10_000)) == 3
    assert len(service.history_for_actor(db, ADMIN_ID, limit=0)) == 1
    assert len(service.history_for_actor(db, OTHER_ADMIN_ID)) == 1


def test_best_effort_drops_broken_entry(db, record):
    service = AuditService()
    broken = _entry(record)
    broken["ao_reason"] = None

    assert service.record_best_effort(db, broken) is False
    assert service.record_best_effort(db, _entry(record)) is True
    db.commit()

    assert db.query(AttendanceOverride).count() == 1


def test_entries_are_append_only(db, record):
    entry = AuditService().record(db, _entry(record))
    db.commit()
    repo = AttendanceOverrideRepository()

    with pytest.raises(NotImplementedError):
        repo.update(db, entry, {"ao_reason": "changed"})
    with pytest.raises(NotImplementedError):
        repo.delete(db, entry.ao_id)


@pytest.mark.parametrize("method,args", [
    ("partial_update", (1, {"ao_reason": "changed"})),
    ("bulk_update", ([],)),
    ("update_or_create", ({"ao_id": 1}, {"ao_reason": "changed"})),
    ("delete_many", ([1],)),
    ("soft_delete", (1,)),
    ("restore", (1,)),
])
def test_inherited_mutations_are_blocked(db, record, method, args):
    entry = AuditService().record(db, _entry(record))
    db.commit()

    with pytest.raises(NotImplementedError):
        getattr(AttendanceOverrideRepository(), method)(db, *args)

    assert db.query(AttendanceOverride).filter_by(ao_id=entry.ao_id).one().ao_reason == "Reason long enough"
