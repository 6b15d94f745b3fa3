"""
Attendance Override Repository - Append-only access to the override audit trail
"""
from typing import List
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from app.models.attendance_override import AttendanceOverride


class AttendanceOverrideRepository(BaseRepository[AttendanceOverride]):
    """
    Only appends and reads. The generic update/delete helpers inherited from
    BaseRepository are disabled so entries stay immutable.
    """

    def __init__(self):
        super().__init__(AttendanceOverride)

    def append(self, db: Session, entry_data: dict) -> AttendanceOverride:
        """Stage an entry in the caller's transaction"""
        db_entry = AttendanceOverride(**entry_data)
        db.add(db_entry)
        db.flush()
        return db_entry

    def get_for_attendance(self, db: Session, attendance_id: int) -> List[AttendanceOverride]:
        """Entries for one attendance record, newest first"""
        return db.query(AttendanceOverride).filter(
            AttendanceOverride.ao_attendance_id == attendance_id
        ).order_by(AttendanceOverride.ao_created_at.desc(), AttendanceOverride.ao_id.desc()).all()

    def get_for_admin(self, db: Session, admin_id: int, limit: int = 50) -> List[AttendanceOverride]:
        """Entries written by one admin, newest first, bounded"""
        return db.query(AttendanceOverride).filter(
            AttendanceOverride.ao_admin_id == admin_id
        ).order_by(
            AttendanceOverride.ao_created_at.desc(), AttendanceOverride.ao_id.desc()
        ).limit(limit).all()

    def _append_only(self, *args, **kwargs):
        raise NotImplementedError("Attendance overrides are append-only")

    update = _append_only
    partial_update = _append_only
    bulk_update = _append_only
    update_or_create = _append_only
    delete = _append_only
    delete_many = _append_only
    soft_delete = _append_only
    restore = _append_only
