"""
Attendance Record Repository - Data access layer for per (event, staff) attendance
"""
from typing import Optional, List, Dict, Sequence, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import update, func
from sqlalchemy.exc import IntegrityError

from atams.db import BaseRepository
from app.models.attendance_record import AttendanceRecord


class AttendanceRecordRepository(BaseRepository[AttendanceRecord]):
    def __init__(self):
        super().__init__(AttendanceRecord)

    def get_for_event_and_staff(self, db: Session, event_id: int, staff_id: int) -> Optional[AttendanceRecord]:
        return db.query(AttendanceRecord).populate_existing().filter(
            AttendanceRecord.ar_event_id == event_id,
            AttendanceRecord.ar_staff_id == staff_id
        ).first()

    def get_for_update(self, db: Session, attendance_id: int) -> Optional[AttendanceRecord]:
        """Lock the row for the rest of the transaction (no-op on SQLite)"""
        return db.query(AttendanceRecord).filter(
            AttendanceRecord.ar_id == attendance_id
        ).populate_existing().with_for_update().first()

    def create_if_absent(self, db: Session, record_data: dict) -> Tuple[AttendanceRecord, bool]:
        """
        Insert the record unless one already exists for the (event, staff) pair.
        The unique constraint decides; a duplicate returns the existing row.

        Returns:
            (record, created)
        """
        try:
            with db.begin_nested():
                db_record = AttendanceRecord(**record_data)
                db.add(db_record)
            return db_record, True
        except IntegrityError:
            existing = self.get_for_event_and_staff(
                db, record_data["ar_event_id"], record_data["ar_staff_id"]
            )
            if existing is None:
                raise
            return existing, False

    def compare_and_set(
        self,
        db: Session,
        attendance_id: int,
        expected: Optional[Sequence[str]],
        values: dict
    ) -> bool:
        """
        Apply values only if ar_status is still one of expected, in one UPDATE.
        expected=None applies unconditionally. Returns False when zero rows matched.
        """
        stmt = update(AttendanceRecord).where(AttendanceRecord.ar_id == attendance_id)
        if expected is not None:
            stmt = stmt.where(AttendanceRecord.ar_status.in_(list(expected)))
        result = db.execute(
            stmt.values(**values),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount == 1

    def count_by_status(self, db: Session, event_id: int) -> Dict[str, int]:
        """Attendance counts per status for one event using ORM"""
        rows = db.query(
            AttendanceRecord.ar_status,
            func.count(AttendanceRecord.ar_id)
        ).filter(
            AttendanceRecord.ar_event_id == event_id
        ).group_by(AttendanceRecord.ar_status).all()
        return {status: count for status, count in rows}

    def get_records_for_event(
        self,
        db: Session,
        event_id: int,
        status: str = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[AttendanceRecord]:
        """Get event attendance, latest check-in first, using ORM"""
        query = db.query(AttendanceRecord).filter(AttendanceRecord.ar_event_id == event_id)

        if status:
            query = query.filter(AttendanceRecord.ar_status == status)

        return query.order_by(
            AttendanceRecord.ar_check_in_time.desc(),
            AttendanceRecord.ar_id.desc()
        ).offset(skip).limit(limit).all()

    def count_records_for_event(self, db: Session, event_id: int, status: str = None) -> int:
        """Count event attendance using native SQL"""
        if status:
            query = """
                SELECT COUNT(*)
                FROM staffing.attendance_records
                WHERE ar_event_id = :event_id
                AND ar_status = :status
            """
            return self.execute_raw_sql_scalar(db, query, {"event_id": event_id, "status": status})
        else:
            query = """
                SELECT COUNT(*)
                FROM staffing.attendance_records
                WHERE ar_event_id = :event_id
            """
            return self.execute_raw_sql_scalar(db, query, {"event_id": event_id})
