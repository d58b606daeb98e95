from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, user_id, work_date, check_in_time, check_out_time,
                       status, note, is_regularized, regularization_id
                FROM attendance_records
                WHERE user_id=%s AND work_date=%s
                """,
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                attendance_id=int(r["attendance_id"]),
                user_id=int(r["user_id"]),
                work_date=r["work_date"],
                check_in_time=r.get("check_in_time"),
                check_out_time=r.get("check_out_time"),
                status=AttendanceStatus(r["status"]),
                note=r.get("note"),
                is_regularized=bool(r.get("is_regularized")),
                regularization_id=r.get("regularization_id"),
            )

    def create_record(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str] = None,
        regularization_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    user_id, work_date, check_in_time, check_out_time, status, note,
                    is_regularized, regularization_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    work_date,
                    check_in_time,
                    check_out_time,
                    status.value,
                    note,
                    1 if regularization_id else 0,
                    regularization_id,
                ),
            )
            return int(cur.lastrowid)

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str] = None,
        regularization_id: Optional[int] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_out_time=%s, status=%s, note=%s,
                    is_regularized=%s, regularization_id=%s
                WHERE attendance_id=%s
                """,
                (
                    check_in_time,
                    check_out_time,
                    status.value,
                    note,
                    1 if regularization_id else 0,
                    regularization_id,
                    int(attendance_id),
                ),
            )
            # rowcount is 0 when nothing changed, so re-check existence.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return fetchone(cur) is not None
