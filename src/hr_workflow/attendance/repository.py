from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert a record created by an approved regularization."""

        raise NotImplementedError

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
        """Override used after approval workflows."""

        raise NotImplementedError
