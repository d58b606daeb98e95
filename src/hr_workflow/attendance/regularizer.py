from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import at_time
from ..core.constants import DEFAULT_CHECK_IN, DEFAULT_CHECK_OUT, HALF_DAY_CHECK_OUT
from ..core.enums import AttendanceStatus, RequestedStatus, RequestType
from ..core.exceptions import StoreError, ValidationError
from ..regularization.model import RegularizationRequest
from .model import AttendanceRecord
from .repository import AttendanceRepository

log = logging.getLogger(__name__)

_REQUESTED_TO_ATTENDANCE = {
    RequestedStatus.PRESENT: AttendanceStatus.PRESENT,
    RequestedStatus.HALF_DAY: AttendanceStatus.HALF_DAY,
    RequestedStatus.WORK_FROM_HOME: AttendanceStatus.WORK_FROM_HOME,
}

# Types that always get a full day, requested times winning over the standard ones.
_FULL_DAY_TYPES = {
    RequestType.MISSED_BOTH,
    RequestType.ABSENT_TO_PRESENT,
    RequestType.WORK_FROM_HOME,
    RequestType.FIELD_WORK,
    RequestType.MEDICAL_EMERGENCY,
}

_TAGGED_TYPES = {
    RequestType.WORK_FROM_HOME,
    RequestType.FIELD_WORK,
    RequestType.MEDICAL_EMERGENCY,
    RequestType.TRANSPORT_ISSUE,
}


@dataclass(frozen=True)
class Correction:
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceRegularizer:
    """Applies an approved regularization to the employee's attendance record."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        check_in: str = DEFAULT_CHECK_IN,
        check_out: str = DEFAULT_CHECK_OUT,
        half_day_check_out: str = HALF_DAY_CHECK_OUT,
    ):
        self._attendance = attendance
        self._check_in = check_in
        self._check_out = check_out
        self._half_day_check_out = half_day_check_out

    def correction_for(self, request: RegularizationRequest, current: Optional[AttendanceRecord]) -> Correction:
        day = request.attendance_date
        std_in = at_time(day, self._check_in)
        std_out = at_time(day, self._check_out)
        cur_in = current.check_in_time if current else None
        cur_out = current.check_out_time if current else None
        cur_status = current.status if current else AttendanceStatus.ABSENT
        req_in = request.requested_check_in
        req_out = request.requested_check_out
        rtype = request.request_type

        if rtype == RequestType.MISSED_CHECK_IN:
            check_in = req_in or std_in
            check_out = cur_out
            if check_out is None and cur_status != AttendanceStatus.ABSENT:
                check_out = std_out
            fix = Correction(check_in, check_out, AttendanceStatus.PRESENT)
        elif rtype == RequestType.MISSED_CHECK_OUT:
            fix = Correction(cur_in or std_in, req_out or std_out, AttendanceStatus.PRESENT)
        elif rtype in _FULL_DAY_TYPES:
            status = AttendanceStatus.PRESENT
            if rtype == RequestType.WORK_FROM_HOME:
                status = AttendanceStatus.WORK_FROM_HOME
            fix = Correction(req_in or std_in, req_out or std_out, status)
        elif rtype == RequestType.LATE_ARRIVAL:
            fix = Correction(req_in or cur_in, cur_out, AttendanceStatus.PRESENT)
        elif rtype == RequestType.EARLY_DEPARTURE:
            fix = Correction(cur_in, req_out or cur_out, AttendanceStatus.PRESENT)
        elif rtype == RequestType.ABSENT_TO_HALF_DAY:
            fix = Correction(
                req_in or std_in,
                req_out or at_time(day, self._half_day_check_out),
                AttendanceStatus.HALF_DAY,
            )
        elif rtype == RequestType.TRANSPORT_ISSUE:
            fix = Correction(req_in or std_in, cur_out or req_out or std_out, AttendanceStatus.PRESENT)
        else:
            # System Error, Other: manual override of whatever was supplied.
            status = AttendanceStatus.PRESENT
            if request.requested_status is not None:
                status = _REQUESTED_TO_ATTENDANCE[request.requested_status]
            fix = Correction(req_in or cur_in, req_out or cur_out, status)

        if fix.check_in and fix.check_out and fix.check_out < fix.check_in:
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        note = current.note if current else None
        if rtype in _TAGGED_TYPES:
            note = f"{rtype.value} - Regularized"
        elif request.request_code:
            note = f"Regularized ({request.request_code})"
        return Correction(fix.check_in, fix.check_out, fix.status, note)

    def apply(self, request: RegularizationRequest) -> AttendanceRecord:
        current = self._attendance.get_for_user_and_date(request.employee_id, request.attendance_date)
        fix = self.correction_for(request, current)

        if current is None:
            attendance_id = self._attendance.create_record(
                user_id=request.employee_id,
                work_date=request.attendance_date,
                check_in_time=fix.check_in,
                check_out_time=fix.check_out,
                status=fix.status,
                note=fix.note,
                regularization_id=request.request_id,
            )
            log.info("created attendance %s for regularization %s", attendance_id, request.request_id)
        else:
            attendance_id = current.attendance_id
            ok = self._attendance.admin_update_record(
                attendance_id=attendance_id,
                check_in_time=fix.check_in,
                check_out_time=fix.check_out,
                status=fix.status,
                note=fix.note,
                regularization_id=request.request_id,
            )
            if not ok:
                raise StoreError("Attendance update failed")
            log.info("updated attendance %s for regularization %s", attendance_id, request.request_id)

        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=request.employee_id,
            work_date=request.attendance_date,
            check_in_time=fix.check_in,
            check_out_time=fix.check_out,
            status=fix.status,
            note=fix.note,
            is_regularized=True,
            regularization_id=request.request_id,
        )
