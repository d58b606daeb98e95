from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from types import SimpleNamespace
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from hr_workflow.attendance.model import AttendanceRecord
from hr_workflow.attendance.regularizer import AttendanceRegularizer
from hr_workflow.core.enums import AttendanceStatus, NotificationType, Role
from hr_workflow.core.exceptions import StoreError
from hr_workflow.notifications.model import Notification
from hr_workflow.notifications.service import NotificationService
from hr_workflow.regularization.model import (
    Page,
    RegularizationFilter,
    RegularizationRequest,
    format_request_code,
)
from hr_workflow.regularization.policy import ApprovalPolicy
from hr_workflow.regularization.service import RegularizationService
from hr_workflow.users.model import Actor, User

NOW = datetime(2026, 3, 10, 12, 0, 0)
YESTERDAY = date(2026, 3, 9)

_OPEN_OR_APPROVED = {"Pending", "Under Review", "Approved"}


class InMemoryRegularizations:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, RegularizationRequest] = {}
        self.fail_next_save = False

    def get(self, request_id: int) -> Optional[RegularizationRequest]:
        return self.rows.get(int(request_id))

    def add(self, request: RegularizationRequest) -> RegularizationRequest:
        rid = self._next_id
        self._next_id += 1
        stored = replace(request, request_id=rid, request_code=format_request_code(rid))
        self.rows[rid] = stored
        return stored

    def save(self, request: RegularizationRequest, *, expected_version: int) -> bool:
        current = self.rows.get(request.request_id)
        if self.fail_next_save:
            self.fail_next_save = False
            return False
        if current is None or current.version != expected_version:
            return False
        self.rows[request.request_id] = request
        return True

    @staticmethod
    def _matches(r: RegularizationRequest, f: RegularizationFilter) -> bool:
        if f.status is not None and r.status != f.status:
            return False
        if f.statuses and r.status not in f.statuses:
            return False
        if f.request_type is not None and r.request_type != f.request_type:
            return False
        if f.employee_id is not None and r.employee_id != f.employee_id:
            return False
        if f.exclude_employee_id is not None and r.employee_id == f.exclude_employee_id:
            return False
        if f.start_date is not None and r.attendance_date < f.start_date:
            return False
        if f.end_date is not None and r.attendance_date > f.end_date:
            return False
        if f.search and f.search.lower() not in f"{r.request_code} {r.reason}".lower():
            return False
        if f.current_level is not None and r.current_level != f.current_level:
            return False
        if f.levels and r.current_level not in f.levels:
            return False
        scope = f.visible_to
        if scope is not None:
            visible = r.employee_id == scope.employee_id
            visible = visible or (r.current_level in scope.levels and r.status.is_open)
            visible = visible or (scope.approver_id is not None and scope.approver_id in r.approver_ids())
            if not visible:
                return False
        return True

    def query(self, filters, *, page=1, per_page=10, sort_by="submitted_date", descending=True) -> Page:
        rows = [r for r in self.rows.values() if self._matches(r, filters)]
        if sort_by == "priority":
            rows.sort(key=lambda r: (-r.priority.rank, r.request_id), reverse=descending)
        else:
            rows.sort(key=lambda r: (getattr(r, sort_by), r.request_id), reverse=descending)
        start = (page - 1) * per_page
        return Page(items=rows[start:start + per_page], total=len(rows), page=page, per_page=per_page)

    def find_open_for_date(self, employee_id, attendance_date):
        for r in self.rows.values():
            if r.employee_id == employee_id and r.attendance_date == attendance_date and r.status.value in _OPEN_OR_APPROVED:
                return r
        return None

    def _count(self, attr, employee_id, start_date, end_date):
        out: dict[str, int] = {}
        for r in self.rows.values():
            if r.employee_id != employee_id:
                continue
            if start_date and r.attendance_date < start_date:
                continue
            if end_date and r.attendance_date > end_date:
                continue
            key = getattr(r, attr).value
            out[key] = out.get(key, 0) + 1
        return out

    def count_by_status(self, employee_id, start_date=None, end_date=None):
        return self._count("status", employee_id, start_date, end_date)

    def count_by_type(self, employee_id, start_date=None, end_date=None):
        return self._count("request_type", employee_id, start_date, end_date)


class InMemoryAttendance:
    def __init__(self):
        self._next_id = 100
        self.records: dict[tuple[int, date], AttendanceRecord] = {}
        self.broken = False

    def seed(self, user_id: int, work_date: date, **kwargs) -> AttendanceRecord:
        rec = AttendanceRecord(
            attendance_id=self._next_id,
            user_id=user_id,
            work_date=work_date,
            check_in_time=kwargs.get("check_in_time"),
            check_out_time=kwargs.get("check_out_time"),
            status=kwargs.get("status", AttendanceStatus.ABSENT),
            note=kwargs.get("note"),
        )
        self._next_id += 1
        self.records[(user_id, work_date)] = rec
        return rec

    def get_for_user_and_date(self, user_id, work_date):
        return self.records.get((user_id, work_date))

    def create_record(self, *, user_id, work_date, check_in_time, check_out_time, status, note=None, regularization_id=None):
        if self.broken:
            raise StoreError("Database operation failed")
        rec = self.seed(user_id, work_date, check_in_time=check_in_time, check_out_time=check_out_time, status=status, note=note)
        self.records[(user_id, work_date)] = replace(rec, is_regularized=True, regularization_id=regularization_id)
        return rec.attendance_id

    def admin_update_record(self, *, attendance_id, check_in_time, check_out_time, status, note=None, regularization_id=None):
        if self.broken:
            raise StoreError("Database operation failed")
        for key, rec in self.records.items():
            if rec.attendance_id == attendance_id:
                self.records[key] = replace(
                    rec,
                    check_in_time=check_in_time,
                    check_out_time=check_out_time,
                    status=status,
                    note=note,
                    is_regularized=True,
                    regularization_id=regularization_id,
                )
                return True
        return False


@dataclass
class InMemoryUsers:
    users_by_id: dict[int, User]

    def get_by_username(self, username):
        for u in self.users_by_id.values():
            if u.username == username:
                return u
        return None

    def list_active_by_roles(self, roles):
        wanted = set(roles)
        return [u for u in self.users_by_id.values() if u.is_active and u.role in wanted]


class InMemoryNotifications:
    def __init__(self):
        self.items: list[Notification] = []
        self.broken = False

    def add(self, *, recipient_id, title, message, type: NotificationType, request_id=None):
        if self.broken:
            raise StoreError("Database operation failed")
        n = Notification(
            notification_id=len(self.items) + 1,
            recipient_id=recipient_id,
            title=title,
            message=message,
            type=type,
            created_at=NOW,
            request_id=request_id,
        )
        self.items.append(n)
        return n.notification_id

    def for_user(self, user_id):
        return [n for n in self.items if n.recipient_id == user_id]

    def list_for(self, recipient_id, *, unread_only=False, limit=50):
        rows = [n for n in self.for_user(recipient_id) if not (unread_only and n.is_read)]
        return rows[:limit]

    def count_unread(self, recipient_id):
        return len([n for n in self.for_user(recipient_id) if not n.is_read])

    def mark_read(self, notification_id, recipient_id, read_at):
        for i, n in enumerate(self.items):
            if n.notification_id == notification_id and n.recipient_id == recipient_id:
                self.items[i] = replace(n, is_read=True, read_at=n.read_at or read_at)
                return True
        return False

    def mark_all_read(self, recipient_id, read_at):
        count = 0
        for i, n in enumerate(self.items):
            if n.recipient_id == recipient_id and not n.is_read:
                self.items[i] = replace(n, is_read=True, read_at=read_at)
                count += 1
        return count


def _user(user_id: int, username: str, role: Role, password: str = "secret123") -> User:
    return User(
        user_id=user_id,
        full_name=username.title(),
        username=username,
        password_hash=generate_password_hash(password),
        role=role,
    )


@pytest.fixture
def people() -> SimpleNamespace:
    return SimpleNamespace(
        employee=Actor(1, Role.EMPLOYEE),
        lead=Actor(2, Role.TEAM_LEADER),
        manager=Actor(3, Role.TEAM_MANAGER),
        hr=Actor(4, Role.HR),
        vp=Actor(5, Role.VP),
        admin=Actor(6, Role.ADMIN),
        other_employee=Actor(7, Role.EMPLOYEE),
        other_lead=Actor(8, Role.TEAM_LEADER),
    )


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers(
        {
            1: _user(1, "employee", Role.EMPLOYEE),
            2: _user(2, "lead", Role.TEAM_LEADER),
            3: _user(3, "manager", Role.TEAM_MANAGER),
            4: _user(4, "hr", Role.HR),
            5: _user(5, "vp", Role.VP),
            6: _user(6, "admin", Role.ADMIN),
            7: _user(7, "employee2", Role.EMPLOYEE),
            8: _user(8, "lead2", Role.TEAM_LEADER),
        }
    )


@pytest.fixture
def workflow(users_repo) -> SimpleNamespace:
    requests = InMemoryRegularizations()
    attendance = InMemoryAttendance()
    notifications = InMemoryNotifications()
    policy = ApprovalPolicy()
    notifier = NotificationService(notifications, users_repo, policy, clock=lambda: NOW)
    service = RegularizationService(
        requests,
        attendance,
        policy,
        AttendanceRegularizer(attendance),
        notifier,
        clock=lambda: NOW,
    )
    return SimpleNamespace(
        service=service,
        requests=requests,
        attendance=attendance,
        notifications=notifications,
        notifier=notifier,
        policy=policy,
    )
