from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.constants import REQUEST_CODE_DIGITS, REQUEST_CODE_PREFIX
from ..core.enums import (
    ApprovalLevel,
    ApprovalStatus,
    AttendanceStatus,
    AuditAction,
    Priority,
    RequestedStatus,
    RequestStatus,
    RequestType,
    Role,
)


@dataclass(frozen=True)
class ApprovalRecord:
    """One level's decision. Pending until that level acts, then immutable."""

    status: ApprovalStatus = ApprovalStatus.PENDING
    approver_id: Optional[int] = None
    action_at: Optional[datetime] = None
    comments: Optional[str] = None


@dataclass(frozen=True)
class SupportingDocument:
    file_name: str
    original_name: str
    stored_path: str
    file_size: int
    mime_type: str
    uploaded_at: datetime
    document_id: Optional[int] = None


@dataclass(frozen=True)
class AuditEntry:
    action: AuditAction
    performed_by: int
    performed_at: datetime
    details: str = ""
    comments: Optional[str] = None
    entry_id: Optional[int] = None


@dataclass(frozen=True)
class OriginalAttendance:
    """Snapshot of the attendance record as it was when the request was filed."""

    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: Optional[AttendanceStatus]


@dataclass(frozen=True)
class RegularizationRequest:
    request_id: int
    request_code: Optional[str]
    employee_id: int
    employee_role: Role
    attendance_date: date
    request_type: RequestType
    reason: str
    status: RequestStatus
    current_level: Optional[ApprovalLevel]
    submitted_date: datetime
    priority: Priority = Priority.NORMAL
    requested_check_in: Optional[datetime] = None
    requested_check_out: Optional[datetime] = None
    requested_status: Optional[RequestedStatus] = None
    team_leader_approval: ApprovalRecord = field(default_factory=ApprovalRecord)
    team_manager_approval: ApprovalRecord = field(default_factory=ApprovalRecord)
    hr_approval: ApprovalRecord = field(default_factory=ApprovalRecord)
    final_approver_id: Optional[int] = None
    approved_date: Optional[datetime] = None
    rejected_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    original_attendance: Optional[OriginalAttendance] = None
    attendance_updated: bool = False
    documents: tuple[SupportingDocument, ...] = ()
    audit_trail: tuple[AuditEntry, ...] = ()
    version: int = 1

    @property
    def is_terminal(self) -> bool:
        return not self.status.is_open

    @property
    def approvals(self) -> tuple[ApprovalRecord, ApprovalRecord, ApprovalRecord]:
        return (self.team_leader_approval, self.team_manager_approval, self.hr_approval)

    def approver_ids(self) -> set[int]:
        return {a.approver_id for a in self.approvals if a.approver_id is not None}


@dataclass(frozen=True)
class NewRegularization:
    """Input for a submission, already parsed from the HTTP layer."""

    attendance_date: Optional[date]
    request_type: str
    reason: str
    requested_check_in: Optional[datetime] = None
    requested_check_out: Optional[datetime] = None
    requested_status: Optional[str] = None
    priority: str = Priority.NORMAL.value
    documents: Sequence[SupportingDocument] = ()


@dataclass(frozen=True)
class Visibility:
    """Row-level scope for a non-supervisory reader.

    A row is visible when it belongs to ``employee_id``, sits at one of
    ``levels`` or was acted on by ``approver_id``.
    """

    employee_id: int
    levels: tuple[ApprovalLevel, ...] = ()
    approver_id: Optional[int] = None


@dataclass(frozen=True)
class RegularizationFilter:
    status: Optional[RequestStatus] = None
    statuses: tuple[RequestStatus, ...] = ()
    request_type: Optional[RequestType] = None
    employee_id: Optional[int] = None
    exclude_employee_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None
    current_level: Optional[ApprovalLevel] = None
    levels: tuple[ApprovalLevel, ...] = ()
    visible_to: Optional[Visibility] = None


SORT_FIELDS = ("submitted_date", "attendance_date", "priority", "status")


@dataclass(frozen=True)
class Page:
    items: Sequence[RegularizationRequest]
    total: int
    page: int
    per_page: int

    @property
    def pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page


def format_request_code(request_id: int) -> str:
    return f"{REQUEST_CODE_PREFIX}{int(request_id):0{REQUEST_CODE_DIGITS}d}"


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _approval_to_dict(a: ApprovalRecord) -> dict:
    return {
        "status": a.status.value,
        "approver_id": a.approver_id,
        "action_at": _iso(a.action_at),
        "comments": a.comments,
    }


def request_to_dict(req: RegularizationRequest, *, detail: bool = False) -> dict:
    """JSON shape used by the API."""

    out = {
        "id": req.request_id,
        "request_code": req.request_code,
        "employee_id": req.employee_id,
        "employee_role": req.employee_role.value,
        "attendance_date": _iso(req.attendance_date),
        "request_type": req.request_type.value,
        "reason": req.reason,
        "requested_check_in": _iso(req.requested_check_in),
        "requested_check_out": _iso(req.requested_check_out),
        "requested_status": req.requested_status.value if req.requested_status else None,
        "priority": req.priority.value,
        "status": req.status.value,
        "current_level": req.current_level.value if req.current_level else None,
        "team_leader_approval": _approval_to_dict(req.team_leader_approval),
        "team_manager_approval": _approval_to_dict(req.team_manager_approval),
        "hr_approval": _approval_to_dict(req.hr_approval),
        "final_approver_id": req.final_approver_id,
        "submitted_date": _iso(req.submitted_date),
        "approved_date": _iso(req.approved_date),
        "rejected_date": _iso(req.rejected_date),
        "rejection_reason": req.rejection_reason,
        "attendance_updated": req.attendance_updated,
        "document_count": len(req.documents),
        "version": req.version,
    }
    if detail:
        out["documents"] = [
            {
                "index": i,
                "original_name": d.original_name,
                "file_size": d.file_size,
                "mime_type": d.mime_type,
                "uploaded_at": _iso(d.uploaded_at),
            }
            for i, d in enumerate(req.documents)
        ]
        out["audit_trail"] = [
            {
                "action": e.action.value,
                "performed_by": e.performed_by,
                "performed_at": _iso(e.performed_at),
                "details": e.details,
                "comments": e.comments,
            }
            for e in req.audit_trail
        ]
        orig = req.original_attendance
        out["original_attendance"] = (
            {
                "check_in": _iso(orig.check_in),
                "check_out": _iso(orig.check_out),
                "status": orig.status.value if orig.status else None,
            }
            if orig
            else None
        )
    return out
