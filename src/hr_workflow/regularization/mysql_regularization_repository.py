from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import (
    ApprovalLevel,
    ApprovalStatus,
    AttendanceStatus,
    AuditAction,
    Priority,
    RequestedStatus,
    RequestStatus,
    RequestType,
)
from ..core.roles import normalize_role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import (
    ApprovalRecord,
    AuditEntry,
    OriginalAttendance,
    Page,
    RegularizationFilter,
    RegularizationRequest,
    SupportingDocument,
    format_request_code,
)
from .repository import RegularizationRepository

_APPROVAL_COLUMNS = (
    ("tl", "team_leader_approval"),
    ("tm", "team_manager_approval"),
    ("hr", "hr_approval"),
)

_SELECT = """
    SELECT r.request_id, r.request_code, r.employee_id, r.employee_role, r.attendance_date,
           r.request_type, r.reason, r.requested_check_in, r.requested_check_out,
           r.requested_status, r.priority, r.status, r.current_level,
           r.tl_status, r.tl_approver_id, r.tl_action_at, r.tl_comments,
           r.tm_status, r.tm_approver_id, r.tm_action_at, r.tm_comments,
           r.hr_status, r.hr_approver_id, r.hr_action_at, r.hr_comments,
           r.final_approver_id, r.submitted_date, r.approved_date, r.rejected_date,
           r.rejection_reason, r.original_check_in, r.original_check_out, r.original_status,
           r.attendance_updated, r.version
    FROM regularization_requests r
"""

_SORT_SQL = {
    "submitted_date": "r.submitted_date",
    "attendance_date": "r.attendance_date",
    # Ascending puts Low first, so descending lists Urgent first.
    "priority": "FIELD(r.priority, 'Low', 'Normal', 'High', 'Urgent')",
    "status": "r.status",
}

_OPEN_STATUSES = (RequestStatus.PENDING.value, RequestStatus.UNDER_REVIEW.value)


def _placeholders(values: Sequence) -> str:
    return ",".join(["%s"] * len(values))


def _to_approval(row: dict, prefix: str) -> ApprovalRecord:
    approver = row.get(f"{prefix}_approver_id")
    return ApprovalRecord(
        status=ApprovalStatus(row[f"{prefix}_status"]),
        approver_id=int(approver) if approver is not None else None,
        action_at=row.get(f"{prefix}_action_at"),
        comments=row.get(f"{prefix}_comments"),
    )


def _to_request(
    row: dict,
    documents: Iterable[SupportingDocument] = (),
    audit_trail: Iterable[AuditEntry] = (),
) -> RegularizationRequest:
    original = None
    if row.get("original_status") or row.get("original_check_in") or row.get("original_check_out"):
        original = OriginalAttendance(
            check_in=row.get("original_check_in"),
            check_out=row.get("original_check_out"),
            status=AttendanceStatus(row["original_status"]) if row.get("original_status") else None,
        )
    return RegularizationRequest(
        request_id=int(row["request_id"]),
        request_code=row.get("request_code"),
        employee_id=int(row["employee_id"]),
        employee_role=normalize_role(row["employee_role"]),
        attendance_date=row["attendance_date"],
        request_type=RequestType(row["request_type"]),
        reason=row["reason"],
        status=RequestStatus(row["status"]),
        current_level=ApprovalLevel(row["current_level"]) if row.get("current_level") else None,
        submitted_date=row["submitted_date"],
        priority=Priority(row.get("priority") or Priority.NORMAL.value),
        requested_check_in=row.get("requested_check_in"),
        requested_check_out=row.get("requested_check_out"),
        requested_status=RequestedStatus(row["requested_status"]) if row.get("requested_status") else None,
        team_leader_approval=_to_approval(row, "tl"),
        team_manager_approval=_to_approval(row, "tm"),
        hr_approval=_to_approval(row, "hr"),
        final_approver_id=row.get("final_approver_id"),
        approved_date=row.get("approved_date"),
        rejected_date=row.get("rejected_date"),
        rejection_reason=row.get("rejection_reason"),
        original_attendance=original,
        attendance_updated=bool(row.get("attendance_updated")),
        documents=tuple(documents),
        audit_trail=tuple(audit_trail),
        version=int(row.get("version") or 1),
    )


def _to_document(row: dict) -> SupportingDocument:
    return SupportingDocument(
        document_id=int(row["document_id"]),
        file_name=row["file_name"],
        original_name=row["original_name"],
        stored_path=row["stored_path"],
        file_size=int(row["file_size"]),
        mime_type=row["mime_type"],
        uploaded_at=row["uploaded_at"],
    )


def _to_audit(row: dict) -> AuditEntry:
    return AuditEntry(
        entry_id=int(row["entry_id"]),
        action=AuditAction(row["action"]),
        performed_by=int(row["performed_by"]),
        performed_at=row["performed_at"],
        details=row.get("details") or "",
        comments=row.get("comments"),
    )


def _workflow_values(req: RegularizationRequest) -> list[object]:
    values: list[object] = [
        req.status.value,
        req.current_level.value if req.current_level else None,
    ]
    for _, attr in _APPROVAL_COLUMNS:
        a: ApprovalRecord = getattr(req, attr)
        values += [a.status.value, a.approver_id, a.action_at, a.comments]
    values += [
        req.final_approver_id,
        req.approved_date,
        req.rejected_date,
        req.rejection_reason,
        1 if req.attendance_updated else 0,
    ]
    return values


class MySQLRegularizationRepository(RegularizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[RegularizationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE r.request_id=%s", (int(request_id),))
            row = fetchone(cur)
            if not row:
                return None

            cur.execute(
                """
                SELECT document_id, file_name, original_name, stored_path, file_size, mime_type, uploaded_at
                FROM regularization_documents
                WHERE request_id=%s
                ORDER BY document_id
                """,
                (int(request_id),),
            )
            documents = [_to_document(d) for d in fetchall(cur)]

            cur.execute(
                """
                SELECT entry_id, action, performed_by, performed_at, details, comments
                FROM regularization_audit_trail
                WHERE request_id=%s
                ORDER BY entry_id
                """,
                (int(request_id),),
            )
            audit = [_to_audit(a) for a in fetchall(cur)]

            return _to_request(row, documents, audit)

    def add(self, request: RegularizationRequest) -> RegularizationRequest:
        orig = request.original_attendance
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO regularization_requests(
                    employee_id, employee_role, attendance_date, request_type, reason,
                    requested_check_in, requested_check_out, requested_status, priority,
                    status, current_level,
                    tl_status, tl_approver_id, tl_action_at, tl_comments,
                    tm_status, tm_approver_id, tm_action_at, tm_comments,
                    hr_status, hr_approver_id, hr_action_at, hr_comments,
                    final_approver_id, approved_date, rejected_date, rejection_reason,
                    attendance_updated,
                    submitted_date, original_check_in, original_check_out, original_status, version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,
                       %s,%s,
                       %s,%s,%s,%s,
                       %s,%s,%s,%s,
                       %s,%s,%s,%s,
                       %s,%s,%s,%s,
                       %s,
                       %s,%s,%s,%s,%s)
                """,
                tuple(
                    [
                        int(request.employee_id),
                        request.employee_role.value,
                        request.attendance_date,
                        request.request_type.value,
                        request.reason,
                        request.requested_check_in,
                        request.requested_check_out,
                        request.requested_status.value if request.requested_status else None,
                        request.priority.value,
                    ]
                    + _workflow_values(request)
                    + [
                        request.submitted_date,
                        orig.check_in if orig else None,
                        orig.check_out if orig else None,
                        orig.status.value if orig and orig.status else None,
                        int(request.version),
                    ]
                ),
            )
            request_id = int(cur.lastrowid)
            code = format_request_code(request_id)
            cur.execute(
                "UPDATE regularization_requests SET request_code=%s WHERE request_id=%s",
                (code, request_id),
            )

            for doc in request.documents:
                cur.execute(
                    """
                    INSERT INTO regularization_documents(
                        request_id, file_name, original_name, stored_path, file_size, mime_type, uploaded_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        request_id,
                        doc.file_name,
                        doc.original_name,
                        doc.stored_path,
                        int(doc.file_size),
                        doc.mime_type,
                        doc.uploaded_at,
                    ),
                )
            self._insert_audit(cur, request_id, request.audit_trail)

        return replace(request, request_id=request_id, request_code=code)

    def save(self, request: RegularizationRequest, *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE regularization_requests
                SET status=%s, current_level=%s,
                    tl_status=%s, tl_approver_id=%s, tl_action_at=%s, tl_comments=%s,
                    tm_status=%s, tm_approver_id=%s, tm_action_at=%s, tm_comments=%s,
                    hr_status=%s, hr_approver_id=%s, hr_action_at=%s, hr_comments=%s,
                    final_approver_id=%s, approved_date=%s, rejected_date=%s, rejection_reason=%s,
                    attendance_updated=%s,
                    version=%s
                WHERE request_id=%s AND version=%s
                """,
                tuple(
                    _workflow_values(request)
                    + [int(request.version), int(request.request_id), int(expected_version)]
                ),
            )
            if cur.rowcount == 0:
                return False

            cur.execute(
                "SELECT COUNT(*) AS n FROM regularization_audit_trail WHERE request_id=%s",
                (int(request.request_id),),
            )
            stored = int((fetchone(cur) or {}).get("n") or 0)
            self._insert_audit(cur, request.request_id, request.audit_trail[stored:])
            return True

    @staticmethod
    def _insert_audit(cur, request_id: int, entries: Iterable[AuditEntry]) -> None:
        for entry in entries:
            cur.execute(
                """
                INSERT INTO regularization_audit_trail(
                    request_id, action, performed_by, performed_at, details, comments
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(request_id),
                    entry.action.value,
                    int(entry.performed_by),
                    entry.performed_at,
                    entry.details,
                    entry.comments,
                ),
            )

    @staticmethod
    def _where(f: RegularizationFilter) -> tuple[str, list[object]]:
        clauses = ["1=1"]
        params: list[object] = []

        if f.status is not None:
            clauses.append("r.status=%s")
            params.append(f.status.value)
        if f.statuses:
            clauses.append(f"r.status IN ({_placeholders(f.statuses)})")
            params.extend(s.value for s in f.statuses)
        if f.request_type is not None:
            clauses.append("r.request_type=%s")
            params.append(f.request_type.value)
        if f.employee_id is not None:
            clauses.append("r.employee_id=%s")
            params.append(int(f.employee_id))
        if f.exclude_employee_id is not None:
            clauses.append("r.employee_id<>%s")
            params.append(int(f.exclude_employee_id))
        if f.start_date is not None:
            clauses.append("r.attendance_date>=%s")
            params.append(f.start_date)
        if f.end_date is not None:
            clauses.append("r.attendance_date<=%s")
            params.append(f.end_date)
        if f.search:
            like = f"%{f.search.strip()}%"
            clauses.append("(r.request_code LIKE %s OR r.reason LIKE %s)")
            params += [like, like]
        if f.current_level is not None:
            clauses.append("r.current_level=%s")
            params.append(f.current_level.value)
        if f.levels:
            clauses.append(f"r.current_level IN ({_placeholders(f.levels)})")
            params.extend(level.value for level in f.levels)

        scope = f.visible_to
        if scope is not None:
            ors = ["r.employee_id=%s"]
            params.append(int(scope.employee_id))
            if scope.levels:
                ors.append(
                    f"(r.current_level IN ({_placeholders(scope.levels)}) "
                    f"AND r.status IN ({_placeholders(_OPEN_STATUSES)}))"
                )
                params.extend(level.value for level in scope.levels)
                params.extend(_OPEN_STATUSES)
            if scope.approver_id is not None:
                ors.append("%s IN (r.tl_approver_id, r.tm_approver_id, r.hr_approver_id)")
                params.append(int(scope.approver_id))
            clauses.append("(" + " OR ".join(ors) + ")")

        return " AND ".join(clauses), params

    def query(
        self,
        filters: RegularizationFilter,
        *,
        page: int = 1,
        per_page: int = 10,
        sort_by: str = "submitted_date",
        descending: bool = True,
    ) -> Page:
        where, params = self._where(filters)
        order_col = _SORT_SQL.get(sort_by, _SORT_SQL["submitted_date"])
        direction = "DESC" if descending else "ASC"
        offset = (max(int(page), 1) - 1) * int(per_page)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS total FROM regularization_requests r WHERE {where}",
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                _SELECT
                + f" WHERE {where} ORDER BY {order_col} {direction}, r.request_id {direction} LIMIT %s OFFSET %s",
                tuple(params + [int(per_page), offset]),
            )
            rows = fetchall(cur)

            docs_by_request: dict[int, list[SupportingDocument]] = {}
            ids = [int(r["request_id"]) for r in rows]
            if ids:
                cur.execute(
                    f"""
                    SELECT request_id, document_id, file_name, original_name, stored_path,
                           file_size, mime_type, uploaded_at
                    FROM regularization_documents
                    WHERE request_id IN ({_placeholders(ids)})
                    ORDER BY document_id
                    """,
                    tuple(ids),
                )
                for d in fetchall(cur):
                    docs_by_request.setdefault(int(d["request_id"]), []).append(_to_document(d))

        items = [_to_request(r, docs_by_request.get(int(r["request_id"]), ())) for r in rows]
        return Page(items=items, total=total, page=max(int(page), 1), per_page=int(per_page))

    def find_open_for_date(self, employee_id: int, attendance_date: date) -> Optional[RegularizationRequest]:
        statuses = (RequestStatus.PENDING.value, RequestStatus.UNDER_REVIEW.value, RequestStatus.APPROVED.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + f" WHERE r.employee_id=%s AND r.attendance_date=%s AND r.status IN ({_placeholders(statuses)})"
                + " ORDER BY r.request_id DESC LIMIT 1",
                (int(employee_id), attendance_date) + statuses,
            )
            row = fetchone(cur)
            return _to_request(row) if row else None

    def _count_by(
        self,
        column: str,
        employee_id: int,
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> dict[str, int]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if start_date is not None:
            clauses.append("attendance_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("attendance_date<=%s")
            params.append(end_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {column} AS k, COUNT(*) AS n
                FROM regularization_requests
                WHERE {' AND '.join(clauses)}
                GROUP BY {column}
                """,
                tuple(params),
            )
            return {r["k"]: int(r["n"]) for r in fetchall(cur)}

    def count_by_status(
        self,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, int]:
        return self._count_by("status", employee_id, start_date, end_date)

    def count_by_type(
        self,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, int]:
        return self._count_by("request_type", employee_id, start_date, end_date)
