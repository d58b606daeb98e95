from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from ..attendance.regularizer import AttendanceRegularizer
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_choice, require_max_length, require_non_empty
from ..core.constants import MAX_DOCUMENTS, MAX_PAGE_SIZE, REASON_MAX_LENGTH
from ..core.enums import (
    ApprovalLevel,
    ApprovalStatus,
    AuditAction,
    Priority,
    RequestedStatus,
    RequestStatus,
    RequestType,
)
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..notifications.service import NotificationService
from ..users.model import Actor
from .documents import find_document
from .model import (
    SORT_FIELDS,
    ApprovalRecord,
    AuditEntry,
    NewRegularization,
    OriginalAttendance,
    Page,
    RegularizationFilter,
    RegularizationRequest,
    SupportingDocument,
    Visibility,
)
from .policy import ApprovalPolicy
from .repository import RegularizationRepository

log = logging.getLogger(__name__)


class RegularizationService:
    """Workflow engine for attendance regularization requests.

    This is the only place workflow fields are changed. Every call takes the
    acting user explicitly as an ``Actor``; authorization questions are
    delegated to ``ApprovalPolicy``.
    """

    def __init__(
        self,
        requests: RegularizationRepository,
        attendance: AttendanceRepository,
        policy: ApprovalPolicy,
        regularizer: AttendanceRegularizer,
        notifier: NotificationService,
        clock: Callable = now_local,
    ):
        self._requests = requests
        self._attendance = attendance
        self._policy = policy
        self._regularizer = regularizer
        self._notifier = notifier
        self._clock = clock

    # -- helpers -----------------------------------------------------------

    def _load(self, request_id: int) -> RegularizationRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Regularization request not found")
        return req

    def _check_actionable(
        self,
        req: RegularizationRequest,
        actor: Actor,
        expected_level: Optional[ApprovalLevel],
    ) -> ApprovalLevel:
        if req.is_terminal or req.current_level is None:
            raise InvalidStateError(f"Request is already {req.status.value.lower()}")

        level = req.current_level
        if expected_level is not None:
            expected = require_choice(expected_level, ApprovalLevel, "Level")
            if expected != level:
                raise InvalidStateError(f"Request is no longer at the {expected.value} level")
        for own in self._policy.decided_levels(actor.role, req):
            raise InvalidStateError(f"The {own.value} level has already acted on this request")

        if actor.user_id == req.employee_id:
            raise AuthorizationError("You cannot act on your own request")
        if not self._policy.can_act(actor.role, req):
            raise AuthorizationError(f"{actor.role.value} cannot act at the {level.value} level")

        field = self._policy.approval_field_for(level)
        if getattr(req, field).status != ApprovalStatus.PENDING:
            raise InvalidStateError(f"The {level.value} level has already acted on this request")
        return level

    def _persist(self, req: RegularizationRequest, entry: AuditEntry, **changes) -> RegularizationRequest:
        updated = replace(
            req,
            version=req.version + 1,
            audit_trail=req.audit_trail + (entry,),
            **changes,
        )
        if not self._requests.save(updated, expected_version=req.version):
            log.warning("stale write on request %s (version %s)", req.request_id, req.version)
            raise InvalidStateError("Request was changed by someone else, reload and try again")
        return updated

    def _apply_attendance(self, req: RegularizationRequest, actor: Actor) -> RegularizationRequest:
        """Apply the correction after the approval is stored. Failures leave the flag unset."""

        try:
            record = self._regularizer.apply(req)
        except DomainError:
            log.exception("attendance update failed for request %s", req.request_id)
            return req

        entry = AuditEntry(
            action=AuditAction.ATTENDANCE_UPDATED,
            performed_by=actor.user_id,
            performed_at=self._clock(),
            details=f"Attendance record {record.attendance_id} set to {record.status.value}",
        )
        try:
            return self._persist(req, entry, attendance_updated=True)
        except DomainError:
            log.exception("could not flag attendance update on request %s", req.request_id)
            return req

    def _visibility(self, actor: Actor) -> Visibility:
        levels = self._policy.levels_for(actor.role)
        return Visibility(
            employee_id=actor.user_id,
            levels=levels,
            approver_id=actor.user_id if levels else None,
        )

    def _can_view(self, actor: Actor, req: RegularizationRequest) -> bool:
        if actor.user_id == req.employee_id or self._policy.can_view_all(actor.role):
            return True
        if actor.user_id in req.approver_ids():
            return True
        return self._policy.can_act(actor.role, req)

    @staticmethod
    def _clamp(page: int, per_page: int) -> tuple[int, int]:
        return max(int(page), 1), min(max(int(per_page), 1), MAX_PAGE_SIZE)

    # -- submission --------------------------------------------------------

    def submit(self, actor: Actor, data: NewRegularization) -> RegularizationRequest:
        level = self._policy.first_level_for(actor.role)
        now = self._clock()

        if data.attendance_date is None:
            raise ValidationError("Attendance date is required")
        if data.attendance_date > now.date():
            raise ValidationError("Cannot regularize a future date")

        request_type = require_choice(data.request_type, RequestType, "Request type")
        reason = require_max_length(require_non_empty(data.reason, "Reason"), "Reason", REASON_MAX_LENGTH)
        priority = require_choice(data.priority or Priority.NORMAL.value, Priority, "Priority")
        requested_status = None
        if data.requested_status:
            requested_status = require_choice(data.requested_status, RequestedStatus, "Requested status")

        check_in, check_out = data.requested_check_in, data.requested_check_out
        for value, label in ((check_in, "Requested check-in"), (check_out, "Requested check-out")):
            if value is not None and value.date() != data.attendance_date:
                raise ValidationError(f"{label} must fall on the attendance date")
        if check_in and check_out and check_out <= check_in:
            raise ValidationError("Requested check-out must be after check-in")

        if len(data.documents) > MAX_DOCUMENTS:
            raise ValidationError(f"At most {MAX_DOCUMENTS} documents can be attached")

        if self._requests.find_open_for_date(actor.user_id, data.attendance_date):
            raise InvalidStateError("A regularization request already exists for this date")

        current = self._attendance.get_for_user_and_date(actor.user_id, data.attendance_date)
        original = None
        if current:
            original = OriginalAttendance(
                check_in=current.check_in_time,
                check_out=current.check_out_time,
                status=current.status,
            )

        draft = RegularizationRequest(
            request_id=0,
            request_code=None,
            employee_id=actor.user_id,
            employee_role=actor.role,
            attendance_date=data.attendance_date,
            request_type=request_type,
            reason=reason,
            status=RequestStatus.PENDING,
            current_level=level,
            submitted_date=now,
            priority=priority,
            requested_check_in=check_in,
            requested_check_out=check_out,
            requested_status=requested_status,
            original_attendance=original,
            documents=tuple(data.documents),
            audit_trail=(
                AuditEntry(
                    action=AuditAction.CREATED,
                    performed_by=actor.user_id,
                    performed_at=now,
                    details=f"Submitted for {level.value} approval",
                ),
            ),
        )
        saved = self._requests.add(draft)
        log.info(
            "request %s submitted by user %s, routed to %s",
            saved.request_code, actor.user_id, level.value,
        )
        self._notifier.notify_level(level, saved)
        return saved

    def cancel(self, request_id: int, actor: Actor) -> RegularizationRequest:
        req = self._load(request_id)
        if actor.user_id != req.employee_id:
            raise AuthorizationError("Only the requester can cancel a request")
        acted = any(a.status != ApprovalStatus.PENDING for a in req.approvals)
        if req.status != RequestStatus.PENDING or acted:
            raise InvalidStateError("Only requests no approver has acted on can be cancelled")

        entry = AuditEntry(
            action=AuditAction.CANCELLED,
            performed_by=actor.user_id,
            performed_at=self._clock(),
            details="Cancelled by requester",
        )
        updated = self._persist(req, entry, status=RequestStatus.CANCELLED, current_level=None)
        log.info("request %s cancelled", req.request_id)
        return updated

    # -- decisions ---------------------------------------------------------

    def approve(
        self,
        request_id: int,
        actor: Actor,
        comments: str = "",
        expected_level: Optional[ApprovalLevel] = None,
    ) -> RegularizationRequest:
        req = self._load(request_id)
        level = self._check_actionable(req, actor, expected_level)
        comments = optional_text(comments, "Comments")
        if comments:
            require_max_length(comments, "Comments", REASON_MAX_LENGTH)

        now = self._clock()
        changes: dict = {
            self._policy.approval_field_for(level): ApprovalRecord(
                status=ApprovalStatus.APPROVED,
                approver_id=actor.user_id,
                action_at=now,
                comments=comments,
            )
        }
        next_level = self._policy.next_level_for(actor.role, level)
        if next_level is None:
            changes.update(
                status=RequestStatus.APPROVED,
                current_level=None,
                approved_date=now,
                final_approver_id=actor.user_id,
            )
        else:
            changes.update(status=RequestStatus.UNDER_REVIEW, current_level=next_level)

        details = f"Approved at {level.value} level"
        if self._policy.is_override(actor.role, level):
            details += f" by {actor.role.value} override"
        entry = AuditEntry(
            action=AuditAction.APPROVED,
            performed_by=actor.user_id,
            performed_at=now,
            details=details,
            comments=comments,
        )
        updated = self._persist(req, entry, **changes)
        log.info(
            "request %s approved at %s by user %s -> %s",
            req.request_id, level.value, actor.user_id,
            next_level.value if next_level else updated.status.value,
        )

        if next_level is None:
            updated = self._apply_attendance(updated, actor)
        else:
            self._notifier.notify_level(next_level, updated, forwarded=True)
        self._notifier.notify_requester(updated, approved=True, final=next_level is None)
        return updated

    def reject(
        self,
        request_id: int,
        actor: Actor,
        reason: str,
        expected_level: Optional[ApprovalLevel] = None,
    ) -> RegularizationRequest:
        reason = require_non_empty(reason, "Rejection reason")
        require_max_length(reason, "Rejection reason", REASON_MAX_LENGTH)

        req = self._load(request_id)
        level = self._check_actionable(req, actor, expected_level)

        now = self._clock()
        changes = {
            self._policy.approval_field_for(level): ApprovalRecord(
                status=ApprovalStatus.REJECTED,
                approver_id=actor.user_id,
                action_at=now,
                comments=reason,
            ),
            "status": self._policy.on_rejection(level),
            "current_level": None,
            "rejected_date": now,
            "rejection_reason": reason,
        }
        entry = AuditEntry(
            action=AuditAction.REJECTED,
            performed_by=actor.user_id,
            performed_at=now,
            details=f"Rejected at {level.value} level",
            comments=reason,
        )
        updated = self._persist(req, entry, **changes)
        log.info("request %s rejected at %s by user %s", req.request_id, level.value, actor.user_id)

        self._notifier.notify_requester(updated, approved=False, final=True)
        return updated

    def retry_attendance_update(self, request_id: int, actor: Actor) -> RegularizationRequest:
        if not self._policy.can_view_all(actor.role):
            raise AuthorizationError("Only HR, VP or Admin can re-apply attendance corrections")
        req = self._load(request_id)
        if req.status != RequestStatus.APPROVED:
            raise InvalidStateError("Only approved requests update attendance")
        if req.attendance_updated:
            raise InvalidStateError("Attendance was already updated for this request")

        record = self._regularizer.apply(req)
        entry = AuditEntry(
            action=AuditAction.ATTENDANCE_UPDATED,
            performed_by=actor.user_id,
            performed_at=self._clock(),
            details=f"Attendance record {record.attendance_id} set to {record.status.value} (retry)",
        )
        return self._persist(req, entry, attendance_updated=True)

    # -- reads -------------------------------------------------------------

    def list_for(
        self,
        actor: Actor,
        filters: Optional[RegularizationFilter] = None,
        *,
        page: int = 1,
        per_page: int = 10,
        sort_by: str = "submitted_date",
        descending: bool = True,
    ) -> Page:
        if sort_by not in SORT_FIELDS:
            raise ValidationError(f"sort_by must be one of: {', '.join(SORT_FIELDS)}")
        filters = filters or RegularizationFilter()
        if not self._policy.can_view_all(actor.role):
            filters = replace(filters, visible_to=self._visibility(actor))
        page, per_page = self._clamp(page, per_page)
        return self._requests.query(
            filters, page=page, per_page=per_page, sort_by=sort_by, descending=descending
        )

    def pending_for(self, actor: Actor, *, page: int = 1, per_page: int = 10) -> Page:
        """Open requests waiting at a level the actor may act on."""

        page, per_page = self._clamp(page, per_page)
        levels = self._policy.levels_for(actor.role)
        if not levels:
            return Page(items=[], total=0, page=page, per_page=per_page)
        filters = RegularizationFilter(
            statuses=(RequestStatus.PENDING, RequestStatus.UNDER_REVIEW),
            levels=levels,
            exclude_employee_id=actor.user_id,
        )
        return self._requests.query(
            filters, page=page, per_page=per_page, sort_by="priority", descending=True
        )

    def get_for(self, request_id: int, actor: Actor) -> RegularizationRequest:
        req = self._load(request_id)
        if not self._can_view(actor, req):
            raise AuthorizationError("You do not have access to this request")
        return req

    def get_document(self, request_id: int, actor: Actor, index: int) -> SupportingDocument:
        req = self.get_for(request_id, actor)
        doc = find_document(req.documents, int(index))
        if doc is None:
            raise NotFoundError("Document not found")
        return doc

    def statistics(
        self,
        actor: Actor,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict:
        target = actor.user_id if employee_id is None else int(employee_id)
        if target != actor.user_id and not self._policy.can_view_all(actor.role):
            raise AuthorizationError("You can only view your own statistics")
        if start_date and end_date and end_date < start_date:
            raise ValidationError("End date cannot be before start date")

        by_status = self._requests.count_by_status(target, start_date, end_date)
        by_type = self._requests.count_by_type(target, start_date, end_date)
        return {
            "employee_id": target,
            "total": sum(by_status.values()),
            "by_status": {s.value: by_status.get(s.value, 0) for s in RequestStatus},
            "by_type": {t.value: by_type[t.value] for t in RequestType if by_type.get(t.value)},
        }

    @staticmethod
    def configuration() -> dict:
        return {
            "request_types": [t.value for t in RequestType],
            "priorities": [p.value for p in Priority],
            "statuses": [s.value for s in RequestStatus],
            "requested_statuses": [s.value for s in RequestedStatus],
            "levels": [level.value for level in ApprovalLevel],
            "reason_max_length": REASON_MAX_LENGTH,
        }
