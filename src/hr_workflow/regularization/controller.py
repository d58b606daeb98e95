from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from flask import Flask, request, send_file

from ..common.auth import current_actor, login_required
from ..common.datetime_utils import at_time, parse_iso_date, parse_optional_datetime
from ..common.http import ok
from ..common.paging import page_limit, sort_param
from ..common.validators import require_choice, require_text
from ..container import Container
from ..core.enums import ApprovalLevel, RequestStatus, RequestType
from ..core.exceptions import DomainError, ValidationError
from .model import SORT_FIELDS, NewRegularization, Page, RegularizationFilter, request_to_dict

PREFIX = "/api/regularizations"


def _payload() -> dict:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _optional_date(value: Optional[str]) -> Optional[date]:
    return parse_iso_date(value) if (require_text(value, "Date") or "").strip() else None


def _time_on(value: Optional[str], day: Optional[date]) -> Optional[datetime]:
    """Accept ``HH:MM`` (on the attendance date) or a full ISO datetime."""
    v = (require_text(value, "Time") or "").strip()
    if not v:
        return None
    if len(v) <= 5 and ":" in v:
        if day is None:
            raise ValidationError("Attendance date is required")
        try:
            return at_time(day, v)
        except ValueError:
            raise ValidationError(f"Invalid time (HH:MM): {value!r}")
    return parse_optional_datetime(v)


def _page_to_json(page: Page):
    return ok(
        [request_to_dict(r) for r in page.items],
        total=page.total,
        page=page.page,
        limit=page.per_page,
        pages=page.pages,
    )


def _filters_from_args() -> RegularizationFilter:
    args = request.args
    status = args.get("status")
    rtype = args.get("request_type") or args.get("type")
    level = args.get("level")
    employee = args.get("employee_id")
    try:
        employee_id = int(employee) if employee else None
    except ValueError:
        raise ValidationError("employee_id must be an integer")
    return RegularizationFilter(
        status=require_choice(status, RequestStatus, "status") if status else None,
        request_type=require_choice(rtype, RequestType, "request_type") if rtype else None,
        employee_id=employee_id,
        start_date=_optional_date(args.get("start_date")),
        end_date=_optional_date(args.get("end_date")),
        search=(args.get("search") or "").strip() or None,
        current_level=require_choice(level, ApprovalLevel, "level") if level else None,
    )


def register(app: Flask, container: Container) -> None:
    service = container.regularization_service
    storage = container.document_storage

    @app.route(PREFIX, methods=["GET"], endpoint="regularization_list")
    @login_required
    def list_requests():
        page, limit = page_limit()
        sort_by, descending = sort_param(SORT_FIELDS, "submitted_date")
        result = service.list_for(
            current_actor(),
            _filters_from_args(),
            page=page,
            per_page=limit,
            sort_by=sort_by,
            descending=descending,
        )
        return _page_to_json(result)

    @app.route(f"{PREFIX}/config", methods=["GET"], endpoint="regularization_config")
    @login_required
    def config():
        data = service.configuration()
        data["documents"] = storage.limits()
        return ok(data)

    @app.route(f"{PREFIX}/pending", methods=["GET"], endpoint="regularization_pending")
    @login_required
    def pending():
        page, limit = page_limit()
        return _page_to_json(service.pending_for(current_actor(), page=page, per_page=limit))

    @app.route(f"{PREFIX}/statistics", methods=["GET"], endpoint="regularization_statistics")
    @login_required
    def statistics():
        employee = request.args.get("employee_id")
        try:
            employee_id = int(employee) if employee else None
        except ValueError:
            raise ValidationError("employee_id must be an integer")
        data = service.statistics(
            current_actor(),
            employee_id=employee_id,
            start_date=_optional_date(request.args.get("start_date")),
            end_date=_optional_date(request.args.get("end_date")),
        )
        return ok(data)

    @app.route(f"{PREFIX}/<int:request_id>", methods=["GET"], endpoint="regularization_detail")
    @login_required
    def detail(request_id: int):
        return ok(request_to_dict(service.get_for(request_id, current_actor()), detail=True))

    @app.route(PREFIX, methods=["POST"], endpoint="regularization_create")
    @login_required
    def create():
        actor = current_actor()
        payload = _payload()
        day = _optional_date(payload.get("attendance_date"))

        check_in = _time_on(payload.get("requested_check_in"), day)
        check_out = _time_on(payload.get("requested_check_out"), day)

        documents = storage.store_all(request.files.getlist("documents"))
        data = NewRegularization(
            attendance_date=day,
            request_type=payload.get("request_type", ""),
            reason=payload.get("reason", ""),
            requested_check_in=check_in,
            requested_check_out=check_out,
            requested_status=payload.get("requested_status") or None,
            priority=payload.get("priority") or "Normal",
            documents=tuple(documents),
        )
        try:
            created = service.submit(actor, data)
        except DomainError:
            storage.discard(documents)
            raise
        return ok(request_to_dict(created, detail=True), status=201, message="Regularization request submitted")

    @app.route(f"{PREFIX}/<int:request_id>/approve", methods=["POST"], endpoint="regularization_approve")
    @login_required
    def approve(request_id: int):
        payload = _payload()
        updated = service.approve(
            request_id,
            current_actor(),
            comments=payload.get("comments", ""),
            expected_level=payload.get("level") or None,
        )
        return ok(request_to_dict(updated), message="Request approved")

    @app.route(f"{PREFIX}/<int:request_id>/reject", methods=["POST"], endpoint="regularization_reject")
    @login_required
    def reject(request_id: int):
        payload = _payload()
        updated = service.reject(
            request_id,
            current_actor(),
            reason=payload.get("reason") or payload.get("rejection_reason") or "",
            expected_level=payload.get("level") or None,
        )
        return ok(request_to_dict(updated), message="Request rejected")

    @app.route(f"{PREFIX}/<int:request_id>/cancel", methods=["POST"], endpoint="regularization_cancel")
    @login_required
    def cancel(request_id: int):
        updated = service.cancel(request_id, current_actor())
        return ok(request_to_dict(updated), message="Request cancelled")

    @app.route(
        f"{PREFIX}/<int:request_id>/attendance/retry",
        methods=["POST"],
        endpoint="regularization_retry_attendance",
    )
    @login_required
    def retry_attendance(request_id: int):
        updated = service.retry_attendance_update(request_id, current_actor())
        return ok(request_to_dict(updated), message="Attendance updated")

    @app.route(
        f"{PREFIX}/<int:request_id>/documents/<int:index>",
        methods=["GET"],
        endpoint="regularization_document",
    )
    @login_required
    def download_document(request_id: int, index: int):
        doc = service.get_document(request_id, current_actor(), index)
        path = storage.resolve(doc)
        return send_file(path, mimetype=doc.mime_type, as_attachment=True, download_name=doc.original_name)
