from __future__ import annotations

from flask import Flask, request

from ..common.auth import current_actor, login_required
from ..common.http import ok
from ..container import Container
from .model import notification_to_dict


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notification_list")
    @login_required
    def list_notifications():
        actor = current_actor()
        unread_only = (request.args.get("unread") or "").lower() in ("1", "true", "yes")
        items = service.list_for(actor.user_id, unread_only=unread_only)
        return ok(
            [notification_to_dict(n) for n in items],
            unread=service.unread_count(actor.user_id),
        )

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="notification_read")
    @login_required
    def mark_read(notification_id: int):
        service.mark_read(notification_id, current_actor().user_id)
        return ok(message="Notification marked as read")

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="notification_read_all")
    @login_required
    def mark_all_read():
        count = service.mark_all_read(current_actor().user_id)
        return ok({"updated": count})
