from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.auth import current_actor, login_required
from ..common.http import ok
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        payload = request.get_json(silent=True) or request.form
        s_user = container.auth_service.authenticate(
            payload.get("username", ""),
            payload.get("password", ""),
        )

        session.clear()
        session.permanent = bool(payload.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        app.logger.info("user %s logged in as %s", s_user.user_id, s_user.role.value)
        return ok(
            {"user_id": s_user.user_id, "full_name": s_user.full_name, "role": s_user.role.value},
            message="Logged in",
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        actor = current_actor()
        return ok({"user_id": actor.user_id, "full_name": session.get("name"), "role": actor.role.value})
