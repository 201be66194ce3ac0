from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, session

from ..common.http import json_error, json_errors, json_ok, login_required, request_json
from ..core.constants import DEFAULT_SESSION_DAYS
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    @app.route("/auth/login", methods=["POST"], endpoint="auth_login")
    @json_errors
    def login():
        body = request_json()
        s_user = container.auth_service.authenticate(body.get("username", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember_me"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        logger.info("login user_id=%s role=%s", s_user.user_id, s_user.role.value)
        return json_ok(
            {"user_id": s_user.user_id, "full_name": s_user.full_name, "role": s_user.role.value},
            message="Logged in",
        )

    @app.route("/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        if "user_id" not in session:
            return json_error("Not authenticated", 401)
        session.clear()
        return json_ok(message="Logged out")

    @app.route("/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        return json_ok({"user_id": int(session["user_id"]), "full_name": session.get("name"), "role": session.get("role")})
