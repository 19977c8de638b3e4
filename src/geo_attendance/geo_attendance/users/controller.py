from __future__ import annotations

from flask import Flask, session

from ..common.auth import login_required
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        user = container.auth_service.authenticate(data.get("username") or "", data.get("password") or "")

        session.clear()
        session["user_id"] = user.user_id
        session["name"] = user.full_name
        session["role"] = user.role.value
        session["company_id"] = user.company_id
        app.logger.info("User %s logged in", user.user_id)
        return ok({"user_id": user.user_id, "full_name": user.full_name, "role": user.role.value})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @login_required
    def logout():
        session.clear()
        return ok({"logged_out": True})
