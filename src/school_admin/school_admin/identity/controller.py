from __future__ import annotations

from flask import Flask, session

from ..common.responses import api_endpoint, json_body, json_response
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/auth/login", methods=["POST"], endpoint="auth_login")
    @api_endpoint("login API")
    def login():
        body = json_body()
        profile = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session["user_id"] = profile.id
        session["school_id"] = profile.school_id
        session["role"] = profile.role.value
        return json_response({"user": profile})

    @app.route("/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return json_response({"message": "Logged out"})
