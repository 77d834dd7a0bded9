from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.http import api_login_required, error_response
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import AuthenticationError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def api_login():
        data = request.get_json(silent=True) or {}
        try:
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except (AuthenticationError, ValidationError) as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Login failed")
            return error_response(e, message="System error while logging in")

        session.clear()
        session.permanent = bool(data.get("remember"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        return jsonify({
            "success": True,
            "user": {"id": s_user.user_id, "name": s_user.name, "email": s_user.email, "role": s_user.role.value},
        }), 200

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        session.clear()
        return jsonify({"success": True}), 200

    @app.route("/api/auth/me", methods=["GET"], endpoint="api_me")
    @api_login_required
    def api_me():
        try:
            s_user = container.auth_service.resolve(session.get("user_id"))
        except AuthenticationError as e:
            session.clear()
            return error_response(e)
        return jsonify({"id": s_user.user_id, "name": s_user.name, "email": s_user.email, "role": s_user.role.value}), 200
