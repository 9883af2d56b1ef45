from __future__ import annotations

import logging

from flask import Flask

from ..common.responses import error_response, internal_error, json_body, json_response
from ..core.exceptions import DomainError
from ..container import Container
from .model import NewUser

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/create-user", methods=["POST"], endpoint="admin_create_user")
    def create_user():
        try:
            new_user = NewUser.from_payload(json_body())
            user = container.user_provisioning_service.create_user(new_user)
            return json_response({"success": True, "user": user}, 201)
        except DomainError as e:
            return error_response(e, success=False)
        except Exception:
            logger.exception("Unexpected error creating user")
            return internal_error(success=False)
