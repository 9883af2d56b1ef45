from __future__ import annotations

from flask import Flask, request

from ..common.responses import api_endpoint, json_body, json_response
from ..core.exceptions import ValidationError
from ..container import Container
from .model import NewTeacher


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/teachers", methods=["GET"], endpoint="admin_teachers")
    @api_endpoint("teachers GET API")
    def list_teachers():
        school_id = request.args.get("school_id")
        user_id = request.args.get("user_id")
        if not school_id or not user_id:
            raise ValidationError("Missing school_id or user_id parameter")

        teachers = container.teacher_service.list_teachers(school_id=school_id, user_id=user_id)
        return json_response(
            [{"id": t.id, "name": t.name, "email": t.email, "phone": t.phone} for t in teachers]
        )

    @app.route("/admin/teachers", methods=["POST"], endpoint="admin_create_teacher")
    @api_endpoint("teachers POST API")
    def create_teacher():
        new_teacher = NewTeacher.from_payload(json_body())
        created = container.teacher_service.create_teacher(new_teacher)
        return json_response({"message": "Teacher created successfully", "teacher": created}, 201)
