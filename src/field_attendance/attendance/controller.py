from __future__ import annotations

import logging

from flask import Flask, request

from ..common.http import error_response, ok
from ..container import Container
from ..core.exceptions import ValidationError
from ..users.auth import build_guards, current_principal

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    token_required, _ = build_guards(container.token_service)
    service = container.attendance_service

    @app.route("/api/attendance/submit", methods=["POST"], endpoint="attendance_submit")
    @token_required
    def submit():
        try:
            selfie = request.files.get("selfie")
            if selfie is None:
                raise ValidationError("Selfie image is required")

            record = service.submit(
                current_principal(),
                image=selfie.read(),
                latitude=request.form.get("latitude"),
                longitude=request.form.get("longitude"),
                timestamp=request.form.get("timestamp"),
                existing_image_url=request.form.get("imageUrl") or None,
            )
        except Exception as e:
            return error_response(e)
        return ok("Attendance submitted successfully", data=record.to_api(), status=201)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @token_required
    def today():
        try:
            records = service.list_today(current_principal())
        except Exception as e:
            return error_response(e)
        return ok(data=[r.to_api() for r in records], count=len(records))

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @token_required
    def list_attendance():
        try:
            records = service.list_for_user(
                current_principal(),
                start_date=request.args.get("startDate"),
                end_date=request.args.get("endDate"),
            )
        except Exception as e:
            return error_response(e)
        return ok(data=[r.to_api() for r in records], count=len(records))

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @token_required
    def stats():
        try:
            result = service.stats(current_principal())
        except Exception as e:
            return error_response(e)
        return ok(data=result.to_api())

    @app.route("/api/attendance/<record_id>", methods=["DELETE"], endpoint="attendance_delete")
    @token_required
    def delete(record_id: str):
        try:
            service.delete(current_principal(), record_id)
        except Exception as e:
            return error_response(e)
        return ok("Attendance record deleted successfully")
