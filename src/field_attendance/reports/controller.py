from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.http import error_response, ok
from ..container import Container
from ..users.auth import build_guards
from .service import EXPORT_FIELDS


def register(app: Flask, container: Container) -> None:
    _, admin_required = build_guards(container.token_service)
    reports = container.report_service

    def _write_export_csv(*, data, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance")
    @admin_required
    def admin_attendance():
        try:
            records = reports.list_attendance(
                start_date=request.args.get("startDate"),
                end_date=request.args.get("endDate"),
                employee_id=request.args.get("employeeId"),
            )
        except Exception as e:
            return error_response(e)
        data = []
        for r in records:
            item = r.to_api()
            item["selfieUrl"] = r.image_url
            item["userName"] = r.employee_name or "Unknown User"
            data.append(item)
        return ok(data=data, count=len(data))

    @app.route("/api/admin/attendance/export.csv", methods=["GET"], endpoint="admin_attendance_export")
    @admin_required
    def admin_attendance_export():
        start = request.args.get("startDate")
        end = request.args.get("endDate")
        try:
            data = reports.build_export(start_date=start, end_date=end, employee_id=request.args.get("employeeId"))
        except Exception as e:
            return error_response(e)

        suffix = f"{(start or 'all').replace('-', '')}_{(end or 'all').replace('-', '')}"
        return _write_export_csv(data=data, filename=f"attendance_{suffix}.csv")

    @app.route("/api/admin/stats", methods=["GET"], endpoint="admin_stats")
    @admin_required
    def admin_stats():
        try:
            result = reports.stats()
        except Exception as e:
            return error_response(e)
        return ok(data=result.to_api())
