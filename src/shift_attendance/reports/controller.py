from __future__ import annotations

from flask import Flask, Response, request, send_file

from ..common.responses import date_arg, json_endpoint, ok
from ..container import Container
from ..core.constants import EXPORT_FILENAME, EXPORT_MIMETYPE
from ..core.enums import Role
from ..users.guard import role_required
from .export import build_public_work_hours, summary_to_xlsx
from .service import displayed_rows

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def register(app: Flask, container: Container) -> None:
    def load():
        query = request.args.get("employee", "")
        report = container.report_service.build_report(date_arg("start"), date_arg("end"), employee_query=query)
        return report, displayed_rows(report.rows, query)

    @app.route("/admin/reports", methods=["GET"], endpoint="admin_reports")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_reports():
        report, rows = load()
        return ok(start=report.start.isoformat(), end=report.end.isoformat(), rows=[r.to_dict() for r in rows])

    @app.route("/admin/dashboard", methods=["GET"], endpoint="admin_dashboard")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_dashboard():
        dashboard = container.dashboard_service.live(request.args.get("employee", ""))
        return ok(**dashboard.to_dict())

    @app.route("/admin/reports/users/<user_name>", methods=["GET"], endpoint="admin_report_user")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_report_user(user_name: str):
        detail = container.report_service.user_detail(user_name, date_arg("start"), date_arg("end"))
        return ok(**detail.to_dict())

    @app.route("/admin/reports/export.xls", methods=["GET"], endpoint="admin_reports_export")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_reports_export():
        report, rows = load()
        xml = build_public_work_hours(rows, report.entries, report.start, report.end)
        return Response(
            xml,
            mimetype=EXPORT_MIMETYPE,
            headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
        )

    @app.route("/admin/reports/export.xlsx", methods=["GET"], endpoint="admin_reports_export_xlsx")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_reports_export_xlsx():
        _, rows = load()
        return send_file(
            summary_to_xlsx(rows),
            download_name="attendance_report.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )
