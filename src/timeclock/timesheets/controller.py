from __future__ import annotations

import io
from datetime import timedelta

from flask import Flask, request, send_file

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import optional_positive_int
from ..common.web import arg_date, arg_int, current_org_id, current_role, current_user_id, json_body, ok, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from .export import XLSX_MIMETYPE, rows_to_csv, rows_to_xlsx
from .service import EXPORT_COLUMNS


def _filters() -> dict:
    today = now_local().date()
    status = request.args.get("status")
    return {
        "organization_id": current_org_id(),
        "start": arg_date("start", today - timedelta(days=7)),
        "end": arg_date("end", today),
        "status": status if status not in (None, "", "all") else None,
        "user_id": arg_int("user_id"),
        "branch_id": arg_int("branch_id"),
    }


def _body_date(data: dict, name: str):
    value = data.get(name)
    if not value:
        return None
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"Fecha inválida en '{name}' (use YYYY-MM-DD)")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/timesheets", methods=["GET"], endpoint="list_timesheets")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def list_timesheets():
        rows = container.timesheet_service.list_timesheets(**_filters())
        return ok(timesheets=[t.to_dict() for t in rows])

    @app.route("/api/timesheets/stats", methods=["GET"], endpoint="timesheet_stats")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def timesheet_stats():
        f = _filters()
        stats = container.timesheet_service.stats(
            organization_id=f["organization_id"], start=f["start"], end=f["end"], branch_id=f["branch_id"]
        )
        return ok(stats=stats)

    @app.route("/api/timesheets/<int:timesheet_id>/approve", methods=["POST"], endpoint="approve_timesheet")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def approve_timesheet(timesheet_id: int):
        container.timesheet_service.approve(
            current_role=current_role(),
            organization_id=current_org_id(),
            timesheet_id=timesheet_id,
            reviewer_id=current_user_id(),
        )
        return ok()

    @app.route("/api/timesheets/<int:timesheet_id>/reject", methods=["POST"], endpoint="reject_timesheet")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def reject_timesheet(timesheet_id: int):
        data = json_body()
        container.timesheet_service.reject(
            current_role=current_role(),
            organization_id=current_org_id(),
            timesheet_id=timesheet_id,
            reviewer_id=current_user_id(),
            reason=data.get("reason", ""),
        )
        return ok()

    @app.route("/api/timesheets/<int:timesheet_id>/lock", methods=["POST"], endpoint="lock_timesheet")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def lock_timesheet(timesheet_id: int):
        container.timesheet_service.lock(
            current_role=current_role(), organization_id=current_org_id(), timesheet_id=timesheet_id
        )
        return ok()

    @app.route("/api/timesheets/consolidate", methods=["POST"], endpoint="consolidate_timesheets")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def consolidate_timesheets():
        """Body: {"date"} or {"start", "end"}; "use_shifts" compares against assigned shifts."""
        data = request.get_json(silent=True) or {}
        today = now_local().date()
        branch_id = optional_positive_int(data.get("branch_id"), "La sucursal")
        service = container.consolidation_service

        start = _body_date(data, "start")
        end = _body_date(data, "end")
        if start or end:
            summary = service.consolidate_range(
                organization_id=current_org_id(), start=start or end, end=end or start, branch_id=branch_id
            )
        elif data.get("use_shifts"):
            summary = service.consolidate_day_with_shifts(
                organization_id=current_org_id(), day=_body_date(data, "date") or today, branch_id=branch_id
            )
        else:
            summary = service.consolidate_day(
                organization_id=current_org_id(), day=_body_date(data, "date") or today, branch_id=branch_id
            )
        return ok(summary=summary.to_dict())

    @app.route("/api/timesheets/pending", methods=["GET"], endpoint="pending_timesheets")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def pending_timesheets():
        pending = container.consolidation_service.pending(
            organization_id=current_org_id(), day=arg_date("date", now_local().date())
        )
        return ok(pending=pending)

    @app.route("/api/timesheets/compare", methods=["GET"], endpoint="compare_timesheets")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def compare_timesheets():
        rows = container.consolidation_service.compare_with_shifts(
            organization_id=current_org_id(),
            day=arg_date("date", now_local().date()),
            branch_id=arg_int("branch_id"),
        )
        return ok(comparisons=[r.to_dict() for r in rows])

    @app.route("/api/timesheets/export.csv", methods=["GET"], endpoint="export_timesheets_csv")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def export_timesheets_csv():
        f = _filters()
        rows = container.timesheet_service.export_rows(**f)
        filename = f"timesheets_{f['start']:%Y%m%d}_{f['end']:%Y%m%d}.csv"
        return app.response_class(
            rows_to_csv(rows, EXPORT_COLUMNS),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/timesheets/export.xlsx", methods=["GET"], endpoint="export_timesheets_xlsx")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def export_timesheets_xlsx():
        f = _filters()
        rows = container.timesheet_service.export_rows(**f)
        return send_file(
            io.BytesIO(rows_to_xlsx(rows, EXPORT_COLUMNS)),
            download_name=f"timesheets_{f['start']:%Y%m%d}_{f['end']:%Y%m%d}.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )
