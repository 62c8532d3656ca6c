from __future__ import annotations

import io

from flask import Blueprint, abort, render_template, request, send_file
from sqlalchemy import func

from app.officedesk.audit import record_event
from app.officedesk.db import db_session
from app.officedesk.modules.clients.models import Client
from app.officedesk.modules.messages.service import unread_count
from app.officedesk.modules.recruitment.service import post_counts_by_status
from app.officedesk.modules.reports.service import (
    PERIODS,
    build_export_csv,
    expense_total,
    expenses_query,
    income_total,
    maintenance_query,
    normalize_period,
    paginate,
    revenue_query,
    task_status_counts,
    tasks_query,
    user_task_summary,
    utc_today,
)
from app.officedesk.modules.settings.service import get_settings
from app.officedesk.modules.tasks.models import Task
from app.officedesk.modules.withdrawals.service import (
    OPEN_STATUSES,
    count_by_status,
    deo_balance,
    open_request_for,
)
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user, parse_page

bp = Blueprint("reports", __name__)


@bp.get("/admin/")
@require_permission("admin.view")
def admin_dashboard():
    s = db_session()
    today = utc_today()
    revenue = {
        period: income_total(s, period, today=today, paid_only=True)
        for period in ("all", "daily", "weekly", "monthly")
    }
    recent_tasks = s.query(Task).order_by(Task.created_at.desc(), Task.id.desc()).limit(5).all()
    withdrawals = count_by_status(s)
    return render_template(
        "admin/index.html",
        revenue=revenue,
        task_counts=task_status_counts(s),
        month_expenses=expense_total(s, "monthly", today=today),
        year_expenses=expense_total(s, "yearly", today=today),
        recent_tasks=recent_tasks,
        pending_posts=post_counts_by_status(s)["pending"],
        open_withdrawals=sum(withdrawals[status] for status in OPEN_STATUSES),
        user_summary=user_task_summary(s),
    )


@bp.get("/dashboard")
@require_permission("dashboard.staff")
def staff_dashboard():
    s = db_session()
    u = current_user()
    recent_tasks = (
        s.query(Task)
        .filter(Task.assigned_user_id == u.id)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .limit(5)
        .all()
    )
    return render_template(
        "dashboards/staff.html",
        task_counts=task_status_counts(s, user_id=u.id),
        recent_tasks=recent_tasks,
        unread=unread_count(s, u.id),
    )


@bp.get("/deo/dashboard")
@require_permission("dashboard.deo")
def deo_dashboard():
    s = db_session()
    u = current_user()
    clients_submitted = s.query(func.count(Client.id)).filter(Client.submitted_by_user_id == u.id).scalar() or 0
    withdrawals = count_by_status(s, deo_id=u.id)
    return render_template(
        "dashboards/deo.html",
        clients_submitted=int(clients_submitted),
        post_counts=post_counts_by_status(s, user_id=u.id),
        balance=deo_balance(s, u.id),
        pending_withdrawals=withdrawals["pending"],
        details_requested=withdrawals["details_requested"],
        open_request=open_request_for(s, u.id),
        minimum=get_settings(s).minimum_withdrawal_amount,
        user=u,
    )


@bp.get("/admin/reports")
@require_permission("reports.view")
def reports_page():
    s = db_session()
    period = normalize_period(request.args.get("time_period"))
    q = (request.args.get("search") or "").strip()
    today = utc_today()

    income = income_total(s, period, today=today)
    expenses = expense_total(s, period, today=today)
    return render_template(
        "admin/reports.html",
        period=period,
        periods=PERIODS,
        q=q,
        income=income,
        expenses=expenses,
        net_profit=income - expenses,
        revenue=paginate(revenue_query(s, period, q, today=today), parse_page(request.args.get("p_revenue"))),
        expense_rows=paginate(expenses_query(s, period, q, today=today), parse_page(request.args.get("p_expense"))),
        tasks=paginate(tasks_query(s, period, q, today=today), parse_page(request.args.get("p_tasks"))),
        maintenance=paginate(maintenance_query(s, period, q, today=today), parse_page(request.args.get("p_maintenance"))),
    )


@bp.get("/admin/reports/export")
@require_permission("reports.view")
def export():
    s = db_session()
    u = current_user()
    report_type = (request.args.get("type") or "").strip().lower()
    period = normalize_period(request.args.get("time_period"))
    q = (request.args.get("search") or "").strip()
    try:
        text, row_count = build_export_csv(s, report_type, period, q)
    except ValueError:
        abort(404)

    record_event(
        s,
        actor=u,
        action="report.export",
        entity_type="Report",
        entity_id=report_type,
        metadata={"time_period": period, "search": q, "row_count": row_count},
    )
    s.commit()

    data = text.encode("utf-8")
    filename = f"{report_type}_report_{period}_{utc_today().strftime('%Y%m%d')}.csv"
    return send_file(io.BytesIO(data), mimetype="text/csv", as_attachment=True, download_name=filename, max_age=0)
