from __future__ import annotations

import csv
import io
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import case, func, or_

from app.officedesk.models import User
from app.officedesk.modules.catalog.models import Category, Subcategory
from app.officedesk.modules.clients.models import Client
from app.officedesk.modules.expenses.models import Expense
from app.officedesk.modules.tasks.models import Task

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session


PERIODS = ("daily", "weekly", "monthly", "yearly", "all")
DEFAULT_PERIOD = "monthly"
PAID_STATUSES = ("paid_full", "paid_partial")
EXPORT_TYPES = ("revenue", "expenses", "tasks", "maintenance")
REPORT_PAGE_SIZE = 10


def utc_today() -> date:
    """Report "today"; task and expense timestamps are stored in UTC."""
    return datetime.utcnow().date()


def normalize_period(raw: str | None) -> str:
    raw = (raw or "").strip().lower()
    return raw if raw in PERIODS else DEFAULT_PERIOD


def period_bounds(period: str, today: date) -> tuple[date | None, date | None]:
    """
    Half-open [start, end) date range for a report period. Weeks run Monday
    to Sunday. ``all`` has no bounds.
    """
    if period == "all":
        return None, None
    if period == "daily":
        return today, today + timedelta(days=1)
    if period == "weekly":
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=7)
    if period == "monthly":
        start = today.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return start, end
    if period == "yearly":
        start = date(today.year, 1, 1)
        return start, date(today.year + 1, 1, 1)
    raise ValueError(f"Unknown period: {period}")


def _within(column, bounds: tuple[date | None, date | None], *, is_datetime: bool):
    start, end = bounds
    if start is None or end is None:
        return None
    if is_datetime:
        return (column >= datetime.combine(start, time.min)) & (column < datetime.combine(end, time.min))
    return (column >= start) & (column < end)


def _apply(query: "Query", clause) -> "Query":
    return query if clause is None else query.filter(clause)


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"))


# ---------- Report queries ----------
def _task_join(s: "Session") -> "Query":
    return (
        s.query(Task)
        .join(Client, Task.client_id == Client.id)
        .join(Category, Task.category_id == Category.id)
        .join(Subcategory, Task.subcategory_id == Subcategory.id)
    )


def _task_search(query: "Query", q: str) -> "Query":
    if not q:
        return query
    like = f"%{q}%"
    return query.filter(
        or_(
            Client.client_name.ilike(like),
            Task.description.ilike(like),
            Category.name.ilike(like),
            Subcategory.name.ilike(like),
        )
    )


def revenue_query(s: "Session", period: str, q: str = "", *, today: date | None = None) -> "Query":
    bounds = period_bounds(period, today or utc_today())
    query = _task_join(s).filter(Task.status == "completed")
    query = _apply(query, _within(Task.completed_at, bounds, is_datetime=True))
    return _task_search(query, q).order_by(Task.completed_at.desc(), Task.id.desc())


def tasks_query(s: "Session", period: str, q: str = "", *, today: date | None = None) -> "Query":
    bounds = period_bounds(period, today or utc_today())
    query = _apply(_task_join(s), _within(Task.created_at, bounds, is_datetime=True))
    return _task_search(query, q).order_by(Task.created_at.desc(), Task.id.desc())


def maintenance_query(s: "Session", period: str, q: str = "", *, today: date | None = None) -> "Query":
    bounds = period_bounds(period, today or utc_today())
    query = _task_join(s).filter(Task.maintenance_fee > 0)
    query = _apply(query, _within(Task.created_at, bounds, is_datetime=True))
    return _task_search(query, q).order_by(Task.created_at.desc(), Task.id.desc())


def expenses_query(s: "Session", period: str, q: str = "", *, today: date | None = None) -> "Query":
    bounds = period_bounds(period, today or utc_today())
    query = _apply(s.query(Expense), _within(Expense.expense_date, bounds, is_datetime=False))
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Expense.expense_type.ilike(like), Expense.description.ilike(like)))
    return query.order_by(Expense.expense_date.desc(), Expense.created_at.desc())


def income_total(s: "Session", period: str, *, today: date | None = None, paid_only: bool = False) -> Decimal:
    """Sum of (fee - maintenance fee) over completed tasks, by completion date."""
    bounds = period_bounds(period, today or utc_today())
    query = s.query(func.sum(Task.fee - Task.maintenance_fee)).filter(Task.status == "completed")
    if paid_only:
        query = query.filter(Task.payment_status.in_(PAID_STATUSES))
    query = _apply(query, _within(Task.completed_at, bounds, is_datetime=True))
    return _money(query.scalar())


def expense_total(s: "Session", period: str, *, today: date | None = None) -> Decimal:
    bounds = period_bounds(period, today or utc_today())
    query = _apply(s.query(func.sum(Expense.amount)), _within(Expense.expense_date, bounds, is_datetime=False))
    return _money(query.scalar())


def task_status_counts(s: "Session", user_id: int | None = None) -> dict[str, int]:
    from app.officedesk.modules.tasks.service import VALID_STATUSES

    query = s.query(Task.status, func.count(Task.id))
    if user_id is not None:
        query = query.filter(Task.assigned_user_id == user_id)
    counts = {status: 0 for status in VALID_STATUSES}
    for status, cnt in query.group_by(Task.status).all():
        counts[status] = int(cnt or 0)
    counts["active"] = counts["pending"] + counts["in_process"]
    counts["total"] = sum(counts[status] for status in VALID_STATUSES)
    return counts


def user_task_summary(s: "Session") -> list[dict]:
    """Per-user completed/pending/total task counts for non-admin users."""
    from app.officedesk.constants import ADMIN_ROLE

    rows = (
        s.query(
            User,
            func.coalesce(func.sum(case((Task.status == "completed", 1), else_=0)), 0),
            func.coalesce(func.sum(case((Task.status == "pending", 1), else_=0)), 0),
            func.count(Task.id),
        )
        .outerjoin(Task, Task.assigned_user_id == User.id)
        .group_by(User.id)
        .order_by(User.name.asc())
        .all()
    )
    return [
        {"user": u, "completed": int(done), "pending": int(pending), "total": int(total)}
        for u, done, pending, total in rows
        if u.role_key != ADMIN_ROLE
    ]


def paginate(query: "Query", page: int, per_page: int = REPORT_PAGE_SIZE) -> dict:
    total = query.count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    pages = max((total + per_page - 1) // per_page, 1)
    return {
        "items": items,
        "page": page,
        "pages": pages,
        "total": total,
        "has_prev": page > 1,
        "has_next": page * per_page < total,
    }


# ---------- CSV export ----------
def _fmt_dt(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return str(value)


def build_export_csv(s: "Session", report_type: str, period: str, q: str = "", *, today: date | None = None) -> tuple[str, int]:
    """Return (csv text, row count) for one of EXPORT_TYPES."""
    if report_type not in EXPORT_TYPES:
        raise ValueError(f"Invalid report type: {report_type}")

    out = io.StringIO()
    w = csv.writer(out)
    rows = 0
    if report_type == "revenue":
        w.writerow(["Task ID", "Client", "Assigned To", "Category", "Subcategory", "Description", "Fee", "Maintenance Fee", "Net", "Payment Status", "Completed On"])
        for t in revenue_query(s, period, q, today=today).all():
            w.writerow(
                [
                    t.id,
                    t.client.client_name,
                    t.assigned_user.name,
                    t.category.name,
                    t.subcategory.name,
                    t.description,
                    f"{t.fee:.2f}",
                    f"{t.maintenance_fee:.2f}",
                    f"{t.net_revenue:.2f}",
                    t.payment_status,
                    _fmt_dt(t.completed_at),
                ]
            )
            rows += 1
    elif report_type == "expenses":
        w.writerow(["Expense ID", "Type", "Amount", "Description", "Date", "Recorded At"])
        for e in expenses_query(s, period, q, today=today).all():
            w.writerow([e.id, e.expense_type, f"{e.amount:.2f}", e.description or "", str(e.expense_date), _fmt_dt(e.created_at)])
            rows += 1
    elif report_type == "tasks":
        w.writerow(["Task ID", "Client", "Assigned To", "Category", "Subcategory", "Description", "Deadline", "Status", "Payment Status", "Created On"])
        for t in tasks_query(s, period, q, today=today).all():
            w.writerow(
                [
                    t.id,
                    t.client.client_name,
                    t.assigned_user.name,
                    t.category.name,
                    t.subcategory.name,
                    t.description,
                    str(t.deadline),
                    t.status,
                    t.payment_status,
                    _fmt_dt(t.created_at),
                ]
            )
            rows += 1
    else:
        w.writerow(["Task ID", "Client", "Assigned To", "Category", "Subcategory", "Description", "Maintenance Fee", "Maintenance Fee Mode", "Status", "Payment Status", "Created On", "Completed On"])
        for t in maintenance_query(s, period, q, today=today).all():
            w.writerow(
                [
                    t.id,
                    t.client.client_name,
                    t.assigned_user.name,
                    t.category.name,
                    t.subcategory.name,
                    t.description,
                    f"{t.maintenance_fee:.2f}",
                    t.maintenance_fee_mode,
                    t.status,
                    t.payment_status,
                    _fmt_dt(t.created_at),
                    _fmt_dt(t.completed_at),
                ]
            )
            rows += 1
    return out.getvalue(), rows
