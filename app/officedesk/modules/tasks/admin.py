from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.models import User
from app.officedesk.modules.catalog.models import Category
from app.officedesk.modules.clients.models import Client
from app.officedesk.modules.tasks.models import Task
from app.officedesk.modules.tasks.service import (
    FEE_MODES,
    PAYMENT_STATUSES,
    VALID_STATUSES,
    can_change_payment,
    can_view_bill,
    create_task,
    delete_task,
    filter_tasks,
    get_own_task,
    submit_work,
    update_own_task,
    update_task,
    validate_task_payload,
)
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user, parse_int, parse_page

bp = Blueprint("tasks", __name__)


def _payload() -> dict:
    return {
        "client_id": request.form.get("client_id"),
        "assigned_user_id": request.form.get("assigned_user_id"),
        "category_id": request.form.get("category_id"),
        "subcategory_id": request.form.get("subcategory_id"),
        "description": request.form.get("description"),
        "deadline": request.form.get("deadline"),
        "fee": request.form.get("fee"),
        "fee_mode": request.form.get("fee_mode"),
        "maintenance_fee": request.form.get("maintenance_fee"),
        "maintenance_fee_mode": request.form.get("maintenance_fee_mode"),
        "status": request.form.get("status"),
        "payment_status": request.form.get("payment_status"),
        "admin_notes": request.form.get("admin_notes"),
        "user_notes": request.form.get("user_notes"),
    }


def _form_context(s) -> dict:
    return {
        "clients": s.query(Client).filter(Client.status == "Active").order_by(Client.client_name.asc()).all(),
        "categories": s.query(Category).order_by(Category.name.asc()).all(),
        "users": s.query(User).filter(User.is_active.is_(True)).order_by(User.name.asc()).all(),
        "statuses": VALID_STATUSES,
        "payment_statuses": PAYMENT_STATUSES,
        "fee_modes": FEE_MODES,
    }


# ---------- Admin: all tasks ----------
@bp.get("/admin/tasks")
@require_permission("tasks.manage")
def all_tasks():
    s = db_session()
    q = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()
    payment_status = (request.args.get("payment_status") or "").strip()
    user_id = parse_int(request.args.get("user_id"))
    page = parse_page(request.args.get("page"))
    per_page = 20

    query = filter_tasks(s, q=q, status=status, payment_status=payment_status, user_id=user_id)
    total = query.count()
    tasks = (
        query.order_by(Task.created_at.desc(), Task.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    users = s.query(User).order_by(User.name.asc()).all()
    return render_template(
        "tasks/all.html",
        tasks=tasks,
        users=users,
        q=q,
        status=status,
        payment_status=payment_status,
        user_id=user_id,
        statuses=VALID_STATUSES,
        payment_statuses=PAYMENT_STATUSES,
        page=page,
        total=total,
        has_prev=page > 1,
        has_next=page * per_page < total,
    )


@bp.get("/admin/tasks/new")
@require_permission("tasks.manage")
def assign_get():
    s = db_session()
    return render_template("tasks/assign.html", task=None, **_form_context(s))


@bp.post("/admin/tasks/new")
@require_permission("tasks.manage")
def assign_post():
    s = db_session()
    payload = _payload()
    errors = validate_task_payload(s, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return render_template("tasks/assign.html", task=None, form=payload, **_form_context(s)), 400
    task = create_task(s, payload, current_user())
    s.commit()
    flash(f"Task #{task.id} assigned successfully.", "success")
    return redirect(url_for("tasks.all_tasks"))


@bp.get("/admin/tasks/<int:task_id>/edit")
@require_permission("tasks.manage")
def edit_get(task_id: int):
    s = db_session()
    task = s.get(Task, task_id)
    if not task:
        abort(404)
    return render_template("tasks/assign.html", task=task, **_form_context(s))


@bp.post("/admin/tasks/<int:task_id>/edit")
@require_permission("tasks.manage")
def edit_post(task_id: int):
    s = db_session()
    task = s.get(Task, task_id)
    if not task:
        abort(404)
    payload = _payload()
    errors = validate_task_payload(s, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("tasks.edit_get", task_id=task_id))
    update_task(s, task, payload, current_user())
    s.commit()
    flash("Task updated successfully.", "success")
    return redirect(url_for("tasks.all_tasks"))


@bp.post("/admin/tasks/<int:task_id>/delete")
@require_permission("tasks.manage")
def delete_post(task_id: int):
    s = db_session()
    task = s.get(Task, task_id)
    if not task:
        flash("Task not found.", "danger")
        return redirect(url_for("tasks.all_tasks"))
    delete_task(s, task, current_user())
    s.commit()
    flash("Task deleted successfully.", "success")
    return redirect(url_for("tasks.all_tasks"))


# ---------- Staff / DEO ----------
@bp.get("/tasks/mine")
@require_permission("tasks.own")
def my_tasks():
    s = db_session()
    u = current_user()
    status = (request.args.get("status") or "").strip()
    query = s.query(Task).filter(Task.assigned_user_id == u.id)
    if status:
        query = query.filter(Task.status == status)
    tasks = query.order_by(Task.deadline.asc(), Task.id.asc()).all()
    return render_template("tasks/mine.html", tasks=tasks, status=status, statuses=VALID_STATUSES)


@bp.get("/tasks/submit")
@require_permission("tasks.submit")
def submit_get():
    s = db_session()
    return render_template("tasks/submit.html", **_form_context(s))


@bp.post("/tasks/submit")
@require_permission("tasks.submit")
def submit_post():
    s = db_session()
    payload = _payload()
    errors = validate_task_payload(s, payload, require_user=False)
    if errors:
        for e in errors:
            flash(e, "danger")
        return render_template("tasks/submit.html", form=payload, **_form_context(s)), 400
    try:
        submit_work(s, payload, current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return render_template("tasks/submit.html", form=payload, **_form_context(s)), 400
    s.commit()
    flash("Work entry submitted successfully.", "success")
    return redirect(url_for("tasks.my_tasks"))


@bp.get("/tasks/<int:task_id>/update")
@require_permission("tasks.update_own")
def update_get(task_id: int):
    s = db_session()
    u = current_user()
    task = get_own_task(s, task_id, u)
    if not task:
        abort(404)
    return render_template(
        "tasks/update.html",
        task=task,
        statuses=VALID_STATUSES,
        payment_statuses=PAYMENT_STATUSES,
        can_change_payment=can_change_payment(u),
    )


@bp.post("/tasks/<int:task_id>/update")
@require_permission("tasks.update_own")
def update_post(task_id: int):
    s = db_session()
    u = current_user()
    task = get_own_task(s, task_id, u)
    if not task:
        abort(404)
    payload = {
        "status": request.form.get("status"),
        "payment_status": request.form.get("payment_status"),
        "user_notes": request.form.get("user_notes"),
    }
    try:
        update_own_task(s, task, payload, u)
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("tasks.update_get", task_id=task_id))
    s.commit()
    flash("Task updated successfully.", "success")
    return redirect(url_for("tasks.my_tasks"))


@bp.get("/tasks/<int:task_id>/bill")
@require_permission("tasks.bill")
def print_bill(task_id: int):
    s = db_session()
    task = s.get(Task, task_id)
    if not task:
        abort(404)
    if not can_view_bill(getattr(g, "current_user", None), task):
        g.missing_permission = "tasks.bill_any"
        abort(403)
    return render_template("tasks/bill.html", task=task)
