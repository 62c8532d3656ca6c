from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.modules.expenses.models import Expense
from app.officedesk.modules.expenses.service import (
    create_expense,
    delete_expense,
    update_expense,
    validate_expense_payload,
)
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user, parse_page

bp = Blueprint("expenses", __name__)


def _payload() -> dict:
    return {
        "expense_type": request.form.get("expense_type"),
        "amount": request.form.get("amount"),
        "description": request.form.get("description"),
        "expense_date": request.form.get("expense_date"),
    }


@bp.get("/expenses")
@require_permission("expenses.manage")
def expenses_list():
    s = db_session()
    page = parse_page(request.args.get("page"))
    per_page = 25
    query = s.query(Expense)
    total = query.count()
    expenses = (
        query.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return render_template(
        "admin/expenses/list.html",
        expenses=expenses,
        page=page,
        total=total,
        has_prev=page > 1,
        has_next=page * per_page < total,
    )


@bp.post("/expenses/new")
@require_permission("expenses.manage")
def new_post():
    s = db_session()
    payload = _payload()
    errors = validate_expense_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("expenses.expenses_list"))
    create_expense(s, payload, current_user())
    s.commit()
    flash("Expense added successfully.", "success")
    return redirect(url_for("expenses.expenses_list"))


@bp.get("/expenses/<int:expense_id>/edit")
@require_permission("expenses.manage")
def edit_get(expense_id: int):
    s = db_session()
    expense = s.get(Expense, expense_id)
    if not expense:
        abort(404)
    return render_template("admin/expenses/edit.html", expense=expense)


@bp.post("/expenses/<int:expense_id>/edit")
@require_permission("expenses.manage")
def edit_post(expense_id: int):
    s = db_session()
    expense = s.get(Expense, expense_id)
    if not expense:
        abort(404)
    payload = _payload()
    errors = validate_expense_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("expenses.edit_get", expense_id=expense_id))
    update_expense(s, expense, payload, current_user())
    s.commit()
    flash("Expense updated successfully.", "success")
    return redirect(url_for("expenses.expenses_list"))


@bp.post("/expenses/<int:expense_id>/delete")
@require_permission("expenses.manage")
def delete_post(expense_id: int):
    s = db_session()
    expense = s.get(Expense, expense_id)
    if not expense:
        flash("Expense not found.", "danger")
        return redirect(url_for("expenses.expenses_list"))
    delete_expense(s, expense, current_user())
    s.commit()
    flash("Expense deleted successfully.", "success")
    return redirect(url_for("expenses.expenses_list"))
