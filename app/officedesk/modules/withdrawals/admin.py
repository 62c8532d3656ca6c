from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.modules.settings.service import get_settings, set_minimum_withdrawal
from app.officedesk.modules.withdrawals.models import Withdrawal
from app.officedesk.modules.withdrawals.service import (
    BANK_FIELDS,
    WITHDRAWAL_STATUSES,
    deo_balance,
    open_request_for,
    request_withdrawal,
    save_bank_details,
    submit_payment_details,
    update_withdrawal_status,
    withdrawals_query,
)
from app.officedesk.rbac import NotAllowed, require_permission
from app.officedesk.utils import current_user, parse_page

bp = Blueprint("withdrawals", __name__)


def _bank_payload() -> dict:
    return {field: request.form.get(field) for field in BANK_FIELDS}


# ---------- Data entry operator ----------
@bp.get("/withdrawals")
@require_permission("withdrawals.request")
def my_withdrawals():
    s = db_session()
    u = current_user()
    status = (request.args.get("status") or "").strip()
    settings = get_settings(s)
    return render_template(
        "withdrawals/mine.html",
        withdrawals=withdrawals_query(s, status=status, deo_id=u.id).all(),
        balance=deo_balance(s, u.id),
        open_request=open_request_for(s, u.id),
        minimum=settings.minimum_withdrawal_amount,
        status=status,
        statuses=WITHDRAWAL_STATUSES,
        user=u,
    )


@bp.post("/withdrawals/request")
@require_permission("withdrawals.request")
def request_post():
    s = db_session()
    try:
        w = request_withdrawal(s, current_user(), request.form.get("withdrawal_amount"))
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("withdrawals.my_withdrawals"))
    s.commit()
    flash(f"Withdrawal request #{w.id} submitted successfully.", "success")
    return redirect(url_for("withdrawals.my_withdrawals"))


@bp.post("/withdrawals/<int:withdrawal_id>/details")
@require_permission("withdrawals.request")
def details_post(withdrawal_id: int):
    s = db_session()
    w = s.get(Withdrawal, withdrawal_id)
    if not w:
        abort(404)
    try:
        submit_payment_details(s, current_user(), w, _bank_payload())
    except NotAllowed:
        abort(404)
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("withdrawals.my_withdrawals"))
    s.commit()
    flash("Payment details submitted successfully. Your request is now processing.", "success")
    return redirect(url_for("withdrawals.my_withdrawals"))


@bp.get("/bank-details")
@require_permission("withdrawals.request")
def bank_details_get():
    return render_template("withdrawals/bank_details.html", user=current_user())


@bp.post("/bank-details")
@require_permission("withdrawals.request")
def bank_details_post():
    s = db_session()
    u = current_user()
    try:
        save_bank_details(s, u, _bank_payload())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("withdrawals.bank_details_get"))
    s.commit()
    flash("Bank details saved successfully.", "success")
    return redirect(url_for("withdrawals.bank_details_get"))


# ---------- Admin ----------
@bp.get("/admin/withdrawals")
@require_permission("withdrawals.manage")
def admin_list():
    s = db_session()
    status = (request.args.get("status") or "").strip()
    page = parse_page(request.args.get("page"))
    per_page = 25
    query = withdrawals_query(s, status=status)
    total = query.count()
    withdrawals = query.offset((page - 1) * per_page).limit(per_page).all()
    return render_template(
        "withdrawals/admin_list.html",
        withdrawals=withdrawals,
        status=status,
        statuses=WITHDRAWAL_STATUSES,
        minimum=get_settings(s).minimum_withdrawal_amount,
        page=page,
        total=total,
        has_prev=page > 1,
        has_next=page * per_page < total,
    )


@bp.post("/admin/withdrawals/<int:withdrawal_id>/status")
@require_permission("withdrawals.manage")
def admin_update_status(withdrawal_id: int):
    s = db_session()
    w = s.get(Withdrawal, withdrawal_id)
    if not w:
        flash("Withdrawal request not found.", "danger")
        return redirect(url_for("withdrawals.admin_list"))
    try:
        update_withdrawal_status(
            s,
            w,
            request.form.get("status") or "",
            current_user(),
            transaction_number=request.form.get("transaction_number"),
            comments=request.form.get("admin_comments"),
        )
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("withdrawals.admin_list"))
    s.commit()
    flash(f"Withdrawal #{w.id} marked {w.status.replace('_', ' ')}.", "success")
    return redirect(url_for("withdrawals.admin_list"))


@bp.post("/admin/withdrawals/minimum")
@require_permission("withdrawals.manage")
def admin_set_minimum():
    s = db_session()
    try:
        set_minimum_withdrawal(s, request.form.get("minimum_withdrawal_amount"), current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("withdrawals.admin_list"))
    s.commit()
    flash("Minimum withdrawal amount updated.", "success")
    return redirect(url_for("withdrawals.admin_list"))
