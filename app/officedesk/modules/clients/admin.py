from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.modules.clients.models import Client
from app.officedesk.modules.clients.service import (
    VALID_STATUSES,
    create_client,
    delete_client,
    search_clients,
    update_client,
    validate_client_payload,
)
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user, parse_page

bp = Blueprint("clients", __name__)


def _payload() -> dict:
    return {
        "client_name": request.form.get("client_name"),
        "contact_person": request.form.get("contact_person"),
        "email": request.form.get("email"),
        "phone": request.form.get("phone"),
        "company": request.form.get("company"),
        "address": request.form.get("address"),
        "status": request.form.get("status"),
    }


@bp.get("/clients")
@require_permission("clients.view")
def clients_list():
    s = db_session()
    q = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()
    page = parse_page(request.args.get("page"))
    per_page = 25

    query = search_clients(s, q=q, status=status)
    total = query.count()
    clients = query.offset((page - 1) * per_page).limit(per_page).all()
    return render_template(
        "clients/list.html",
        clients=clients,
        q=q,
        status=status,
        statuses=VALID_STATUSES,
        page=page,
        total=total,
        has_prev=page > 1,
        has_next=page * per_page < total,
    )


@bp.get("/clients/new")
@require_permission("clients.edit")
def new_get():
    return render_template("clients/form.html", client=None, statuses=VALID_STATUSES)


@bp.post("/clients/new")
@require_permission("clients.edit")
def new_post():
    s = db_session()
    payload = _payload()
    errors = validate_client_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return render_template("clients/form.html", client=None, form=payload, statuses=VALID_STATUSES), 400
    try:
        create_client(s, payload, current_user())
    except ValueError as e:
        flash(str(e), "warning")
        return render_template("clients/form.html", client=None, form=payload, statuses=VALID_STATUSES), 400
    s.commit()
    flash("Client added successfully.", "success")
    return redirect(url_for("clients.clients_list"))


@bp.get("/clients/<int:client_id>/edit")
@require_permission("clients.edit")
def edit_get(client_id: int):
    s = db_session()
    client = s.get(Client, client_id)
    if not client:
        abort(404)
    return render_template("clients/form.html", client=client, statuses=VALID_STATUSES)


@bp.post("/clients/<int:client_id>/edit")
@require_permission("clients.edit")
def edit_post(client_id: int):
    s = db_session()
    client = s.get(Client, client_id)
    if not client:
        abort(404)
    payload = _payload()
    errors = validate_client_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("clients.edit_get", client_id=client_id))
    try:
        update_client(s, client, payload, current_user())
    except ValueError as e:
        flash(str(e), "warning")
        return redirect(url_for("clients.edit_get", client_id=client_id))
    s.commit()
    flash("Client updated successfully.", "success")
    return redirect(url_for("clients.clients_list"))


@bp.post("/clients/<int:client_id>/delete")
@require_permission("clients.delete")
def delete_post(client_id: int):
    s = db_session()
    client = s.get(Client, client_id)
    if not client:
        flash("Client not found or already deleted.", "warning")
        return redirect(url_for("clients.clients_list"))
    try:
        delete_client(s, client, current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("clients.clients_list"))
    s.commit()
    flash("Client deleted successfully.", "success")
    return redirect(url_for("clients.clients_list"))
