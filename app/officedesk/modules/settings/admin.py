from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.modules.settings.service import get_settings, update_settings, validate_settings_payload
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user

bp = Blueprint("settings", __name__)


@bp.get("/settings")
@require_permission("settings.manage")
def settings_get():
    s = db_session()
    row = get_settings(s)
    s.commit()
    return render_template("admin/settings.html", settings=row)


@bp.post("/settings")
@require_permission("settings.manage")
def settings_post():
    s = db_session()
    payload = {
        "app_name": request.form.get("app_name"),
        "app_logo_url": request.form.get("app_logo_url"),
        "currency_symbol": request.form.get("currency_symbol"),
        "earning_per_approved_post": request.form.get("earning_per_approved_post"),
    }
    errors = validate_settings_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("settings.settings_get"))

    update_settings(s, payload, current_user())
    s.commit()
    flash("Settings updated successfully.", "success")
    return redirect(url_for("settings.settings_get"))
