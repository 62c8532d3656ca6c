from datetime import datetime, time, timedelta

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from sqlalchemy import func
from werkzeug.security import generate_password_hash

from app.officedesk.audit import record_event
from app.officedesk.constants import ALL_ROLES, PASSWORD_MIN_LENGTH, ROLE_NAMES, USER_NAME_MAX
from app.officedesk.db import db_session
from app.officedesk.models import AuditEvent, Role, User
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user, is_valid_email, parse_date, parse_page

bp = Blueprint("admin", __name__)


def _user_form() -> dict:
    return {
        "name": (request.form.get("name") or "").strip(),
        "email": (request.form.get("email") or "").strip().lower(),
        "password": request.form.get("password") or "",
        "role": (request.form.get("role") or "").strip(),
    }


def _validate_user_form(s, form: dict, *, exclude_id: int | None = None, password_required: bool = True) -> list[str]:
    errors = []
    if not form["name"]:
        errors.append("Name is required.")
    elif len(form["name"]) > USER_NAME_MAX:
        errors.append(f"Name must be at most {USER_NAME_MAX} characters.")

    if not form["email"]:
        errors.append("Email is required.")
    elif not is_valid_email(form["email"]):
        errors.append("Invalid email format.")
    else:
        q = s.query(User).filter(func.lower(User.email) == form["email"])
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first() is not None:
            errors.append("An account with this email already exists.")

    if form["password"] or password_required:
        if not form["password"]:
            errors.append("Password is required.")
        elif len(form["password"]) < PASSWORD_MIN_LENGTH:
            errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")

    if form["role"] not in ALL_ROLES:
        errors.append("Please select a valid role.")
    return errors


def _role_by_key(s, key: str) -> Role:
    role = s.query(Role).filter(Role.key == key).one_or_none()
    if role is None:
        # Seeded roles normally exist; create on demand for fresh databases.
        role = Role(key=key, name=ROLE_NAMES.get(key, key))
        s.add(role)
        s.flush()
    return role


# ============================================================================
# USER MANAGEMENT
# ============================================================================

@bp.get("/users")
@require_permission("users.manage")
def users_list():
    s = db_session()
    users = s.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return render_template("admin/users/list.html", users=users, role_names=ROLE_NAMES)


@bp.get("/users/new")
@require_permission("users.manage")
def users_new_get():
    return render_template("admin/users/form.html", account=None, form={}, roles=ALL_ROLES, role_names=ROLE_NAMES)


@bp.post("/users/new")
@require_permission("users.manage")
def users_new_post():
    s = db_session()
    u = current_user()
    form = _user_form()
    errors = _validate_user_form(s, form)
    if errors:
        for e in errors:
            flash(e, "danger")
        return render_template("admin/users/form.html", account=None, form=form, roles=ALL_ROLES, role_names=ROLE_NAMES), 400

    new_user = User(
        name=form["name"],
        email=form["email"],
        password_hash=generate_password_hash(form["password"]),
        is_active=True,
    )
    new_user.roles.append(_role_by_key(s, form["role"]))
    s.add(new_user)
    s.flush()

    record_event(
        s,
        actor=u,
        action="user.create",
        entity_type="User",
        entity_id=str(new_user.id),
        metadata={"email": new_user.email, "name": new_user.name, "role": form["role"]},
    )
    s.commit()
    flash(f"User {new_user.name} registered successfully.", "success")
    return redirect(url_for("admin.users_list"))


@bp.get("/users/<int:user_id>/edit")
@require_permission("users.manage")
def users_edit_get(user_id: int):
    s = db_session()
    account = s.get(User, user_id)
    if not account:
        abort(404)
    return render_template("admin/users/form.html", account=account, form={}, roles=ALL_ROLES, role_names=ROLE_NAMES)


@bp.post("/users/<int:user_id>/edit")
@require_permission("users.manage")
def users_edit_post(user_id: int):
    s = db_session()
    u = current_user()
    account = s.get(User, user_id)
    if not account:
        abort(404)

    form = _user_form()
    errors = _validate_user_form(s, form, exclude_id=account.id, password_required=False)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("admin.users_edit_get", user_id=user_id))

    if account.id == u.id and form["role"] != account.role_key:
        flash("You cannot change your own role.", "danger")
        return redirect(url_for("admin.users_edit_get", user_id=user_id))

    before = {"name": account.name, "email": account.email, "role": account.role_key, "is_active": account.is_active}

    account.name = form["name"]
    account.email = form["email"]
    if account.id != u.id:
        account.is_active = request.form.get("is_active") == "1"
    if form["role"] != account.role_key:
        account.roles.clear()
        account.roles.append(_role_by_key(s, form["role"]))
    if form["password"]:
        account.password_hash = generate_password_hash(form["password"])

    after = {"name": account.name, "email": account.email, "role": form["role"], "is_active": account.is_active}
    record_event(
        s,
        actor=u,
        action="user.update",
        entity_type="User",
        entity_id=str(account.id),
        metadata={"before": before, "after": after, "password_changed": bool(form["password"])},
    )
    s.commit()
    flash(f"User {account.name} updated successfully.", "success")
    return redirect(url_for("admin.users_list"))


@bp.post("/users/<int:user_id>/delete")
@require_permission("users.manage")
def users_delete(user_id: int):
    s = db_session()
    u = current_user()
    if user_id == u.id:
        flash("You cannot delete your own account.", "danger")
        return redirect(url_for("admin.users_list"))

    account = s.get(User, user_id)
    if not account:
        flash("User not found.", "danger")
        return redirect(url_for("admin.users_list"))

    record_event(
        s,
        actor=u,
        action="user.delete",
        entity_type="User",
        entity_id=str(account.id),
        metadata={"email": account.email, "name": account.name, "role": account.role_key},
    )
    s.delete(account)
    s.commit()
    flash("User deleted successfully.", "success")
    return redirect(url_for("admin.users_list"))


# ============================================================================
# AUDIT TRAIL
# ============================================================================

@bp.get("/audit")
@require_permission("audit.view")
def audit_list():
    """
    Audit trail with filters:
    - action (contains)
    - actor_email (contains)
    - date range (YYYY-MM-DD, inclusive)
    """
    s = db_session()
    action = (request.args.get("action") or "").strip()
    actor_email = (request.args.get("actor_email") or "").strip()
    raw_from = (request.args.get("date_from") or "").strip()
    raw_to = (request.args.get("date_to") or "").strip()
    date_from = parse_date(raw_from)
    date_to = parse_date(raw_to)

    if raw_from and not date_from:
        flash("date_from must be YYYY-MM-DD", "danger")
    if raw_to and not date_to:
        flash("date_to must be YYYY-MM-DD", "danger")

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.like(f"%{action}%"))
    if actor_email:
        q = q.filter(AuditEvent.actor_user_email.like(f"%{actor_email.lower()}%"))
    if date_from:
        q = q.filter(AuditEvent.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        q = q.filter(AuditEvent.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    page = parse_page(request.args.get("page"))
    per_page = 50
    total = q.count()
    events = (
        q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return render_template(
        "admin/audit/list.html",
        events=events,
        action=action,
        actor_email=actor_email,
        date_from=raw_from,
        date_to=raw_to,
        page=page,
        total=total,
        has_prev=page > 1,
        has_next=page * per_page < total,
    )
