"""
Front controller for legacy ``index.php?page=...`` links plus health checks.

Every page name is dispatched through the per-role whitelist in
``constants.PAGE_MAP``; anything a role may not see renders the 404 page so
unauthorized pages are indistinguishable from missing ones.
"""
from flask import Blueprint, current_app, g, redirect, render_template, request, session, url_for
from werkzeug.routing import BuildError

from app.officedesk.constants import ADMIN_ROLE
from app.officedesk.rbac import home_endpoint_for, resolve_page, user_role_key

bp = Blueprint("routes", __name__)


def _not_found():
    return render_template("errors/404.html"), 404


def _forward_args(route_args: tuple[tuple[str, str], ...]) -> dict[str, str]:
    renames = dict(route_args)
    out: dict[str, str] = {}
    for key, value in request.args.items():
        if key in ("page", "action"):
            continue
        target = renames.get(key, key)
        out.setdefault(target, value)
    return out


def _public_page(page: str, user):
    if page == "login":
        return redirect(url_for("auth.login_get", next=request.args.get("next") or None))
    if page == "logout":
        return redirect(url_for("auth.logout"))
    if page == "register":
        # Registration is an admin action.
        if user is None:
            return redirect(url_for("auth.login_get"))
        if user_role_key(user) != ADMIN_ROLE:
            return _not_found()
        return redirect(url_for("admin.users_new_get"))
    return _not_found()


@bp.get("/")
@bp.get("/index.php")
def index():
    page = (request.args.get("page") or "").strip()
    if page == "clients" and request.args.get("action") == "edit_client":
        page = "edit_client"
    user = getattr(g, "current_user", None)

    if page in ("login", "logout", "register", "404"):
        return _public_page(page, user)

    if user is None:
        return redirect(url_for("auth.login_get"))

    role = user_role_key(user)
    home = home_endpoint_for(role)
    if home is None:
        current_app.logger.warning("User %s has unknown role %r; clearing session", user.id, role)
        session.pop("user_id", None)
        g.current_user = None
        return redirect(url_for("auth.login_get"))

    if not page:
        return redirect(url_for(home))

    route = resolve_page(role, page)
    if route is None:
        current_app.logger.info("Page %r not allowed for role %s", page, role)
        return _not_found()
    try:
        target = url_for(route.endpoint, **_forward_args(route.args))
    except (BuildError, ValueError):
        # Required id missing or not an int.
        return _not_found()
    return redirect(target)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for probes. No DB access.
    """
    return "ok", 200
