from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g, redirect, request, url_for

from app.officedesk.constants import HOME_ENDPOINTS, HOME_PAGES, PAGE_MAP, ROLE_PERMISSIONS, PageRoute
from app.officedesk.models import User


class NotAllowed(PermissionError):
    """Raised by services when the acting user may not touch a record."""


def user_has_permission(user: User | None, permission_key: str) -> bool:
    if not user or not user.is_active:
        return False
    for role in user.roles:
        for perm in role.permissions:
            if perm.key == permission_key:
                return True
    return False


def user_role_key(user: User | None) -> str | None:
    """Primary role key of the user (the UI assigns exactly one)."""
    if not user:
        return None
    return user.role_key


def home_endpoint_for(role_key: str | None) -> str | None:
    if not role_key:
        return None
    return HOME_ENDPOINTS.get(role_key)


def resolve_page(role_key: str | None, page: str) -> PageRoute | None:
    """
    Map a legacy ``?page=`` name to a route for the given role.
    Returns None when the role is unknown or the page is not whitelisted for it.
    """
    if role_key not in ROLE_PERMISSIONS:
        return None
    page = (page or "").strip()
    if page in HOME_PAGES:
        return PageRoute(HOME_ENDPOINTS[role_key], "")
    route = PAGE_MAP.get(page)
    if route is None or route.permission not in ROLE_PERMISSIONS[role_key]:
        return None
    return route


def require_permission(permission_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            # Unauthenticated → redirect to login.
            if not user or not user.is_active:
                nxt = request.full_path or request.path
                # Avoid trailing '?' from full_path when there is no query string.
                if nxt.endswith("?"):
                    nxt = nxt[:-1]
                return redirect(url_for("auth.login_get", next=nxt))
            # Authenticated but unauthorized → 403
            if not user_has_permission(user, permission_key):
                g.missing_permission = permission_key
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
