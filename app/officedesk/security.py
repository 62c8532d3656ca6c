import secrets

from flask import Request, render_template, request, session

CSRF_SESSION_KEY = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
# Login/logout carry no session state worth forging.
CSRF_EXEMPT_BLUEPRINTS = frozenset({"auth"})


def ensure_csrf_token() -> str:
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        session[CSRF_SESSION_KEY] = token
    return token


def _submitted_token(req: Request) -> str | None:
    token = req.headers.get(CSRF_HEADER) or req.form.get(CSRF_SESSION_KEY)
    if not token and req.is_json:
        body = req.get_json(silent=True)
        if isinstance(body, dict):
            token = body.get(CSRF_SESSION_KEY)
    return token


def validate_csrf(req: Request) -> bool:
    """True when the submitted token (header, form field or JSON body) matches the session's."""
    token = _submitted_token(req)
    expected = session.get(CSRF_SESSION_KEY)
    return bool(token and expected and secrets.compare_digest(str(token), str(expected)))


def csrf_protect():
    """before_request hook: issue a token, and reject unsafe requests that do not echo it."""
    ensure_csrf_token()
    session.permanent = True
    if request.method not in UNSAFE_METHODS or request.blueprint in CSRF_EXEMPT_BLUEPRINTS:
        return None
    if not validate_csrf(request):
        return render_template("errors/400.html", message="CSRF token missing or invalid."), 400
    return None
