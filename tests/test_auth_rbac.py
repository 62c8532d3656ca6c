from app.officedesk.auth import is_safe_next
from app.officedesk.db import session_scope
from app.officedesk.models import AuditEvent, User


def test_invalid_credentials(client, login, app):
    r = login(password="wrong")
    assert r.status_code == 302
    r = client.get(r.headers["Location"])
    assert b"Invalid credentials." in r.data
    with session_scope(app) as s:
        assert s.query(AuditEvent).filter(AuditEvent.action == "auth.login_failed").count() == 1


def test_login_is_rate_limited(client, login):
    for _ in range(5):
        login(password="wrong")
    r = login()
    assert r.headers["Location"].endswith("/auth/login")
    r = client.get("/auth/login")
    assert b"Too many login attempts" in r.data
    assert client.get("/admin/").status_code == 302


def test_inactive_user_cannot_login(client, login, make_user, app):
    uid = make_user("sales", "old@example.com")
    with session_scope(app) as s:
        s.get(User, uid).is_active = False
    login("old@example.com")
    assert client.get("/dashboard").status_code == 302


def test_email_is_case_insensitive(client, login):
    r = login("ADMIN@Example.com")
    assert r.headers["Location"].endswith("/admin/")


def test_staff_lands_on_my_tasks(client, login, make_user):
    make_user("manager", "mia@example.com")
    r = login("mia@example.com")
    assert r.headers["Location"].endswith("/tasks/mine")


def test_safe_next_redirect(client, login):
    r = login(next="/clients")
    assert r.headers["Location"].endswith("/clients")


def test_unsafe_next_is_ignored(client, login):
    r = login(next="//evil.example.com/x")
    assert r.headers["Location"].endswith("/admin/")


def test_is_safe_next():
    assert is_safe_next("/admin/users")
    assert not is_safe_next("//evil.example.com")
    assert not is_safe_next("https://evil.example.com")
    assert not is_safe_next("")


def test_post_without_csrf_token_is_rejected(client, login, post):
    login()
    r = client.post("/admin/categories/new", data={"name": "Design"})
    assert r.status_code == 400
    assert b"CSRF" in r.data

    r = post("/admin/categories/new", data={"name": "Design"})
    assert r.status_code == 302


def test_missing_permission_is_403(client, login, make_user):
    make_user("coordinator", "cora@example.com")
    login("cora@example.com")
    r = client.get("/admin/users")
    assert r.status_code == 403
    assert client.get("/admin/reports").status_code == 403
    assert client.get("/clients").status_code == 200


def test_logout(client, login):
    login()
    r = client.get("/auth/logout")
    assert r.status_code == 302
    assert client.get("/admin/").status_code == 302


def test_protected_page_redirect_keeps_next(client):
    r = client.get("/clients?q=acme")
    assert r.status_code == 302
    assert "next=" in r.headers["Location"]
