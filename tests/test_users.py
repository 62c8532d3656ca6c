from werkzeug.security import check_password_hash

from app.officedesk.db import session_scope
from app.officedesk.models import AuditEvent, User


def _new_user(post, **overrides):
    data = {"name": "Dana", "email": "dana@example.com", "password": "secret1", "role": "data_entry_operator"}
    data.update(overrides)
    return post("/admin/users/new", data=data)


def test_users_list_ok(client, login):
    login()
    r = client.get("/admin/users")
    assert r.status_code == 200
    assert b"Users" in r.data
    assert b"admin@example.com" in r.data


def test_register_user(client, login, post, app):
    login()
    r = _new_user(post, email="Dana@Example.com")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/admin/users")

    with session_scope(app) as s:
        u = s.query(User).filter(User.email == "dana@example.com").one()
        assert u.role_key == "data_entry_operator"
        assert check_password_hash(u.password_hash, "secret1")
        assert s.query(AuditEvent).filter(AuditEvent.action == "user.create").count() == 1


def test_register_duplicate_email(client, login, post, make_user):
    make_user("sales", "dana@example.com")
    login()
    r = _new_user(post, email="DANA@example.com")
    assert r.status_code == 400
    assert b"An account with this email already exists." in r.data


def test_register_validation(client, login, post):
    login()
    r = _new_user(post, name="", email="not-an-email", password="123", role="wizard")
    assert r.status_code == 400
    assert b"Name is required." in r.data
    assert b"Invalid email format." in r.data
    assert b"Password must be at least 6 characters." in r.data
    assert b"Please select a valid role." in r.data


def test_edit_user_keeps_password_when_blank(client, login, post, make_user, app):
    uid = make_user("sales", "sam@example.com")
    login()
    r = post(
        f"/admin/users/{uid}/edit",
        data={"name": "Samuel", "email": "sam@example.com", "password": "", "role": "manager", "is_active": "1"},
    )
    assert r.status_code == 302
    with session_scope(app) as s:
        u = s.get(User, uid)
        assert u.name == "Samuel"
        assert u.role_key == "manager"
        assert u.is_active is True
        assert check_password_hash(u.password_hash, "pw-secret")


def test_edit_user_can_deactivate(client, login, post, make_user, app):
    uid = make_user("sales", "sam@example.com")
    login()
    post(f"/admin/users/{uid}/edit", data={"name": "Sam", "email": "sam@example.com", "role": "sales"})
    with session_scope(app) as s:
        assert s.get(User, uid).is_active is False


def test_admin_cannot_deactivate_self(client, login, post, app):
    login()
    with session_scope(app) as s:
        admin_id = s.query(User.id).filter(User.email == "admin@example.com").scalar()
    post(f"/admin/users/{admin_id}/edit", data={"name": "Admin", "email": "admin@example.com", "role": "admin"})
    with session_scope(app) as s:
        assert s.get(User, admin_id).is_active is True


def test_admin_cannot_change_own_role(client, login, post, app):
    login()
    with session_scope(app) as s:
        admin_id = s.query(User.id).filter(User.email == "admin@example.com").scalar()
    r = post(
        f"/admin/users/{admin_id}/edit",
        data={"name": "Admin", "email": "admin@example.com", "role": "sales", "is_active": "1"},
        follow_redirects=True,
    )
    assert b"You cannot change your own role." in r.data
    with session_scope(app) as s:
        assert s.get(User, admin_id).role_key == "admin"


def test_cannot_delete_self(client, login, post, app):
    login()
    with session_scope(app) as s:
        admin_id = s.query(User.id).filter(User.email == "admin@example.com").scalar()
    r = post(f"/admin/users/{admin_id}/delete", follow_redirects=True)
    assert b"You cannot delete your own account." in r.data
    with session_scope(app) as s:
        assert s.get(User, admin_id) is not None


def test_delete_user(client, login, post, make_user, app):
    uid = make_user("assistant", "asa@example.com")
    login()
    r = post(f"/admin/users/{uid}/delete", follow_redirects=True)
    assert b"User deleted successfully." in r.data
    with session_scope(app) as s:
        assert s.get(User, uid) is None
        ev = s.query(AuditEvent).filter(AuditEvent.action == "user.delete").one()
        assert ev.entity_id == str(uid)


def test_delete_missing_user(client, login, post):
    login()
    r = post("/admin/users/9999/delete", follow_redirects=True)
    assert b"User not found." in r.data


def test_audit_trail_filters(client, login):
    login()
    r = client.get("/admin/audit?action=auth.login")
    assert r.status_code == 200
    assert b"Audit Trail" in r.data
    assert b"auth.login" in r.data

    r = client.get("/admin/audit?date_from=yesterday")
    assert b"date_from must be YYYY-MM-DD" in r.data
