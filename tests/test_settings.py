from decimal import Decimal

from app.officedesk.db import session_scope
from app.officedesk.models import Permission, Role
from app.officedesk.modules.settings.service import get_settings, validate_settings_payload
from scripts.init_db import seed_access


def test_defaults_seeded(app):
    with session_scope(app) as s:
        row = get_settings(s)
        assert row.app_name == "Project Management System"
        assert row.earning_per_approved_post == Decimal("10.00")
        assert row.minimum_withdrawal_amount == Decimal("500.00")


def test_seed_access_is_idempotent(app):
    with session_scope(app) as s:
        perms = s.query(Permission).count()
        roles = s.query(Role).count()
        seed_access(s)
    with session_scope(app) as s:
        assert s.query(Permission).count() == perms
        assert s.query(Role).count() == roles
        deo = s.query(Role).filter(Role.key == "data_entry_operator").one()
        assert "withdrawals.request" in {p.key for p in deo.permissions}


def test_validate_settings_payload():
    ok = {"app_name": "Desk", "currency_symbol": "$", "earning_per_approved_post": "5"}
    assert validate_settings_payload(ok) == []
    errors = validate_settings_payload({"app_name": "", "currency_symbol": "", "earning_per_approved_post": "-1"})
    assert len(errors) == 3


def test_update_settings(client, login, post, app):
    login()
    assert client.get("/admin/settings").status_code == 200
    r = post(
        "/admin/settings",
        data={"app_name": "Acme Desk", "currency_symbol": "$", "earning_per_approved_post": "12.5", "app_logo_url": ""},
        follow_redirects=True,
    )
    assert b"Settings updated successfully." in r.data
    assert b"Acme Desk" in r.data
    with session_scope(app) as s:
        row = get_settings(s)
        assert row.currency_symbol == "$"
        assert row.earning_per_approved_post == Decimal("12.50")
        assert row.app_logo_url is None


def test_settings_admin_only(client, login, make_user):
    make_user("manager", "mia@example.com")
    login("mia@example.com")
    assert client.get("/admin/settings").status_code == 403
