from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from werkzeug.security import generate_password_hash

from app.officedesk import create_app
from app.officedesk.auth import _login_attempts
from app.officedesk.constants import ROLE_NAMES
from app.officedesk.db import session_scope
from app.officedesk.models import Base, Role, User
from app.officedesk.modules.catalog.models import Category, Subcategory
from app.officedesk.modules.clients.models import Client
from app.officedesk.modules.tasks.models import Task
from scripts.init_db import seed_access

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "pw-secret"


def _add_user(s, role_key: str, name: str, email: str, password: str, **fields) -> User:
    role = s.query(Role).filter(Role.key == role_key).one_or_none()
    if role is None:
        role = Role(key=role_key, name=ROLE_NAMES.get(role_key, role_key))
        s.add(role)
    u = User(name=name, email=email, password_hash=generate_password_hash(password), is_active=True, **fields)
    u.roles.append(role)
    s.add(u)
    s.flush()
    return u


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    _login_attempts.clear()

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        seed_access(s)
        _add_user(s, "admin", "Admin", ADMIN_EMAIL, PASSWORD)

    yield app

    _login_attempts.clear()
    engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    """Create a user with one role; returns the new user's id."""

    def _make(role_key: str, email: str, *, name: str | None = None, password: str = PASSWORD, **fields) -> int:
        with session_scope(app) as s:
            u = _add_user(s, role_key, name or email.split("@")[0].title(), email, password, **fields)
            return u.id

    return _make


@pytest.fixture()
def login(client):
    def _login(email: str = ADMIN_EMAIL, password: str = PASSWORD, **extra):
        return client.post("/auth/login", data={"email": email, "password": password, **extra}, follow_redirects=False)

    return _login


@pytest.fixture()
def post(client):
    """POST with the session's CSRF token attached."""

    def _post(url: str, data: dict | None = None, **kwargs):
        with client.session_transaction() as sess:
            token = sess.setdefault("csrf_token", "test-csrf-token")
        payload = dict(data or {})
        payload["csrf_token"] = token
        return client.post(url, data=payload, **kwargs)

    return _post


@pytest.fixture()
def work(app):
    """One active client and one category with a 1500.00 subcategory."""
    with session_scope(app) as s:
        c = Client(client_name="Acme Traders", status="Active")
        cat = Category(name="Web")
        s.add_all([c, cat])
        s.flush()
        sub = Subcategory(category_id=cat.id, name="Landing page", fare=Decimal("1500.00"))
        s.add(sub)
        s.flush()
        return {"client_id": c.id, "category_id": cat.id, "subcategory_id": sub.id}


@pytest.fixture()
def make_task(app, work):
    def _make(assigned_user_id: int, **fields) -> int:
        values = {
            "client_id": work["client_id"],
            "category_id": work["category_id"],
            "subcategory_id": work["subcategory_id"],
            "description": "Build it",
            "deadline": date(2030, 1, 31),
            "fee": Decimal("1500.00"),
            "fee_mode": "cash",
            "maintenance_fee": Decimal("0.00"),
            "maintenance_fee_mode": "pending",
            "status": "pending",
            "payment_status": "pending",
        }
        values.update(fields)
        with session_scope(app) as s:
            t = Task(assigned_user_id=assigned_user_id, **values)
            s.add(t)
            s.flush()
            return t.id

    return _make
