import pytest

from app.officedesk.db import session_scope
from app.officedesk.models import User
from app.officedesk.modules.clients.models import Client
from app.officedesk.modules.clients.service import delete_client, search_clients, validate_client_payload


def _client_form(**overrides):
    data = {
        "client_name": "Globex",
        "contact_person": "Hank",
        "email": "hank@globex.example",
        "phone": "555-0100",
        "company": "Globex Corp",
        "address": "1 Main St",
        "status": "Active",
    }
    data.update(overrides)
    return data


def test_validate_client_payload():
    assert validate_client_payload(_client_form()) == []
    errors = validate_client_payload(_client_form(client_name=" ", email="bad", status="Gone"))
    assert "Client name is required." in errors
    assert "Please enter a valid email address." in errors
    assert any(e.startswith("Invalid status.") for e in errors)


def test_clients_list_visible_to_staff(client, login, make_user, work):
    make_user("coordinator", "cora@example.com")
    login("cora@example.com")
    r = client.get("/clients")
    assert r.status_code == 200
    assert b"Acme Traders" in r.data
    # coordinators can look but not add
    assert client.get("/clients/new").status_code == 403


def test_deo_adds_client(client, login, post, make_user, app):
    uid = make_user("data_entry_operator", "dee@example.com")
    login("dee@example.com")
    r = post("/clients/new", data=_client_form())
    assert r.status_code == 302
    with session_scope(app) as s:
        c = s.query(Client).filter(Client.client_name == "Globex").one()
        assert c.submitted_by_user_id == uid
        assert c.email == "hank@globex.example"


def test_duplicate_client_name(client, login, post, work):
    login()
    r = post("/clients/new", data=_client_form(client_name="acme traders"))
    assert r.status_code == 400
    assert b"A client with this name already exists." in r.data


def test_invalid_client_form_rerenders(client, login, post):
    login()
    r = post("/clients/new", data=_client_form(email="nope"))
    assert r.status_code == 400
    assert b"Please enter a valid email address." in r.data
    assert b"Globex" in r.data


def test_edit_client(client, login, post, work, app):
    login()
    cid = work["client_id"]
    assert client.get(f"/clients/{cid}/edit").status_code == 200
    r = post(f"/clients/{cid}/edit", data=_client_form(client_name="Acme Traders", status="Inactive"))
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.get(Client, cid).status == "Inactive"


def test_delete_requires_permission(client, login, post, make_user, work):
    make_user("assistant", "asa@example.com")
    login("asa@example.com")
    r = post(f"/clients/{work['client_id']}/delete")
    assert r.status_code == 403


def test_delete_blocked_by_tasks(client, login, post, work, make_task, app):
    with session_scope(app) as s:
        admin_id = s.query(User.id).filter(User.email == "admin@example.com").scalar()
    make_task(admin_id)
    login()
    r = post(f"/clients/{work['client_id']}/delete", follow_redirects=True)
    assert b"Cannot delete client" in r.data
    with session_scope(app) as s:
        assert s.get(Client, work["client_id"]) is not None
        with pytest.raises(ValueError):
            delete_client(s, s.get(Client, work["client_id"]), s.get(User, admin_id))


def test_delete_client(client, login, post, work, app):
    login()
    r = post(f"/clients/{work['client_id']}/delete", follow_redirects=True)
    assert b"Client deleted successfully." in r.data
    with session_scope(app) as s:
        assert s.get(Client, work["client_id"]) is None


def test_search_clients(app, work):
    with session_scope(app) as s:
        s.add(Client(client_name="Initech", company="Initech LLC", status="Inactive"))
        s.flush()
        assert [c.client_name for c in search_clients(s, q="acme").all()] == ["Acme Traders"]
        assert [c.client_name for c in search_clients(s, status="Inactive").all()] == ["Initech"]
        assert len(search_clients(s).all()) == 2
