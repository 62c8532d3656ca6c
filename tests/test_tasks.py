from datetime import datetime
from decimal import Decimal

import pytest

from app.officedesk.db import session_scope
from app.officedesk.models import User
from app.officedesk.modules.tasks.models import Task
from app.officedesk.modules.tasks.service import completed_at_for, update_own_task


def _task_form(work, **overrides):
    data = {
        "client_id": str(work["client_id"]),
        "category_id": str(work["category_id"]),
        "subcategory_id": str(work["subcategory_id"]),
        "description": "Build a landing page",
        "deadline": "2030-02-01",
        "fee": "1500.00",
        "fee_mode": "online",
        "maintenance_fee": "200",
        "maintenance_fee_mode": "cash",
    }
    data.update(overrides)
    return data


def test_completed_at_for():
    now = datetime(2030, 1, 1, 12, 0)
    earlier = datetime(2029, 12, 1, 9, 0)
    assert completed_at_for(None, "completed", now) == now
    assert completed_at_for(earlier, "completed", now) == earlier
    assert completed_at_for(earlier, "in_process", now) is None
    assert completed_at_for(None, "pending", now) is None


def test_admin_assigns_task(client, login, post, make_user, work, app):
    uid = make_user("coordinator", "cora@example.com")
    login()
    r = post(
        "/admin/tasks/new",
        data=_task_form(work, assigned_user_id=str(uid), status="completed", payment_status="paid_full"),
    )
    assert r.status_code == 302
    with session_scope(app) as s:
        t = s.query(Task).one()
        assert t.assigned_user_id == uid
        assert t.fee == Decimal("1500.00")
        assert t.maintenance_fee == Decimal("200.00")
        assert t.completed_at is not None
        assert t.net_revenue == Decimal("1300.00")


def test_assign_rejects_mismatched_subcategory(client, login, post, make_user, work, app):
    from app.officedesk.modules.catalog.models import Category

    with session_scope(app) as s:
        other = Category(name="Print")
        s.add(other)
        s.flush()
        other_id = other.id
    uid = make_user("sales", "sam@example.com")
    login()
    r = post("/admin/tasks/new", data=_task_form(work, assigned_user_id=str(uid), category_id=str(other_id)))
    assert r.status_code == 400
    assert b"Subcategory does not belong to the selected category." in r.data


def test_assign_requires_user_and_valid_fee_mode(client, login, post, work):
    login()
    r = post("/admin/tasks/new", data=_task_form(work, fee_mode="barter"))
    assert r.status_code == 400
    assert b"Please select a user to assign the task to." in r.data
    assert b"Invalid fee mode." in r.data


def test_admin_edit_moves_completed_at(client, login, post, make_user, make_task, work, app):
    uid = make_user("sales", "sam@example.com")
    tid = make_task(uid)
    login()
    assert client.get(f"/admin/tasks/{tid}/edit").status_code == 200
    post(f"/admin/tasks/{tid}/edit", data=_task_form(work, assigned_user_id=str(uid), status="completed"))
    with session_scope(app) as s:
        first = s.get(Task, tid).completed_at
        assert first is not None
    post(f"/admin/tasks/{tid}/edit", data=_task_form(work, assigned_user_id=str(uid), status="in_process"))
    with session_scope(app) as s:
        assert s.get(Task, tid).completed_at is None


def test_all_tasks_filters(client, login, make_user, make_task):
    uid = make_user("sales", "sam@example.com")
    make_task(uid, description="Alpha job")
    make_task(uid, description="Beta job", status="completed")
    login()
    r = client.get("/admin/tasks?status=completed")
    assert r.status_code == 200
    assert b"Beta job" in r.data
    assert b"Alpha job" not in r.data
    r = client.get("/admin/tasks?q=alpha")
    assert b"Alpha job" in r.data


def test_delete_task(client, login, post, make_user, make_task, app):
    tid = make_task(make_user("sales", "sam@example.com"))
    login()
    r = post(f"/admin/tasks/{tid}/delete", follow_redirects=True)
    assert b"Task deleted successfully." in r.data
    with session_scope(app) as s:
        assert s.get(Task, tid) is None


def test_submit_work_fee_must_match_fare(client, login, post, make_user, work, app):
    make_user("sales", "sam@example.com")
    login("sam@example.com")
    r = post("/tasks/submit", data=_task_form(work, fee="1499.99"))
    assert r.status_code == 400
    assert b"does not match the subcategory" in r.data
    with session_scope(app) as s:
        assert s.query(Task).count() == 0


def test_submit_work(client, login, post, make_user, work, app):
    uid = make_user("sales", "sam@example.com")
    login("sam@example.com")
    r = post("/tasks/submit", data=_task_form(work, status="completed", payment_status="paid_full"))
    assert r.status_code == 302
    with session_scope(app) as s:
        t = s.query(Task).one()
        assert t.assigned_user_id == uid
        assert t.status == "pending"
        assert t.payment_status == "pending"
        assert t.completed_at is None


def test_deo_cannot_submit_work(client, login, make_user):
    make_user("data_entry_operator", "dee@example.com")
    login("dee@example.com")
    assert client.get("/tasks/submit").status_code == 403
    assert client.get("/tasks/mine").status_code == 200


def test_my_tasks_lists_only_own(client, login, make_user, make_task):
    uid = make_user("sales", "sam@example.com")
    other = make_user("sales", "sue@example.com")
    make_task(uid, description="Mine to do")
    make_task(other, description="Not for me")
    login("sam@example.com")
    r = client.get("/tasks/mine")
    assert b"Mine to do" in r.data
    assert b"Not for me" not in r.data


def test_update_own_task(client, login, post, make_user, make_task, app):
    uid = make_user("coordinator", "cora@example.com")
    tid = make_task(uid)
    login("cora@example.com")
    assert client.get(f"/tasks/{tid}/update").status_code == 200
    r = post(f"/tasks/{tid}/update", data={"status": "completed", "payment_status": "paid_full", "user_notes": "done"})
    assert r.status_code == 302
    with session_scope(app) as s:
        t = s.get(Task, tid)
        assert t.status == "completed"
        assert t.completed_at is not None
        assert t.user_notes == "done"
        # coordinators may not touch payment status
        assert t.payment_status == "pending"


def test_accountant_updates_payment_status(client, login, post, make_user, make_task, app):
    uid = make_user("accountant", "acc@example.com")
    tid = make_task(uid)
    login("acc@example.com")
    post(f"/tasks/{tid}/update", data={"status": "in_process", "payment_status": "paid_partial"})
    with session_scope(app) as s:
        assert s.get(Task, tid).payment_status == "paid_partial"


def test_update_others_task_is_404(client, login, post, make_user, make_task):
    make_user("coordinator", "cora@example.com")
    tid = make_task(make_user("sales", "sam@example.com"))
    login("cora@example.com")
    assert client.get(f"/tasks/{tid}/update").status_code == 404
    assert post(f"/tasks/{tid}/update", data={"status": "completed"}).status_code == 404


def test_update_own_task_requires_status(app, make_user, make_task):
    uid = make_user("sales", "sam@example.com")
    tid = make_task(uid)
    with session_scope(app) as s:
        t = s.get(Task, tid)
        u = s.get(User, uid)
        with pytest.raises(ValueError):
            update_own_task(s, t, {"status": ""}, u)
        with pytest.raises(ValueError):
            update_own_task(s, t, {"status": "archived"}, u)


def test_bill_access(client, login, make_user, make_task):
    owner = make_user("sales", "sam@example.com")
    make_user("coordinator", "cora@example.com")
    make_user("manager", "mia@example.com")
    tid = make_task(owner)

    login("sam@example.com")
    r = client.get(f"/tasks/{tid}/bill")
    assert r.status_code == 200
    assert f"Bill #{tid}".encode() in r.data
    assert b"1,500.00" in r.data

    client.get("/auth/logout")
    login("cora@example.com")
    assert client.get(f"/tasks/{tid}/bill").status_code == 403

    client.get("/auth/logout")
    login("mia@example.com")
    assert client.get(f"/tasks/{tid}/bill").status_code == 200

    client.get("/auth/logout")
    login()
    assert client.get(f"/tasks/{tid}/bill").status_code == 200
    assert client.get("/tasks/9999/bill").status_code == 404
