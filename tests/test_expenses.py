from datetime import date
from decimal import Decimal

from app.officedesk.db import session_scope
from app.officedesk.modules.expenses.models import Expense
from app.officedesk.modules.expenses.service import validate_expense_payload


def test_validate_expense_payload():
    ok = {"expense_type": "Rent", "amount": "100", "expense_date": "2030-01-05"}
    assert validate_expense_payload(ok) == []
    errors = validate_expense_payload({"expense_type": "", "amount": "0", "expense_date": "05/01/2030"})
    assert errors == [
        "Expense type is required.",
        "Amount must be a number greater than zero.",
        "A valid expense date is required.",
    ]


def test_add_edit_delete_expense(client, login, post, app):
    login()
    r = post(
        "/admin/expenses/new",
        data={"expense_type": "Rent", "amount": "1200.5", "expense_date": "2030-01-05", "description": "Office"},
        follow_redirects=True,
    )
    assert b"Expense added successfully." in r.data
    assert b"1,200.50" in r.data

    with session_scope(app) as s:
        e = s.query(Expense).one()
        eid = e.id
        assert e.amount == Decimal("1200.50")
        assert e.expense_date == date(2030, 1, 5)

    assert client.get(f"/admin/expenses/{eid}/edit").status_code == 200
    r = post(f"/admin/expenses/{eid}/edit", data={"expense_type": "Rent", "amount": "900", "expense_date": "2030-01-06"})
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.get(Expense, eid).amount == Decimal("900.00")

    r = post(f"/admin/expenses/{eid}/delete", follow_redirects=True)
    assert b"Expense deleted successfully." in r.data
    with session_scope(app) as s:
        assert s.query(Expense).count() == 0


def test_invalid_expense_not_saved(client, login, post, app):
    login()
    r = post("/admin/expenses/new", data={"expense_type": "Rent", "amount": "-3", "expense_date": "2030-01-05"}, follow_redirects=True)
    assert b"Amount must be a number greater than zero." in r.data
    with session_scope(app) as s:
        assert s.query(Expense).count() == 0


def test_expenses_admin_only(client, login, make_user):
    make_user("accountant", "acc@example.com")
    login("acc@example.com")
    assert client.get("/admin/expenses").status_code == 403


def test_out_of_range_expense_amount_rejected(client, login, post, app):
    login()
    for amount in ("1e30", "123456789"):
        r = post("/admin/expenses/new", data={"expense_type": "Rent", "amount": amount, "expense_date": "2030-01-05"}, follow_redirects=True)
        assert r.status_code == 200
        assert b"Amount must be a number greater than zero." in r.data
    with session_scope(app) as s:
        assert s.query(Expense).count() == 0
