import csv
import io
from datetime import date, datetime
from decimal import Decimal

import pytest

from app.officedesk.db import session_scope
from app.officedesk.modules.expenses.models import Expense
from app.officedesk.modules.reports.service import (
    build_export_csv,
    expense_total,
    income_total,
    normalize_period,
    paginate,
    period_bounds,
    revenue_query,
    task_status_counts,
    user_task_summary,
)

TODAY = date(2030, 12, 18)  # a Wednesday


def test_period_bounds():
    assert period_bounds("daily", TODAY) == (TODAY, date(2030, 12, 19))
    assert period_bounds("weekly", TODAY) == (date(2030, 12, 16), date(2030, 12, 23))
    assert period_bounds("monthly", TODAY) == (date(2030, 12, 1), date(2031, 1, 1))
    assert period_bounds("monthly", date(2030, 2, 10)) == (date(2030, 2, 1), date(2030, 3, 1))
    assert period_bounds("yearly", TODAY) == (date(2030, 1, 1), date(2031, 1, 1))
    assert period_bounds("all", TODAY) == (None, None)
    with pytest.raises(ValueError):
        period_bounds("fortnightly", TODAY)


def test_normalize_period():
    assert normalize_period("Weekly") == "weekly"
    assert normalize_period("") == "monthly"
    assert normalize_period("decade") == "monthly"


@pytest.fixture()
def ledger(app, make_user, make_task):
    """Two completed tasks (this month, last year), one pending, two expenses."""
    uid = make_user("sales", "sam@example.com", name="Sam")
    make_task(
        uid,
        description="December site",
        status="completed",
        payment_status="paid_full",
        fee=Decimal("1000.00"),
        maintenance_fee=Decimal("100.00"),
        completed_at=datetime(2030, 12, 17, 15, 30),
    )
    make_task(
        uid,
        description="Old site",
        status="completed",
        payment_status="pending",
        fee=Decimal("500.00"),
        completed_at=datetime(2029, 6, 1, 10, 0),
    )
    make_task(uid, description="Open job", status="pending")
    with session_scope(app) as s:
        s.add(Expense(expense_type="Rent", amount=Decimal("300.00"), expense_date=date(2030, 12, 2)))
        s.add(Expense(expense_type="Internet", amount=Decimal("40.00"), expense_date=date(2029, 1, 2)))
    return uid


def test_income_and_expense_totals(app, ledger):
    with session_scope(app) as s:
        assert income_total(s, "monthly", today=TODAY) == Decimal("900.00")
        assert income_total(s, "all", today=TODAY) == Decimal("1400.00")
        assert income_total(s, "all", today=TODAY, paid_only=True) == Decimal("900.00")
        assert income_total(s, "daily", today=TODAY) == Decimal("0.00")
        assert expense_total(s, "monthly", today=TODAY) == Decimal("300.00")
        assert expense_total(s, "all", today=TODAY) == Decimal("340.00")


def test_revenue_query_search(app, ledger):
    with session_scope(app) as s:
        assert [t.description for t in revenue_query(s, "all", "old", today=TODAY).all()] == ["Old site"]
        assert revenue_query(s, "all", "acme", today=TODAY).count() == 2


def test_counts_and_summary(app, ledger):
    with session_scope(app) as s:
        counts = task_status_counts(s)
        assert counts["completed"] == 2
        assert counts["pending"] == 1
        assert counts["active"] == 1
        assert counts["total"] == 3
        summary = user_task_summary(s)
        assert [(row["user"].name, row["completed"], row["pending"], row["total"]) for row in summary] == [("Sam", 2, 1, 3)]


def test_paginate(app, ledger):
    with session_scope(app) as s:
        page = paginate(revenue_query(s, "all", today=TODAY), 1, per_page=1)
        assert page["total"] == 2
        assert page["pages"] == 2
        assert page["has_next"] and not page["has_prev"]
        assert len(page["items"]) == 1


def test_build_export_csv(app, ledger):
    with session_scope(app) as s:
        text, rows = build_export_csv(s, "revenue", "monthly", today=TODAY)
        assert rows == 1
        parsed = list(csv.reader(io.StringIO(text)))
        assert parsed[0] == [
            "Task ID", "Client", "Assigned To", "Category", "Subcategory", "Description",
            "Fee", "Maintenance Fee", "Net", "Payment Status", "Completed On",
        ]
        assert parsed[1][1:3] == ["Acme Traders", "Sam"]
        assert parsed[1][6:9] == ["1000.00", "100.00", "900.00"]

        text, rows = build_export_csv(s, "expenses", "all", today=TODAY)
        assert rows == 2
        assert text.splitlines()[0] == "Expense ID,Type,Amount,Description,Date,Recorded At"

        _, rows = build_export_csv(s, "maintenance", "all", today=TODAY)
        assert rows == 1
        _, rows = build_export_csv(s, "tasks", "all", today=TODAY)
        assert rows == 3
        with pytest.raises(ValueError):
            build_export_csv(s, "payroll", "all", today=TODAY)


def test_reports_page(client, login, ledger):
    login()
    r = client.get("/admin/reports?time_period=all")
    assert r.status_code == 200
    assert b"Reports" in r.data
    assert b"1,400.00" in r.data
    assert b"340.00" in r.data
    assert b"1,060.00" in r.data

    r = client.get("/admin/reports?time_period=bogus&search=old&p_revenue=3")
    assert r.status_code == 200


def test_export_download(client, login, ledger, app):
    from app.officedesk.models import AuditEvent

    login()
    r = client.get("/admin/reports/export?type=tasks&time_period=all")
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    disposition = r.headers["Content-Disposition"]
    assert "attachment" in disposition
    assert "tasks_report_all_" in disposition
    assert r.data.decode("utf-8").startswith("Task ID,Client,Assigned To")
    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "report.export").one()
        assert ev.entity_id == "tasks"


def test_export_unknown_type_is_404(client, login):
    login()
    assert client.get("/admin/reports/export?type=payroll").status_code == 404


def test_admin_dashboard_counts(client, login, ledger):
    login()
    r = client.get("/admin/")
    assert r.status_code == 200
    # paid-only revenue
    assert b"900.00" in r.data
    assert b"Sam" in r.data


def test_staff_dashboard(client, login, ledger):
    login("sam@example.com")
    r = client.get("/dashboard")
    assert r.status_code == 200


class _LateEveningUtc(datetime):
    @classmethod
    def utcnow(cls):
        return cls(2030, 12, 17, 23, 30)


def test_default_period_uses_utc_date(app, ledger, monkeypatch):
    from app.officedesk.modules.reports import service as reports_service

    monkeypatch.setattr(reports_service, "datetime", _LateEveningUtc)
    assert reports_service.utc_today() == date(2030, 12, 17)
    with session_scope(app) as s:
        assert income_total(s, "daily") == Decimal("900.00")
        assert income_total(s, "weekly") == Decimal("900.00")
