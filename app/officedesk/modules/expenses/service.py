from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from app.officedesk.audit import apply_changes, record_event
from app.officedesk.modules.expenses.models import Expense
from app.officedesk.utils import parse_date, parse_money

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.officedesk.models import User


def validate_expense_payload(payload: dict) -> list[str]:
    errors: list[str] = []
    if not (payload.get("expense_type") or "").strip():
        errors.append("Expense type is required.")
    amount = parse_money(payload.get("amount"))
    if amount is None or amount <= 0:
        errors.append("Amount must be a number greater than zero.")
    if parse_date(payload.get("expense_date")) is None:
        errors.append("A valid expense date is required.")
    return errors


def _fields(payload: dict) -> dict:
    return {
        "expense_type": (payload.get("expense_type") or "").strip(),
        "amount": parse_money(payload.get("amount")),
        "description": (payload.get("description") or "").strip() or None,
        "expense_date": parse_date(payload.get("expense_date")),
    }


def create_expense(s: "Session", payload: dict, user: "User") -> Expense:
    expense = Expense(**_fields(payload), created_at=datetime.utcnow(), created_by_user_id=user.id)
    s.add(expense)
    s.flush()
    record_event(
        s,
        actor=user,
        action="expense.create",
        entity_type="Expense",
        entity_id=str(expense.id),
        metadata={"expense_type": expense.expense_type, "amount": str(expense.amount), "expense_date": str(expense.expense_date)},
    )
    return expense


def update_expense(s: "Session", expense: Expense, payload: dict, user: "User") -> Expense:
    changes = apply_changes(expense, _fields(payload))
    if changes:
        record_event(s, actor=user, action="expense.update", entity_type="Expense", entity_id=str(expense.id), metadata={"changes": changes})
    return expense


def delete_expense(s: "Session", expense: Expense, user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="expense.delete",
        entity_type="Expense",
        entity_id=str(expense.id),
        metadata={"expense_type": expense.expense_type, "amount": str(expense.amount)},
    )
    s.delete(expense)
