from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from app.officedesk.audit import record_event
from app.officedesk.modules.settings.models import SETTINGS_ROW_ID, AppSettings
from app.officedesk.utils import parse_money

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.officedesk.models import User


def get_settings(s: "Session") -> AppSettings:
    """Return the settings row, creating it with defaults when missing."""
    row = s.get(AppSettings, SETTINGS_ROW_ID)
    if row is None:
        row = AppSettings(
            id=SETTINGS_ROW_ID,
            app_name="Project Management System",
            currency_symbol="₹",
            earning_per_approved_post=Decimal("10.00"),
            minimum_withdrawal_amount=Decimal("500.00"),
            updated_at=datetime.utcnow(),
        )
        s.add(row)
        s.flush()
    return row


def validate_settings_payload(payload: dict) -> list[str]:
    errors: list[str] = []
    if not (payload.get("app_name") or "").strip():
        errors.append("Application name is required.")
    if not (payload.get("currency_symbol") or "").strip():
        errors.append("Currency symbol is required.")
    earning = parse_money(payload.get("earning_per_approved_post"))
    if earning is None or earning < 0:
        errors.append("Earning per approved post must be a non-negative number.")
    return errors


def update_settings(s: "Session", payload: dict, user: "User") -> AppSettings:
    row = get_settings(s)
    before = {
        "app_name": row.app_name,
        "app_logo_url": row.app_logo_url,
        "currency_symbol": row.currency_symbol,
        "earning_per_approved_post": str(row.earning_per_approved_post),
    }
    row.app_name = (payload.get("app_name") or "").strip()
    row.app_logo_url = (payload.get("app_logo_url") or "").strip() or None
    row.currency_symbol = (payload.get("currency_symbol") or "").strip()
    row.earning_per_approved_post = parse_money(payload.get("earning_per_approved_post")) or Decimal("0.00")
    row.updated_at = datetime.utcnow()
    after = {
        "app_name": row.app_name,
        "app_logo_url": row.app_logo_url,
        "currency_symbol": row.currency_symbol,
        "earning_per_approved_post": str(row.earning_per_approved_post),
    }
    record_event(
        s,
        actor=user,
        action="settings.update",
        entity_type="AppSettings",
        entity_id=str(row.id),
        metadata={"before": before, "after": after},
    )
    return row


def set_minimum_withdrawal(s: "Session", raw_amount: str | None, user: "User") -> AppSettings:
    amount = parse_money(raw_amount)
    if amount is None or amount < 0:
        raise ValueError("Minimum withdrawal amount must be a non-negative number.")
    row = get_settings(s)
    old = row.minimum_withdrawal_amount
    row.minimum_withdrawal_amount = amount
    row.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="settings.minimum_withdrawal",
        entity_type="AppSettings",
        entity_id=str(row.id),
        metadata={"old": str(old), "new": str(amount)},
    )
    return row
