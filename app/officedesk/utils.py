from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from flask import g
from werkzeug.routing import IntegerConverter

from app.officedesk.models import User

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Integer and Numeric(10, 2) column limits.
MAX_DB_INT = 2**31 - 1
MONEY_LIMIT = Decimal("100000000")


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def is_valid_email(value: str | None) -> bool:
    return bool(value and EMAIL_RE.match(value))


def parse_money(raw: str | None) -> Decimal | None:
    """Parse a form amount; None for blank, non-numeric or out-of-range input."""
    raw = (raw or "").strip().replace(",", "")
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return None
    if not value.is_finite() or abs(value) >= MONEY_LIMIT:
        return None
    try:
        return value.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


def parse_date(raw: str | None) -> date | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def parse_int(raw: str | None) -> int | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    if abs(value) > MAX_DB_INT:
        return None
    return value


def parse_page(raw: str | None) -> int:
    page = parse_int(raw) or 1
    return max(page, 1)


def blank_to_none(raw: str | None) -> str | None:
    raw = (raw or "").strip()
    return raw or None


class BoundedIntConverter(IntegerConverter):
    """`<int:...>` URL converter that stops at the database integer range; larger ids 404."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_DB_INT)
        super().__init__(map, *args, **kwargs)
