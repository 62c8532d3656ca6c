from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func

from app.officedesk.audit import record_event
from app.officedesk.modules.recruitment.models import RecruitmentPost
from app.officedesk.modules.settings.service import get_settings
from app.officedesk.modules.withdrawals.models import Withdrawal
from app.officedesk.rbac import NotAllowed
from app.officedesk.utils import parse_money

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.officedesk.models import User


WITHDRAWAL_STATUSES = ("pending", "processing", "details_requested", "paid", "rejected")
OPEN_STATUSES = ("pending", "processing", "details_requested")
TERMINAL_STATUSES = ("paid", "rejected")
BANK_FIELDS = ("bank_name", "account_holder_name", "account_number", "ifsc_code", "upi_id")
REQUIRED_BANK_FIELDS = ("bank_name", "account_holder_name", "account_number", "ifsc_code")


@dataclass(frozen=True)
class Balance:
    approved_posts: int
    earning_per_post: Decimal
    earnings: Decimal
    paid_total: Decimal

    @property
    def available(self) -> Decimal:
        return self.earnings - self.paid_total


def compute_balance(approved_posts: int, earning_per_post: Decimal, paid_total: Decimal) -> Balance:
    return Balance(
        approved_posts=approved_posts,
        earning_per_post=earning_per_post,
        earnings=Decimal(approved_posts) * earning_per_post,
        paid_total=paid_total,
    )


def deo_balance(s: "Session", user_id: int) -> Balance:
    approved = (
        s.query(func.count(RecruitmentPost.id))
        .filter(RecruitmentPost.submitted_by_user_id == user_id, RecruitmentPost.approval_status == "approved")
        .scalar()
        or 0
    )
    paid = (
        s.query(func.coalesce(func.sum(Withdrawal.amount), 0))
        .filter(Withdrawal.deo_id == user_id, Withdrawal.status == "paid")
        .scalar()
    )
    settings = get_settings(s)
    return compute_balance(int(approved), Decimal(settings.earning_per_approved_post), Decimal(str(paid or 0)))


def _clean_bank_payload(payload: dict) -> dict:
    data = {field: (payload.get(field) or "").strip() or None for field in BANK_FIELDS}
    if any(not data[field] for field in REQUIRED_BANK_FIELDS):
        raise ValueError("Please fill in all required bank details. UPI ID is optional.")
    return data


def save_bank_details(s: "Session", user: "User", payload: dict) -> "User":
    data = _clean_bank_payload(payload)
    for field, value in data.items():
        setattr(user, field, value)
    record_event(
        s,
        actor=user,
        action="bank_details.update",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"bank_name": data["bank_name"], "account_last4": (data["account_number"] or "")[-4:]},
    )
    return user


def open_request_for(s: "Session", user_id: int) -> Withdrawal | None:
    return (
        s.query(Withdrawal)
        .filter(Withdrawal.deo_id == user_id, Withdrawal.status.in_(OPEN_STATUSES))
        .order_by(Withdrawal.request_date.desc())
        .first()
    )


def request_withdrawal(s: "Session", user: "User", raw_amount: str | None) -> Withdrawal:
    """
    Checks run in a fixed order: bank details, positive amount, minimum,
    available balance, no other open request.
    """
    settings = get_settings(s)
    symbol = settings.currency_symbol
    if not user.has_bank_details:
        raise ValueError('Please save your bank details in "My Bank Details" before requesting a withdrawal.')
    amount = parse_money(raw_amount)
    if amount is None or amount <= 0:
        raise ValueError("Please enter a valid positive amount for withdrawal.")
    minimum = Decimal(settings.minimum_withdrawal_amount)
    if amount < minimum:
        raise ValueError(f"Minimum withdrawal amount is {symbol}{minimum:,.2f}.")
    balance = deo_balance(s, user.id)
    if amount > balance.available:
        raise ValueError(
            f"Requested amount {symbol}{amount:,.2f} exceeds your available balance of {symbol}{balance.available:,.2f}."
        )
    if open_request_for(s, user.id) is not None:
        raise ValueError("You already have a pending, processing, or details requested withdrawal. Please wait for it to be processed.")

    w = Withdrawal(
        deo_id=user.id,
        amount=amount,
        request_date=datetime.utcnow(),
        status="pending",
        **{field: getattr(user, field) for field in BANK_FIELDS},
    )
    s.add(w)
    s.flush()
    record_event(
        s,
        actor=user,
        action="withdrawal.request",
        entity_type="Withdrawal",
        entity_id=str(w.id),
        metadata={"amount": str(amount), "available": str(balance.available)},
    )
    return w


def submit_payment_details(s: "Session", user: "User", w: Withdrawal, payload: dict) -> Withdrawal:
    """Operator answers a details request; the request moves to processing."""
    if w.deo_id != user.id:
        raise NotAllowed("Invalid request or not authorized to update details.")
    if w.status != "details_requested":
        raise ValueError("Payment details were not requested for this withdrawal.")
    data = _clean_bank_payload(payload)
    for field, value in data.items():
        setattr(w, field, value)
    w.status = "processing"
    record_event(
        s,
        actor=user,
        action="withdrawal.details_submitted",
        entity_type="Withdrawal",
        entity_id=str(w.id),
        metadata={"bank_name": data["bank_name"]},
    )
    return w


def update_withdrawal_status(
    s: "Session",
    w: Withdrawal,
    status: str,
    admin: "User",
    *,
    transaction_number: str | None = None,
    comments: str | None = None,
) -> Withdrawal:
    status = (status or "").strip()
    transaction_number = (transaction_number or "").strip() or None
    comments = (comments or "").strip() or None
    if status not in WITHDRAWAL_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(WITHDRAWAL_STATUSES)}")
    if w.status in TERMINAL_STATUSES:
        raise ValueError(f"Withdrawal is already {w.status} and cannot be changed.")
    if status == "paid" and not transaction_number:
        raise ValueError("Transaction number is required when marking a withdrawal as paid.")
    if status in ("rejected", "details_requested") and not comments:
        raise ValueError("Comments are required when rejecting or requesting details.")

    old_status = w.status
    w.status = status
    w.transaction_number = transaction_number if status == "paid" else w.transaction_number
    w.admin_comments = comments
    w.processed_by_admin_id = admin.id
    w.processed_at = datetime.utcnow()
    record_event(
        s,
        actor=admin,
        action="withdrawal.status",
        entity_type="Withdrawal",
        entity_id=str(w.id),
        reason=comments,
        metadata={"from": old_status, "to": status, "transaction_number": transaction_number, "amount": str(w.amount)},
    )
    return w


def withdrawals_query(s: "Session", *, status: str = "", deo_id: int | None = None) -> "Query":
    query = s.query(Withdrawal)
    if deo_id is not None:
        query = query.filter(Withdrawal.deo_id == deo_id)
    if status and status != "all":
        query = query.filter(Withdrawal.status == status)
    return query.order_by(Withdrawal.request_date.desc(), Withdrawal.id.desc())


def count_by_status(s: "Session", deo_id: int | None = None) -> dict[str, int]:
    query = s.query(Withdrawal.status, func.count(Withdrawal.id))
    if deo_id is not None:
        query = query.filter(Withdrawal.deo_id == deo_id)
    counts = {status: 0 for status in WITHDRAWAL_STATUSES}
    for status, cnt in query.group_by(Withdrawal.status).all():
        counts[status] = int(cnt or 0)
    return counts
