from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.officedesk.models import Base, User


class Withdrawal(Base):
    __tablename__ = "withdrawal_requests"
    __table_args__ = (
        Index("idx_withdrawal_requests_status", "status"),
        Index("idx_withdrawal_requests_deo", "deo_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    deo_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    request_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")

    # Payout details snapshot at request time (or as resubmitted on request)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    account_holder_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    account_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ifsc_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    upi_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    transaction_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    admin_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_by_admin_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    deo: Mapped[User] = relationship("User", foreign_keys=[deo_id], lazy="selectin")
    processed_by: Mapped[User | None] = relationship("User", foreign_keys=[processed_by_admin_id], lazy="selectin")
