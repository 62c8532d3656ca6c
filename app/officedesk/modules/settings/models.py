from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.officedesk.models import Base

SETTINGS_ROW_ID = 1


class AppSettings(Base):
    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    app_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Project Management System")
    app_logo_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    currency_symbol: Mapped[str] = mapped_column(String(16), nullable=False, default="₹")
    earning_per_approved_post: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=Decimal("10.00")
    )
    minimum_withdrawal_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=Decimal("500.00")
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
