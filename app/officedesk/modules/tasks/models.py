from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.officedesk.models import Base, User
from app.officedesk.modules.catalog.models import Category, Subcategory
from app.officedesk.modules.clients.models import Client


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_payment_status", "payment_status"),
        Index("idx_tasks_assigned_user", "assigned_user_id"),
        Index("idx_tasks_completed_at", "completed_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    assigned_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False)
    subcategory_id: Mapped[int] = mapped_column(ForeignKey("subcategories.id", ondelete="RESTRICT"), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)
    deadline: Mapped[date] = mapped_column(Date, nullable=False)

    fee: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False, default=Decimal("0.00"))
    fee_mode: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    maintenance_fee: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False, default=Decimal("0.00"))
    maintenance_fee_mode: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")

    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    payment_status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")

    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    client: Mapped[Client] = relationship("Client", lazy="selectin")
    assigned_user: Mapped[User] = relationship("User", lazy="selectin")
    category: Mapped[Category] = relationship("Category", lazy="selectin")
    subcategory: Mapped[Subcategory] = relationship("Subcategory", lazy="selectin")

    @property
    def subtotal(self) -> Decimal:
        return (self.fee or Decimal("0")) + (self.maintenance_fee or Decimal("0"))

    @property
    def net_revenue(self) -> Decimal:
        return (self.fee or Decimal("0")) - (self.maintenance_fee or Decimal("0"))
