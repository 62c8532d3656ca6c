from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.officedesk.models import Base, User


class RecruitmentPost(Base):
    __tablename__ = "recruitment_posts"
    __table_args__ = (
        Index("idx_recruitment_posts_status", "approval_status"),
        Index("idx_recruitment_posts_submitter", "submitted_by_user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    total_vacancies: Mapped[int] = mapped_column(Integer, nullable=False)
    image_banner_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    eligibility_criteria: Mapped[str | None] = mapped_column(Text, nullable=True)
    selection_process: Mapped[str | None] = mapped_column(Text, nullable=True)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    exam_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    fee_payment_last_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    application_fees: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_wise_vacancies: Mapped[str | None] = mapped_column(Text, nullable=True)

    notification_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    apply_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    admit_card_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    official_website_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    exam_prediction: Mapped[str | None] = mapped_column(Text, nullable=True)
    # [{"heading": ..., "content": ...}, ...]
    custom_fields: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)

    submitted_by_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    approval_status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    approved_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    admin_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    submitted_by: Mapped[User] = relationship("User", foreign_keys=[submitted_by_user_id], lazy="selectin")
    approved_by: Mapped[User | None] = relationship("User", foreign_keys=[approved_by_user_id], lazy="selectin")
