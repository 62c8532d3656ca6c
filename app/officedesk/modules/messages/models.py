from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.officedesk.models import Base, User


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_receiver_read", "receiver_id", "read_status"),
        Index("idx_messages_pair", "sender_id", "receiver_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message_text: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    read_status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    receiver: Mapped[User] = relationship("User", foreign_keys=[receiver_id], lazy="selectin")
