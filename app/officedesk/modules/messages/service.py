from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import and_, func, or_, update

from app.officedesk.audit import record_event
from app.officedesk.models import User
from app.officedesk.modules.messages.models import Message

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def unread_count(s: "Session", user_id: int) -> int:
    return int(
        s.query(func.count(Message.id))
        .filter(Message.receiver_id == user_id, Message.read_status.is_(False))
        .scalar()
        or 0
    )


def mark_read(s: "Session", user_id: int, *, sender_id: int | None = None) -> int:
    """Mark messages to ``user_id`` as read (optionally only those from ``sender_id``)."""
    stmt = (
        update(Message)
        .where(Message.receiver_id == user_id, Message.read_status.is_(False))
        .values(read_status=True, read_at=datetime.utcnow())
    )
    if sender_id is not None:
        stmt = stmt.where(Message.sender_id == sender_id)
    result = s.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount or 0


def contacts_for(s: "Session", user: User) -> list[dict]:
    """Every other active user, with the count of their unread messages to me."""
    unread_rows = (
        s.query(Message.sender_id, func.count(Message.id))
        .filter(Message.receiver_id == user.id, Message.read_status.is_(False))
        .group_by(Message.sender_id)
        .all()
    )
    unread_by_sender = {int(sid): int(cnt or 0) for sid, cnt in unread_rows}
    users = (
        s.query(User)
        .filter(User.id != user.id, User.is_active.is_(True))
        .order_by(User.name.asc())
        .all()
    )
    return [{"user": u, "unread": unread_by_sender.get(u.id, 0)} for u in users]


def conversation(s: "Session", user_id: int, other_id: int) -> list[Message]:
    return (
        s.query(Message)
        .filter(
            or_(
                and_(Message.sender_id == user_id, Message.receiver_id == other_id),
                and_(Message.sender_id == other_id, Message.receiver_id == user_id),
            )
        )
        .order_by(Message.sent_at.asc(), Message.id.asc())
        .all()
    )


def send_message(s: "Session", sender: User, receiver_id: int | None, text: str | None) -> Message:
    text = (text or "").strip()
    if not text:
        raise ValueError("Message cannot be empty.")
    if not receiver_id:
        raise ValueError("Please select a recipient.")
    if receiver_id == sender.id:
        raise ValueError("You cannot send a message to yourself.")
    receiver = s.get(User, receiver_id)
    if receiver is None or not receiver.is_active:
        raise ValueError("Recipient not found.")
    msg = Message(sender_id=sender.id, receiver_id=receiver.id, message_text=text, sent_at=datetime.utcnow(), read_status=False)
    s.add(msg)
    s.flush()
    record_event(
        s,
        actor=sender,
        action="message.send",
        entity_type="Message",
        entity_id=str(msg.id),
        metadata={"receiver_id": receiver.id},
    )
    return msg
