from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func

from app.officedesk.audit import apply_changes, record_event
from app.officedesk.modules.clients.models import Client
from app.officedesk.utils import is_valid_email

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.officedesk.models import User


VALID_STATUSES = ("Active", "Inactive")
_FIELDS = ("client_name", "contact_person", "email", "phone", "company", "address", "status")


def validate_client_payload(payload: dict) -> list[str]:
    """Validate client creation/update payload. Returns list of errors."""
    errors: list[str] = []
    if not (payload.get("client_name") or "").strip():
        errors.append("Client name is required.")
    email = (payload.get("email") or "").strip()
    if email and not is_valid_email(email):
        errors.append("Please enter a valid email address.")
    status = (payload.get("status") or "").strip()
    if status and status not in VALID_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    return errors


def _name_taken(s: "Session", name: str, exclude_id: int | None = None) -> bool:
    q = s.query(Client.id).filter(func.lower(Client.client_name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Client.id != exclude_id)
    return q.first() is not None


def _clean(payload: dict) -> dict:
    return {
        "client_name": (payload.get("client_name") or "").strip(),
        "contact_person": (payload.get("contact_person") or "").strip() or None,
        "email": (payload.get("email") or "").strip() or None,
        "phone": (payload.get("phone") or "").strip() or None,
        "company": (payload.get("company") or "").strip() or None,
        "address": (payload.get("address") or "").strip() or None,
        "status": (payload.get("status") or "").strip() or "Active",
    }


def search_clients(s: "Session", *, q: str = "", status: str = "") -> "Query":
    query = s.query(Client)
    if q:
        like = f"%{q}%"
        query = query.filter(
            (Client.client_name.ilike(like))
            | (Client.contact_person.ilike(like))
            | (Client.company.ilike(like))
            | (Client.email.ilike(like))
        )
    if status:
        query = query.filter(Client.status == status)
    return query.order_by(Client.client_name.asc())


def create_client(s: "Session", payload: dict, user: "User") -> Client:
    data = _clean(payload)
    if _name_taken(s, data["client_name"]):
        raise ValueError("A client with this name already exists.")
    client = Client(**data, submitted_by_user_id=user.id, created_at=datetime.utcnow())
    s.add(client)
    s.flush()
    record_event(
        s,
        actor=user,
        action="client.create",
        entity_type="Client",
        entity_id=str(client.id),
        metadata={"client_name": client.client_name, "status": client.status},
    )
    return client


def update_client(s: "Session", client: Client, payload: dict, user: "User") -> Client:
    data = _clean(payload)
    if _name_taken(s, data["client_name"], exclude_id=client.id):
        raise ValueError("A client with this name already exists.")
    changes = apply_changes(client, {field: data[field] for field in _FIELDS})
    if changes:
        record_event(
            s,
            actor=user,
            action="client.update",
            entity_type="Client",
            entity_id=str(client.id),
            metadata={"changes": changes},
        )
    return client


def delete_client(s: "Session", client: Client, user: "User") -> None:
    from app.officedesk.modules.tasks.models import Task

    in_use = s.query(func.count(Task.id)).filter(Task.client_id == client.id).scalar() or 0
    if in_use:
        raise ValueError("Cannot delete client: tasks are still linked to it.")
    record_event(
        s,
        actor=user,
        action="client.delete",
        entity_type="Client",
        entity_id=str(client.id),
        metadata={"client_name": client.client_name},
    )
    s.delete(client)
