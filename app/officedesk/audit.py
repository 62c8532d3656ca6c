import json
from typing import Any

from flask import g, has_request_context, request
from sqlalchemy.orm import Session

from app.officedesk.models import AuditEvent, User


def _request_origin() -> tuple[str | None, str | None]:
    if not has_request_context():
        return None, None
    return getattr(g, "request_id", None), request.remote_addr


def _dump(metadata: dict[str, Any] | None) -> str | None:
    if not metadata:
        return None
    # Decimal and date values are stored as their string form.
    return json.dumps(metadata, sort_keys=True, default=str)


def apply_changes(obj: Any, values: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """
    Set each attribute that differs and return ``{field: {"old", "new"}}``
    for the audit record. Unchanged fields are left alone.
    """
    changes: dict[str, dict[str, Any]] = {}
    for field, new in values.items():
        old = getattr(obj, field)
        if old != new:
            changes[field] = {"old": old, "new": new}
            setattr(obj, field, new)
    return changes


def record_event(
    s: Session,
    *,
    actor: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | int | None = None,
    reason: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """Append an audit event to the session. The caller commits."""
    rid, client_ip = _request_origin()
    ev = AuditEvent(
        request_id=request_id or rid,
        actor_user_id=actor.id if actor else None,
        actor_user_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=None if entity_id is None else str(entity_id),
        reason=reason,
        metadata_json=_dump(metadata),
        client_ip=client_ip,
    )
    s.add(ev)
    return ev
