from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy.orm import Query

from app.officedesk.audit import record_event
from app.officedesk.models import User
from app.officedesk.modules.catalog.models import Category, Subcategory
from app.officedesk.modules.clients.models import Client
from app.officedesk.modules.tasks.models import Task
from app.officedesk.rbac import user_has_permission
from app.officedesk.utils import parse_date, parse_int, parse_money

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


VALID_STATUSES = ("pending", "in_process", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid_full", "paid_partial", "refunded")
FEE_MODES = ("online", "cash", "credit_card", "pending")


def completed_at_for(current: datetime | None, new_status: str, now: datetime) -> datetime | None:
    """
    completed_at follows the status: stamped the first time a task becomes
    completed, cleared when it leaves completed, otherwise unchanged.
    """
    if new_status == "completed":
        return current or now
    return None


def _apply_status(task: Task, new_status: str, now: datetime) -> None:
    task.completed_at = completed_at_for(task.completed_at, new_status, now)
    task.status = new_status


def validate_task_payload(s: "Session", payload: dict, *, require_user: bool = True) -> list[str]:
    """Validate a task form. Returns list of errors."""
    errors: list[str] = []
    client_id = parse_int(payload.get("client_id"))
    category_id = parse_int(payload.get("category_id"))
    subcategory_id = parse_int(payload.get("subcategory_id"))
    user_id = parse_int(payload.get("assigned_user_id"))

    if not client_id or s.get(Client, client_id) is None:
        errors.append("Please select a valid client.")
    if require_user and (not user_id or s.get(User, user_id) is None):
        errors.append("Please select a user to assign the task to.")
    if not category_id or s.get(Category, category_id) is None:
        errors.append("Please select a valid category.")
    sub = s.get(Subcategory, subcategory_id) if subcategory_id else None
    if sub is None:
        errors.append("Please select a valid subcategory.")
    elif category_id and sub.category_id != category_id:
        errors.append("Subcategory does not belong to the selected category.")
    if not (payload.get("description") or "").strip():
        errors.append("Work description is required.")
    if parse_date(payload.get("deadline")) is None:
        errors.append("A valid deadline is required.")

    fee = parse_money(payload.get("fee"))
    if fee is None or fee < 0:
        errors.append("Fee must be a non-negative number.")
    if (payload.get("fee_mode") or "") not in FEE_MODES:
        errors.append(f"Invalid fee mode. Must be one of: {', '.join(FEE_MODES)}")
    raw_maintenance = (payload.get("maintenance_fee") or "").strip()
    if raw_maintenance:
        maintenance = parse_money(raw_maintenance)
        if maintenance is None or maintenance < 0:
            errors.append("Maintenance fee must be a non-negative number.")
    maintenance_mode = (payload.get("maintenance_fee_mode") or "pending")
    if maintenance_mode not in FEE_MODES:
        errors.append(f"Invalid maintenance fee mode. Must be one of: {', '.join(FEE_MODES)}")

    status = (payload.get("status") or "").strip()
    if status and status not in VALID_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    payment_status = (payload.get("payment_status") or "").strip()
    if payment_status and payment_status not in PAYMENT_STATUSES:
        errors.append(f"Invalid payment status. Must be one of: {', '.join(PAYMENT_STATUSES)}")
    return errors


def _work_fields(payload: dict) -> dict:
    return {
        "client_id": int(payload["client_id"]),
        "category_id": int(payload["category_id"]),
        "subcategory_id": int(payload["subcategory_id"]),
        "description": (payload.get("description") or "").strip(),
        "deadline": parse_date(payload.get("deadline")),
        "fee": parse_money(payload.get("fee")),
        "fee_mode": payload.get("fee_mode"),
        "maintenance_fee": parse_money(payload.get("maintenance_fee")) or Decimal("0.00"),
        "maintenance_fee_mode": payload.get("maintenance_fee_mode") or "pending",
    }


def _snapshot(task: Task) -> dict:
    return {
        "client_id": task.client_id,
        "assigned_user_id": task.assigned_user_id,
        "category_id": task.category_id,
        "subcategory_id": task.subcategory_id,
        "deadline": str(task.deadline),
        "fee": str(task.fee),
        "maintenance_fee": str(task.maintenance_fee),
        "status": task.status,
        "payment_status": task.payment_status,
    }


def create_task(s: "Session", payload: dict, user: User) -> Task:
    """Admin assignment of a task to any user."""
    now = datetime.utcnow()
    task = Task(
        **_work_fields(payload),
        assigned_user_id=int(payload["assigned_user_id"]),
        payment_status=(payload.get("payment_status") or "pending"),
        admin_notes=(payload.get("admin_notes") or "").strip() or None,
        created_at=now,
        updated_at=now,
    )
    _apply_status(task, (payload.get("status") or "pending"), now)
    s.add(task)
    s.flush()
    record_event(s, actor=user, action="task.create", entity_type="Task", entity_id=str(task.id), metadata=_snapshot(task))
    return task


def update_task(s: "Session", task: Task, payload: dict, user: User) -> Task:
    """Admin edit of every task field."""
    before = _snapshot(task)
    now = datetime.utcnow()
    for field, value in _work_fields(payload).items():
        setattr(task, field, value)
    task.assigned_user_id = int(payload["assigned_user_id"])
    task.payment_status = payload.get("payment_status") or task.payment_status
    task.admin_notes = (payload.get("admin_notes") or "").strip() or None
    task.user_notes = (payload.get("user_notes") or "").strip() or None
    _apply_status(task, payload.get("status") or task.status, now)
    task.updated_at = now
    record_event(
        s,
        actor=user,
        action="task.update",
        entity_type="Task",
        entity_id=str(task.id),
        metadata={"before": before, "after": _snapshot(task)},
    )
    return task


def delete_task(s: "Session", task: Task, user: User) -> None:
    record_event(s, actor=user, action="task.delete", entity_type="Task", entity_id=str(task.id), metadata=_snapshot(task))
    s.delete(task)


def submit_work(s: "Session", payload: dict, user: User) -> Task:
    """
    Staff work entry: assigned to the submitter, pending/pending, and the fee
    must equal the subcategory's fare.
    """
    sub = s.get(Subcategory, int(payload["subcategory_id"]))
    fee = parse_money(payload.get("fee"))
    if sub is None or fee != sub.fare:
        raise ValueError("The entered fee does not match the subcategory's fare. Please refresh the page and try again.")
    now = datetime.utcnow()
    task = Task(
        **_work_fields(payload),
        assigned_user_id=user.id,
        status="pending",
        payment_status="pending",
        user_notes=(payload.get("user_notes") or "").strip() or None,
        created_at=now,
        updated_at=now,
    )
    s.add(task)
    s.flush()
    record_event(s, actor=user, action="task.submit", entity_type="Task", entity_id=str(task.id), metadata=_snapshot(task))
    return task


def get_own_task(s: "Session", task_id: int, user: User) -> Task | None:
    """A user's own task; tasks of other users read as not found."""
    return s.query(Task).filter(Task.id == task_id, Task.assigned_user_id == user.id).one_or_none()


def can_change_payment(user: User) -> bool:
    return user_has_permission(user, "tasks.payment")


def update_own_task(s: "Session", task: Task, payload: dict, user: User) -> Task:
    status = (payload.get("status") or "").strip()
    if not status:
        raise ValueError("Task status is required.")
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")

    before = _snapshot(task)
    if can_change_payment(user):
        payment_status = (payload.get("payment_status") or task.payment_status).strip()
        if payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"Invalid payment status. Must be one of: {', '.join(PAYMENT_STATUSES)}")
        task.payment_status = payment_status

    now = datetime.utcnow()
    _apply_status(task, status, now)
    task.user_notes = (payload.get("user_notes") or "").strip() or None
    task.updated_at = now
    record_event(
        s,
        actor=user,
        action="task.update_own",
        entity_type="Task",
        entity_id=str(task.id),
        metadata={"before": before, "after": _snapshot(task)},
    )
    return task


def can_view_bill(user: User | None, task: Task) -> bool:
    if user is None:
        return False
    if user_has_permission(user, "tasks.bill_any"):
        return True
    return task.assigned_user_id == user.id


def filter_tasks(
    s: "Session",
    *,
    q: str = "",
    status: str = "",
    payment_status: str = "",
    user_id: int | None = None,
) -> Query:
    query = s.query(Task).join(Client, Task.client_id == Client.id)
    if q:
        like = f"%{q}%"
        query = query.filter((Client.client_name.ilike(like)) | (Task.description.ilike(like)))
    if status:
        query = query.filter(Task.status == status)
    if payment_status:
        query = query.filter(Task.payment_status == payment_status)
    if user_id:
        query = query.filter(Task.assigned_user_id == user_id)
    return query
