from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func

from app.officedesk.audit import record_event
from app.officedesk.modules.catalog.models import Category, Subcategory
from app.officedesk.utils import parse_int, parse_money

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.officedesk.models import User


def _category_name_taken(s: "Session", name: str, exclude_id: int | None = None) -> bool:
    q = s.query(Category.id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    return q.first() is not None


def _subcategory_name_taken(s: "Session", category_id: int, name: str, exclude_id: int | None = None) -> bool:
    q = s.query(Subcategory.id).filter(
        Subcategory.category_id == category_id,
        func.lower(Subcategory.name) == name.lower(),
    )
    if exclude_id is not None:
        q = q.filter(Subcategory.id != exclude_id)
    return q.first() is not None


def _task_count(s: "Session", *, category_id: int | None = None, subcategory_id: int | None = None) -> int:
    from app.officedesk.modules.tasks.models import Task

    q = s.query(func.count(Task.id))
    if category_id is not None:
        q = q.filter(Task.category_id == category_id)
    if subcategory_id is not None:
        q = q.filter(Task.subcategory_id == subcategory_id)
    return int(q.scalar() or 0)


def create_category(s: "Session", payload: dict, user: "User") -> Category:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("Category name is required.")
    if _category_name_taken(s, name):
        raise ValueError("A category with this name already exists.")
    category = Category(name=name, description=(payload.get("description") or "").strip() or None)
    s.add(category)
    s.flush()
    record_event(s, actor=user, action="category.create", entity_type="Category", entity_id=str(category.id), metadata={"name": name})
    return category


def update_category(s: "Session", category: Category, payload: dict, user: "User") -> Category:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("Category name is required.")
    if _category_name_taken(s, name, exclude_id=category.id):
        raise ValueError("A category with this name already exists.")
    before = {"name": category.name, "description": category.description}
    category.name = name
    category.description = (payload.get("description") or "").strip() or None
    record_event(
        s,
        actor=user,
        action="category.update",
        entity_type="Category",
        entity_id=str(category.id),
        metadata={"before": before, "after": {"name": category.name, "description": category.description}},
    )
    return category


def delete_category(s: "Session", category: Category, user: "User") -> None:
    """Delete a category and its subcategories unless tasks still reference it."""
    if _task_count(s, category_id=category.id):
        raise ValueError("Cannot delete category: tasks are still assigned to it.")
    record_event(
        s,
        actor=user,
        action="category.delete",
        entity_type="Category",
        entity_id=str(category.id),
        metadata={"name": category.name, "subcategories": [sub.name for sub in category.subcategories]},
    )
    s.delete(category)


def _validated_subcategory_fields(payload: dict) -> tuple[str, object, str | None]:
    name = (payload.get("name") or "").strip()
    fare = parse_money(payload.get("fare"))
    if not name:
        raise ValueError("Subcategory name is required.")
    if fare is None or fare < 0:
        raise ValueError("Fare must be a non-negative number.")
    return name, fare, (payload.get("description") or "").strip() or None


def create_subcategory(s: "Session", category: Category, payload: dict, user: "User") -> Subcategory:
    name, fare, description = _validated_subcategory_fields(payload)
    if _subcategory_name_taken(s, category.id, name):
        raise ValueError("A subcategory with this name already exists under this category.")
    sub = Subcategory(category_id=category.id, name=name, fare=fare, description=description)
    s.add(sub)
    s.flush()
    record_event(
        s,
        actor=user,
        action="subcategory.create",
        entity_type="Subcategory",
        entity_id=str(sub.id),
        metadata={"category_id": category.id, "name": name, "fare": str(fare)},
    )
    return sub


def update_subcategory(s: "Session", sub: Subcategory, payload: dict, user: "User") -> Subcategory:
    name, fare, description = _validated_subcategory_fields(payload)
    category_id = sub.category_id
    raw_category = (payload.get("category_id") or "").strip()
    if raw_category:
        category_id = parse_int(raw_category)
        if category_id is None or s.get(Category, category_id) is None:
            raise ValueError("Invalid category.")
    if _subcategory_name_taken(s, category_id, name, exclude_id=sub.id):
        raise ValueError("A subcategory with this name already exists under this category.")
    before = {"category_id": sub.category_id, "name": sub.name, "fare": str(sub.fare)}
    sub.category_id = category_id
    sub.name = name
    sub.fare = fare
    sub.description = description
    record_event(
        s,
        actor=user,
        action="subcategory.update",
        entity_type="Subcategory",
        entity_id=str(sub.id),
        metadata={"before": before, "after": {"category_id": category_id, "name": name, "fare": str(fare)}},
    )
    return sub


def delete_subcategory(s: "Session", sub: Subcategory, user: "User") -> None:
    if _task_count(s, subcategory_id=sub.id):
        raise ValueError("Cannot delete subcategory: tasks are still assigned to it.")
    record_event(
        s,
        actor=user,
        action="subcategory.delete",
        entity_type="Subcategory",
        entity_id=str(sub.id),
        metadata={"category_id": sub.category_id, "name": sub.name},
    )
    s.delete(sub)


def subcategories_payload(category: Category) -> list[dict]:
    """JSON-ready subcategory list used by the task forms to fill in the fee."""
    return [{"id": sub.id, "name": sub.name, "fare": str(sub.fare)} for sub in category.subcategories]
