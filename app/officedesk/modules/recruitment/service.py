from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func

from app.officedesk.audit import record_event
from app.officedesk.modules.recruitment.models import RecruitmentPost
from app.officedesk.rbac import NotAllowed
from app.officedesk.utils import parse_date, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.officedesk.models import User


APPROVAL_STATUSES = ("pending", "approved", "rejected", "returned_for_edit")
REVIEW_STATUSES = ("approved", "rejected", "returned_for_edit")
EDITABLE_STATUSES = ("pending", "returned_for_edit")

_TEXT_FIELDS = (
    "job_title",
    "image_banner_url",
    "eligibility_criteria",
    "selection_process",
    "application_fees",
    "category_wise_vacancies",
    "notification_url",
    "apply_url",
    "admit_card_url",
    "official_website_url",
    "exam_prediction",
)
_DATE_FIELDS = ("start_date", "last_date", "exam_date", "fee_payment_last_date")


def parse_custom_fields(headings: list[str], contents: list[str]) -> list[dict]:
    """Pair heading/content rows; rows where both are blank are dropped."""
    fields: list[dict] = []
    for i in range(max(len(headings), len(contents))):
        heading = (headings[i] if i < len(headings) else "").strip()
        content = (contents[i] if i < len(contents) else "").strip()
        if heading or content:
            fields.append({"heading": heading, "content": content})
    return fields


def validate_post_payload(payload: dict) -> list[str]:
    errors: list[str] = []
    if not (payload.get("job_title") or "").strip():
        errors.append("Job title is required.")
    vacancies = parse_int(payload.get("total_vacancies")) or 0
    if vacancies <= 0:
        errors.append("Total vacancies must be a positive whole number.")
    for field in _DATE_FIELDS:
        value = (payload.get(field) or "").strip()
        if value and parse_date(value) is None:
            errors.append(f"Invalid date for {field.replace('_', ' ')}.")
    return errors


def _apply_fields(post: RecruitmentPost, payload: dict) -> None:
    for field in _TEXT_FIELDS:
        setattr(post, field, (payload.get(field) or "").strip() or None)
    post.job_title = (payload.get("job_title") or "").strip()
    post.total_vacancies = parse_int(payload.get("total_vacancies")) or 0
    for field in _DATE_FIELDS:
        setattr(post, field, parse_date(payload.get(field)))
    post.custom_fields = list(payload.get("custom_fields") or [])


def create_post(s: "Session", payload: dict, user: "User") -> RecruitmentPost:
    now = datetime.utcnow()
    post = RecruitmentPost(submitted_by_user_id=user.id, approval_status="pending", created_at=now, updated_at=now)
    _apply_fields(post, payload)
    s.add(post)
    s.flush()
    record_event(
        s,
        actor=user,
        action="recruitment_post.create",
        entity_type="RecruitmentPost",
        entity_id=str(post.id),
        metadata={"job_title": post.job_title, "total_vacancies": post.total_vacancies},
    )
    return post


def can_edit(post: RecruitmentPost, user: "User") -> bool:
    return post.submitted_by_user_id == user.id and post.approval_status in EDITABLE_STATUSES


def update_post(s: "Session", post: RecruitmentPost, payload: dict, user: "User") -> RecruitmentPost:
    """
    Operator edit. Only the submitter may edit, only while pending or returned
    for edit; saving sends the post back to review.
    """
    if post.submitted_by_user_id != user.id:
        raise NotAllowed("You can only edit your own posts.")
    if post.approval_status not in EDITABLE_STATUSES:
        raise ValueError("This post can no longer be edited.")
    old_status = post.approval_status
    _apply_fields(post, payload)
    post.approval_status = "pending"
    post.approved_by_user_id = None
    post.approved_at = None
    post.admin_comments = None
    post.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="recruitment_post.update",
        entity_type="RecruitmentPost",
        entity_id=str(post.id),
        metadata={"from_status": old_status, "job_title": post.job_title},
    )
    return post


def set_post_status(
    s: "Session",
    post: RecruitmentPost,
    status: str,
    user: "User",
    comments: str | None = None,
) -> RecruitmentPost:
    status = (status or "").strip()
    comments = (comments or "").strip() or None
    if status not in REVIEW_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(REVIEW_STATUSES)}")
    if status == "returned_for_edit" and not comments:
        raise ValueError("Comments are required when returning a post for edit.")
    old_status = post.approval_status
    now = datetime.utcnow()
    post.approval_status = status
    post.approved_by_user_id = user.id
    post.approved_at = now
    post.admin_comments = comments
    post.updated_at = now
    record_event(
        s,
        actor=user,
        action="recruitment_post.status",
        entity_type="RecruitmentPost",
        entity_id=str(post.id),
        reason=comments,
        metadata={"from": old_status, "to": status},
    )
    return post


def delete_post(s: "Session", post: RecruitmentPost, user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="recruitment_post.delete",
        entity_type="RecruitmentPost",
        entity_id=str(post.id),
        metadata={"job_title": post.job_title, "status": post.approval_status, "submitted_by": post.submitted_by_user_id},
    )
    s.delete(post)


def posts_query(s: "Session", *, status: str = "", user_id: int | None = None, q: str = "") -> "Query":
    query = s.query(RecruitmentPost)
    if user_id is not None:
        query = query.filter(RecruitmentPost.submitted_by_user_id == user_id)
    if status and status != "all":
        query = query.filter(RecruitmentPost.approval_status == status)
    if q:
        query = query.filter(RecruitmentPost.job_title.ilike(f"%{q}%"))
    return query.order_by(RecruitmentPost.created_at.desc(), RecruitmentPost.id.desc())


def post_counts_by_status(s: "Session", user_id: int | None = None) -> dict[str, int]:
    query = s.query(RecruitmentPost.approval_status, func.count(RecruitmentPost.id))
    if user_id is not None:
        query = query.filter(RecruitmentPost.submitted_by_user_id == user_id)
    rows = query.group_by(RecruitmentPost.approval_status).all()
    counts = {status: 0 for status in APPROVAL_STATUSES}
    for status, cnt in rows:
        counts[status] = int(cnt or 0)
    return counts
