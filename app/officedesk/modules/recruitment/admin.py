from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.modules.recruitment.models import RecruitmentPost
from app.officedesk.modules.recruitment.service import (
    APPROVAL_STATUSES,
    REVIEW_STATUSES,
    can_edit,
    create_post,
    delete_post,
    parse_custom_fields,
    posts_query,
    set_post_status,
    update_post,
    validate_post_payload,
)
from app.officedesk.rbac import NotAllowed, require_permission
from app.officedesk.utils import current_user, parse_int, parse_page

bp = Blueprint("recruitment", __name__)


def _payload() -> dict:
    payload = {
        key: request.form.get(key)
        for key in (
            "job_title",
            "total_vacancies",
            "image_banner_url",
            "eligibility_criteria",
            "selection_process",
            "start_date",
            "last_date",
            "exam_date",
            "fee_payment_last_date",
            "application_fees",
            "category_wise_vacancies",
            "notification_url",
            "apply_url",
            "admit_card_url",
            "official_website_url",
            "exam_prediction",
        )
    }
    payload["custom_fields"] = parse_custom_fields(
        request.form.getlist("custom_heading[]") or request.form.getlist("custom_heading"),
        request.form.getlist("custom_content[]") or request.form.getlist("custom_content"),
    )
    return payload


# ---------- Data entry operator ----------
@bp.get("/recruitment/posts")
@require_permission("recruitment.submit")
def my_posts():
    s = db_session()
    u = current_user()
    status = (request.args.get("status") or "").strip()
    posts = posts_query(s, status=status, user_id=u.id).all()
    return render_template("recruitment/my_posts.html", posts=posts, status=status, statuses=APPROVAL_STATUSES)


@bp.get("/recruitment/posts/new")
@require_permission("recruitment.submit")
def new_get():
    return render_template("recruitment/form.html", post=None, form={})


@bp.post("/recruitment/posts/new")
@require_permission("recruitment.submit")
def new_post():
    s = db_session()
    payload = _payload()
    errors = validate_post_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return render_template("recruitment/form.html", post=None, form=payload), 400
    create_post(s, payload, current_user())
    s.commit()
    flash("Recruitment post submitted for review.", "success")
    return redirect(url_for("recruitment.my_posts"))


def _own_post_or_404(s, post_id: int) -> RecruitmentPost:
    post = s.get(RecruitmentPost, post_id)
    if not post or post.submitted_by_user_id != current_user().id:
        abort(404)
    return post


@bp.get("/recruitment/posts/<int:post_id>/edit")
@require_permission("recruitment.submit")
def edit_get(post_id: int):
    s = db_session()
    post = _own_post_or_404(s, post_id)
    if not can_edit(post, current_user()):
        flash("This post can no longer be edited.", "warning")
        return redirect(url_for("recruitment.my_posts"))
    return render_template("recruitment/form.html", post=post, form={})


@bp.post("/recruitment/posts/<int:post_id>/edit")
@require_permission("recruitment.submit")
def edit_post(post_id: int):
    s = db_session()
    post = _own_post_or_404(s, post_id)
    payload = _payload()
    errors = validate_post_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("recruitment.edit_get", post_id=post_id))
    try:
        update_post(s, post, payload, current_user())
    except NotAllowed:
        abort(404)
    except ValueError as e:
        flash(str(e), "warning")
        return redirect(url_for("recruitment.my_posts"))
    s.commit()
    flash("Recruitment post updated and resubmitted for review.", "success")
    return redirect(url_for("recruitment.my_posts"))


@bp.get("/recruitment/poster")
@require_permission("posters.generate")
def poster():
    s = db_session()
    u = current_user()
    posts = posts_query(s, user_id=u.id).all()
    post_id = parse_int(request.args.get("post_id"))
    selected = None
    if post_id:
        selected = next((p for p in posts if p.id == post_id), None)
        if selected is None:
            flash("Post not found.", "warning")
    return render_template("recruitment/poster.html", posts=posts, post=selected)


# ---------- Admin review ----------
@bp.get("/admin/recruitment/posts")
@require_permission("recruitment.review")
def admin_posts():
    s = db_session()
    status = (request.args.get("status") or "").strip()
    q = (request.args.get("search") or request.args.get("q") or "").strip()
    page = parse_page(request.args.get("page"))
    per_page = 25
    query = posts_query(s, status=status, q=q)
    total = query.count()
    posts = query.offset((page - 1) * per_page).limit(per_page).all()
    return render_template(
        "recruitment/admin_list.html",
        posts=posts,
        status=status,
        q=q,
        statuses=APPROVAL_STATUSES,
        review_statuses=REVIEW_STATUSES,
        page=page,
        total=total,
        has_prev=page > 1,
        has_next=page * per_page < total,
    )


@bp.get("/admin/recruitment/posts/<int:post_id>")
@require_permission("recruitment.review")
def admin_post_detail(post_id: int):
    s = db_session()
    post = s.get(RecruitmentPost, post_id)
    if not post:
        abort(404)
    return render_template("recruitment/admin_detail.html", post=post, review_statuses=REVIEW_STATUSES)


@bp.post("/admin/recruitment/posts/<int:post_id>/status")
@require_permission("recruitment.review")
def admin_set_status(post_id: int):
    s = db_session()
    post = s.get(RecruitmentPost, post_id)
    if not post:
        flash("Post not found.", "danger")
        return redirect(url_for("recruitment.admin_posts"))
    try:
        set_post_status(s, post, request.form.get("status") or "", current_user(), request.form.get("admin_comments"))
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("recruitment.admin_post_detail", post_id=post_id))
    s.commit()
    flash(f"Post status updated to {post.approval_status.replace('_', ' ')}.", "success")
    return redirect(url_for("recruitment.admin_posts"))


@bp.post("/admin/recruitment/posts/<int:post_id>/delete")
@require_permission("recruitment.review")
def admin_delete(post_id: int):
    s = db_session()
    post = s.get(RecruitmentPost, post_id)
    if not post:
        flash("Post not found.", "danger")
        return redirect(url_for("recruitment.admin_posts"))
    delete_post(s, post, current_user())
    s.commit()
    flash("Post deleted.", "success")
    return redirect(url_for("recruitment.admin_posts"))
