from __future__ import annotations

from flask import Blueprint, abort, flash, jsonify, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.modules.catalog.models import Category, Subcategory
from app.officedesk.modules.catalog.service import (
    create_category,
    create_subcategory,
    delete_category,
    delete_subcategory,
    subcategories_payload,
    update_category,
    update_subcategory,
)
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user

bp = Blueprint("catalog", __name__)


def _category_payload() -> dict:
    return {
        "name": request.form.get("name"),
        "description": request.form.get("description"),
    }


def _subcategory_payload() -> dict:
    return {
        "category_id": request.form.get("category_id"),
        "name": request.form.get("name"),
        "fare": request.form.get("fare"),
        "description": request.form.get("description"),
    }


# ---------- Categories ----------
@bp.get("/admin/categories")
@require_permission("catalog.manage")
def categories_list():
    s = db_session()
    categories = s.query(Category).order_by(Category.name.asc()).all()
    return render_template("admin/catalog/categories.html", categories=categories)


@bp.post("/admin/categories/new")
@require_permission("catalog.manage")
def category_new():
    s = db_session()
    try:
        create_category(s, _category_payload(), current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("catalog.categories_list"))
    s.commit()
    flash("Category added successfully.", "success")
    return redirect(url_for("catalog.categories_list"))


@bp.get("/admin/categories/<int:category_id>/edit")
@require_permission("catalog.manage")
def category_edit_get(category_id: int):
    s = db_session()
    category = s.get(Category, category_id)
    if not category:
        abort(404)
    return render_template("admin/catalog/category_edit.html", category=category)


@bp.post("/admin/categories/<int:category_id>/edit")
@require_permission("catalog.manage")
def category_edit_post(category_id: int):
    s = db_session()
    category = s.get(Category, category_id)
    if not category:
        abort(404)
    try:
        update_category(s, category, _category_payload(), current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("catalog.category_edit_get", category_id=category_id))
    s.commit()
    flash("Category updated successfully.", "success")
    return redirect(url_for("catalog.categories_list"))


@bp.post("/admin/categories/<int:category_id>/delete")
@require_permission("catalog.manage")
def category_delete(category_id: int):
    s = db_session()
    category = s.get(Category, category_id)
    if not category:
        flash("Category not found.", "danger")
        return redirect(url_for("catalog.categories_list"))
    try:
        delete_category(s, category, current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("catalog.categories_list"))
    s.commit()
    flash("Category and its subcategories deleted successfully.", "success")
    return redirect(url_for("catalog.categories_list"))


# ---------- Subcategories ----------
@bp.get("/admin/categories/<int:category_id>/subcategories")
@require_permission("catalog.manage")
def subcategories_list(category_id: int):
    s = db_session()
    category = s.get(Category, category_id)
    if not category:
        abort(404)
    return render_template("admin/catalog/subcategories.html", category=category)


@bp.post("/admin/categories/<int:category_id>/subcategories/new")
@require_permission("catalog.manage")
def subcategory_new(category_id: int):
    s = db_session()
    category = s.get(Category, category_id)
    if not category:
        abort(404)
    try:
        create_subcategory(s, category, _subcategory_payload(), current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("catalog.subcategories_list", category_id=category_id))
    s.commit()
    flash("Subcategory added successfully.", "success")
    return redirect(url_for("catalog.subcategories_list", category_id=category_id))


@bp.get("/admin/subcategories/<int:subcategory_id>/edit")
@require_permission("catalog.manage")
def subcategory_edit_get(subcategory_id: int):
    s = db_session()
    sub = s.get(Subcategory, subcategory_id)
    if not sub:
        abort(404)
    categories = s.query(Category).order_by(Category.name.asc()).all()
    return render_template("admin/catalog/subcategory_edit.html", sub=sub, categories=categories)


@bp.post("/admin/subcategories/<int:subcategory_id>/edit")
@require_permission("catalog.manage")
def subcategory_edit_post(subcategory_id: int):
    s = db_session()
    sub = s.get(Subcategory, subcategory_id)
    if not sub:
        abort(404)
    try:
        update_subcategory(s, sub, _subcategory_payload(), current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("catalog.subcategory_edit_get", subcategory_id=subcategory_id))
    s.commit()
    flash("Subcategory updated successfully.", "success")
    return redirect(url_for("catalog.subcategories_list", category_id=sub.category_id))


@bp.post("/admin/subcategories/<int:subcategory_id>/delete")
@require_permission("catalog.manage")
def subcategory_delete(subcategory_id: int):
    s = db_session()
    sub = s.get(Subcategory, subcategory_id)
    if not sub:
        flash("Subcategory not found.", "danger")
        return redirect(url_for("catalog.categories_list"))
    category_id = sub.category_id
    try:
        delete_subcategory(s, sub, current_user())
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for("catalog.subcategories_list", category_id=category_id))
    s.commit()
    flash("Subcategory deleted successfully.", "success")
    return redirect(url_for("catalog.subcategories_list", category_id=category_id))


@bp.get("/categories/<int:category_id>/subcategories.json")
@require_permission("catalog.view")
def subcategories_json(category_id: int):
    s = db_session()
    category = s.get(Category, category_id)
    if not category:
        return jsonify({"error": "Category not found"}), 404
    return jsonify({"category_id": category.id, "subcategories": subcategories_payload(category)})
