from decimal import Decimal

from app.officedesk.db import session_scope
from app.officedesk.models import User
from app.officedesk.modules.catalog.models import Category, Subcategory


def test_categories_page(client, login, work):
    login()
    r = client.get("/admin/categories")
    assert r.status_code == 200
    assert b"Categories" in r.data
    assert b"Web" in r.data


def test_create_category_and_duplicate(client, login, post, app):
    login()
    r = post("/admin/categories/new", data={"name": "Design", "description": "Logos"}, follow_redirects=True)
    assert b"Category added successfully." in r.data
    r = post("/admin/categories/new", data={"name": "design"}, follow_redirects=True)
    assert b"A category with this name already exists." in r.data
    with session_scope(app) as s:
        assert s.query(Category).count() == 1


def test_subcategory_fare_validation(client, login, post, work, app):
    login()
    url = f"/admin/categories/{work['category_id']}/subcategories/new"
    r = post(url, data={"name": "Logo", "fare": "-5"}, follow_redirects=True)
    assert b"Fare must be a non-negative number." in r.data

    r = post(url, data={"name": "Logo", "fare": "2,500.50"}, follow_redirects=True)
    assert b"Subcategory added successfully." in r.data
    with session_scope(app) as s:
        sub = s.query(Subcategory).filter(Subcategory.name == "Logo").one()
        assert sub.fare == Decimal("2500.50")


def test_subcategory_name_unique_per_category(client, login, post, work):
    login()
    url = f"/admin/categories/{work['category_id']}/subcategories/new"
    r = post(url, data={"name": "landing page", "fare": "10"}, follow_redirects=True)
    assert b"already exists under this category" in r.data


def test_subcategories_json(client, login, make_user, work):
    make_user("sales", "sam@example.com")
    login("sam@example.com")
    r = client.get(f"/categories/{work['category_id']}/subcategories.json")
    assert r.status_code == 200
    assert r.json["subcategories"] == [{"id": work["subcategory_id"], "name": "Landing page", "fare": "1500.00"}]
    assert client.get("/categories/999/subcategories.json").status_code == 404


def test_move_subcategory(client, login, post, work, app):
    with session_scope(app) as s:
        other = Category(name="Print")
        s.add(other)
        s.flush()
        other_id = other.id
    login()
    r = post(
        f"/admin/subcategories/{work['subcategory_id']}/edit",
        data={"category_id": str(other_id), "name": "Landing page", "fare": "1200"},
    )
    assert r.status_code == 302
    with session_scope(app) as s:
        sub = s.get(Subcategory, work["subcategory_id"])
        assert sub.category_id == other_id
        assert sub.fare == Decimal("1200.00")


def test_delete_category_blocked_by_tasks(client, login, post, work, make_task, app):
    with session_scope(app) as s:
        admin_id = s.query(User.id).filter(User.email == "admin@example.com").scalar()
    make_task(admin_id)
    login()
    r = post(f"/admin/categories/{work['category_id']}/delete", follow_redirects=True)
    assert b"Cannot delete category" in r.data
    r = post(f"/admin/subcategories/{work['subcategory_id']}/delete", follow_redirects=True)
    assert b"Cannot delete subcategory" in r.data


def test_delete_category_removes_subcategories(client, login, post, work, app):
    login()
    r = post(f"/admin/categories/{work['category_id']}/delete", follow_redirects=True)
    assert b"Category and its subcategories deleted successfully." in r.data
    with session_scope(app) as s:
        assert s.query(Category).count() == 0
        assert s.query(Subcategory).count() == 0


def test_catalog_admin_only(client, login, make_user):
    make_user("manager", "mia@example.com")
    login("mia@example.com")
    assert client.get("/admin/categories").status_code == 403
