"""
Central constants for the Office Desk application: roles, permission keys,
the role -> permission grants and the legacy ``?page=`` map.
"""
from __future__ import annotations

from typing import NamedTuple

ADMIN_ROLE = "admin"
DEO_ROLE = "data_entry_operator"
STAFF_ROLES = ("manager", "coordinator", "sales", "assistant", "accountant")
ALL_ROLES = (ADMIN_ROLE, *STAFF_ROLES, DEO_ROLE)

ROLE_NAMES = {
    "admin": "Administrator",
    "manager": "Manager",
    "coordinator": "Coordinator",
    "sales": "Sales",
    "assistant": "Assistant",
    "accountant": "Accountant",
    "data_entry_operator": "Data Entry Operator",
}

PERMISSIONS = {
    "admin.view": "Admin: dashboard",
    "users.manage": "Users: manage",
    "audit.view": "Audit trail: view",
    "settings.manage": "Settings: manage",
    "catalog.manage": "Categories: manage",
    "catalog.view": "Categories: view fares",
    "clients.view": "Clients: view",
    "clients.edit": "Clients: add/edit",
    "clients.delete": "Clients: delete",
    "tasks.manage": "Tasks: manage all",
    "tasks.own": "Tasks: view own",
    "tasks.submit": "Tasks: submit work",
    "tasks.update_own": "Tasks: update own",
    "tasks.payment": "Tasks: change payment status",
    "tasks.bill": "Tasks: print own bill",
    "tasks.bill_any": "Tasks: print any bill",
    "expenses.manage": "Expenses: manage",
    "messages.use": "Messages: use",
    "recruitment.submit": "Recruitment: submit posts",
    "recruitment.review": "Recruitment: review posts",
    "posters.generate": "Recruitment: generate posters",
    "withdrawals.request": "Withdrawals: request",
    "withdrawals.manage": "Withdrawals: manage",
    "reports.view": "Reports: view/export",
    "dashboard.staff": "Dashboard: staff",
    "dashboard.deo": "Dashboard: data entry",
}

_COMMON = frozenset({"clients.view", "messages.use", "tasks.bill", "catalog.view"})

_ADMIN_PERMS = frozenset(PERMISSIONS) - {
    "tasks.own",
    "tasks.submit",
    "tasks.update_own",
    "recruitment.submit",
    "posters.generate",
    "withdrawals.request",
    "dashboard.staff",
    "dashboard.deo",
}

_STAFF_PERMS = _COMMON | {"tasks.own", "tasks.submit", "tasks.update_own", "dashboard.staff"}

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ADMIN_ROLE: _ADMIN_PERMS,
    "manager": _STAFF_PERMS | {"clients.edit", "tasks.payment", "tasks.bill_any"},
    "coordinator": _STAFF_PERMS,
    "sales": _STAFF_PERMS,
    "assistant": _STAFF_PERMS | {"clients.edit"},
    "accountant": _STAFF_PERMS | {"tasks.payment", "tasks.bill_any"},
    DEO_ROLE: _COMMON
    | {
        "clients.edit",
        "tasks.own",
        "recruitment.submit",
        "posters.generate",
        "withdrawals.request",
        "dashboard.deo",
    },
}

HOME_ENDPOINTS = {
    ADMIN_ROLE: "reports.admin_dashboard",
    DEO_ROLE: "reports.deo_dashboard",
    **{role: "reports.staff_dashboard" for role in STAFF_ROLES},
}


class PageRoute(NamedTuple):
    endpoint: str
    permission: str
    # legacy query arg -> view argument
    args: tuple[tuple[str, str], ...] = ()


PAGE_MAP: dict[str, PageRoute] = {
    # admin
    "users": PageRoute("admin.users_list", "users.manage"),
    "add_user": PageRoute("admin.users_new_get", "users.manage"),
    "edit_user": PageRoute("admin.users_edit_get", "users.manage", (("id", "user_id"),)),
    "categories": PageRoute("catalog.categories_list", "catalog.manage"),
    "subcategories": PageRoute("catalog.subcategories_list", "catalog.manage", (("id", "category_id"),)),
    "assign_task": PageRoute("tasks.assign_get", "tasks.manage"),
    "all_tasks": PageRoute("tasks.all_tasks", "tasks.manage"),
    "edit_task": PageRoute("tasks.edit_get", "tasks.manage", (("id", "task_id"),)),
    "reports": PageRoute("reports.reports_page", "reports.view"),
    "expenses": PageRoute("expenses.expenses_list", "expenses.manage"),
    "add_expense": PageRoute("expenses.expenses_list", "expenses.manage"),
    "manage_expenses": PageRoute("expenses.expenses_list", "expenses.manage"),
    "edit_expense": PageRoute("expenses.edit_get", "expenses.manage", (("id", "expense_id"),)),
    "settings": PageRoute("settings.settings_get", "settings.manage"),
    "manage_recruitment_posts": PageRoute("recruitment.admin_posts", "recruitment.review"),
    "manage_withdrawals": PageRoute("withdrawals.admin_list", "withdrawals.manage"),
    # staff
    "my_tasks": PageRoute("tasks.my_tasks", "tasks.own"),
    "submit_work": PageRoute("tasks.submit_get", "tasks.submit"),
    "update_task": PageRoute("tasks.update_get", "tasks.update_own", (("id", "task_id"),)),
    # data entry operator
    "deo_dashboard": PageRoute("reports.deo_dashboard", "dashboard.deo"),
    "add_recruitment_post": PageRoute("recruitment.my_posts", "recruitment.submit"),
    "my_withdrawals": PageRoute("withdrawals.my_withdrawals", "withdrawals.request"),
    "bank_details": PageRoute("withdrawals.bank_details_get", "withdrawals.request"),
    "generate_poster": PageRoute("recruitment.poster", "posters.generate"),
    # shared
    "messages": PageRoute("messages.inbox", "messages.use", (("chat_with", "with"),)),
    "clients": PageRoute("clients.clients_list", "clients.view"),
    "add_client": PageRoute("clients.new_get", "clients.edit"),
    "edit_client": PageRoute("clients.edit_get", "clients.edit", (("id", "client_id"),)),
    "print_bill": PageRoute("tasks.print_bill", "tasks.bill", (("task_id", "task_id"), ("id", "task_id"))),
}

# Pages served before any role check.
PUBLIC_PAGES = ("login", "logout", "register", "404")

# Pages that always mean "my dashboard".
HOME_PAGES = ("home", "dashboard", "user_dashboard")

USER_NAME_MAX = 120
PASSWORD_MIN_LENGTH = 6
