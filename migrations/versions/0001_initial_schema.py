"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=False), nullable=nullable)


def _money(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=10, scale=2), nullable=nullable)


def upgrade() -> None:
    """Upgrade schema."""
    # ---------- Access control ----------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _ts("created_at"),
        sa.Column("bank_name", sa.String(length=255), nullable=True),
        sa.Column("account_holder_name", sa.String(length=255), nullable=True),
        sa.Column("account_number", sa.String(length=64), nullable=True),
        sa.Column("ifsc_code", sa.String(length=32), nullable=True),
        sa.Column("upi_id", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("key"),
    )
    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("key", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("key"),
    )
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("permission_id", sa.Integer(), sa.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _ts("created_at"),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("client_ip", sa.String(length=64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_user_email", sa.String(length=320), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=128), nullable=True),
        sa.Column("entity_id", sa.String(length=128), nullable=True),
        sa.Column("reason", sa.String(length=512), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
    )

    # ---------- Settings & catalog ----------
    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("app_name", sa.String(length=255), nullable=False),
        sa.Column("app_logo_url", sa.String(length=512), nullable=True),
        sa.Column("currency_symbol", sa.String(length=16), nullable=False),
        _money("earning_per_approved_post"),
        _money("minimum_withdrawal_amount"),
        _ts("updated_at"),
    )
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "subcategories",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        _money("fare"),
        sa.Column("description", sa.Text(), nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("category_id", "name", name="uq_subcategories_category_name"),
    )
    op.create_index("ix_subcategories_category_id", "subcategories", ["category_id"])

    # ---------- Clients & tasks ----------
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("client_name", sa.String(length=255), nullable=False),
        sa.Column("contact_person", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("submitted_by_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("client_name"),
    )
    op.create_index("idx_clients_status", "clients", ["status"])
    op.create_index("ix_clients_submitted_by_user_id", "clients", ["submitted_by_user_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("assigned_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("subcategory_id", sa.Integer(), sa.ForeignKey("subcategories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("deadline", sa.Date(), nullable=False),
        _money("fee"),
        sa.Column("fee_mode", sa.String(length=32), nullable=False),
        _money("maintenance_fee"),
        sa.Column("maintenance_fee_mode", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("payment_status", sa.String(length=32), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("user_notes", sa.Text(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        _ts("completed_at", nullable=True),
    )
    op.create_index("idx_tasks_status", "tasks", ["status"])
    op.create_index("idx_tasks_payment_status", "tasks", ["payment_status"])
    op.create_index("idx_tasks_assigned_user", "tasks", ["assigned_user_id"])
    op.create_index("idx_tasks_completed_at", "tasks", ["completed_at"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("expense_type", sa.String(length=255), nullable=False),
        _money("amount"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("expense_date", sa.Date(), nullable=False),
        _ts("created_at"),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_expenses_expense_date", "expenses", ["expense_date"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("message_text", sa.Text(), nullable=False),
        _ts("sent_at"),
        sa.Column("read_status", sa.Boolean(), nullable=False),
        _ts("read_at", nullable=True),
    )
    op.create_index("idx_messages_receiver_read", "messages", ["receiver_id", "read_status"])
    op.create_index("idx_messages_pair", "messages", ["sender_id", "receiver_id"])

    # ---------- Recruitment & withdrawals ----------
    op.create_table(
        "recruitment_posts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("job_title", sa.String(length=255), nullable=False),
        sa.Column("total_vacancies", sa.Integer(), nullable=False),
        sa.Column("image_banner_url", sa.String(length=1024), nullable=True),
        sa.Column("eligibility_criteria", sa.Text(), nullable=True),
        sa.Column("selection_process", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("last_date", sa.Date(), nullable=True),
        sa.Column("exam_date", sa.Date(), nullable=True),
        sa.Column("fee_payment_last_date", sa.Date(), nullable=True),
        sa.Column("application_fees", sa.Text(), nullable=True),
        sa.Column("category_wise_vacancies", sa.Text(), nullable=True),
        sa.Column("notification_url", sa.String(length=1024), nullable=True),
        sa.Column("apply_url", sa.String(length=1024), nullable=True),
        sa.Column("admit_card_url", sa.String(length=1024), nullable=True),
        sa.Column("official_website_url", sa.String(length=1024), nullable=True),
        sa.Column("exam_prediction", sa.Text(), nullable=True),
        sa.Column("custom_fields", sa.JSON(), nullable=True),
        sa.Column("submitted_by_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("approval_status", sa.String(length=32), nullable=False),
        sa.Column("approved_by_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        _ts("approved_at", nullable=True),
        sa.Column("admin_comments", sa.Text(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("idx_recruitment_posts_status", "recruitment_posts", ["approval_status"])
    op.create_index("idx_recruitment_posts_submitter", "recruitment_posts", ["submitted_by_user_id"])

    op.create_table(
        "withdrawal_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("deo_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _money("amount"),
        _ts("request_date"),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("bank_name", sa.String(length=255), nullable=True),
        sa.Column("account_holder_name", sa.String(length=255), nullable=True),
        sa.Column("account_number", sa.String(length=64), nullable=True),
        sa.Column("ifsc_code", sa.String(length=32), nullable=True),
        sa.Column("upi_id", sa.String(length=255), nullable=True),
        sa.Column("transaction_number", sa.String(length=128), nullable=True),
        sa.Column("admin_comments", sa.Text(), nullable=True),
        sa.Column("processed_by_admin_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        _ts("processed_at", nullable=True),
    )
    op.create_index("idx_withdrawal_requests_status", "withdrawal_requests", ["status"])
    op.create_index("idx_withdrawal_requests_deo", "withdrawal_requests", ["deo_id"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "withdrawal_requests",
        "recruitment_posts",
        "messages",
        "expenses",
        "tasks",
        "clients",
        "subcategories",
        "categories",
        "settings",
        "audit_events",
        "role_permissions",
        "user_roles",
        "permissions",
        "roles",
        "users",
    ):
        op.drop_table(table)
