"""
Release phase: migrate the schema to head, then seed access control and the
admin account. Safe to run on every deploy; seeding never overwrites an
existing admin password.

Usage:
  python scripts/release.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

from app.officedesk.config import is_production


def release_database_url() -> str:
    """DATABASE_URL is mandatory here; SQLite is refused in production."""
    db_url = (os.environ.get("DATABASE_URL") or "").strip()
    if not db_url:
        raise RuntimeError("Missing required environment variable DATABASE_URL.")
    if is_production(os.environ.get("ENV")) and db_url.startswith("sqlite"):
        raise RuntimeError("Refusing to run release on sqlite DATABASE_URL in production. Set DATABASE_URL to Postgres.")
    return db_url


def alembic_config(db_url: str):
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def run_release() -> None:
    load_dotenv()
    db_url = release_database_url()
    print(f"=== Office Desk release start (ENV={os.environ.get('ENV') or '(unset)'}) ===", flush=True)

    from alembic import command

    command.upgrade(alembic_config(db_url), "head")
    print("Schema at head.", flush=True)

    from scripts import init_db

    init_db.seed_only(database_url=db_url)
    print("=== Office Desk release done ===", flush=True)


if __name__ == "__main__":
    run_release()
