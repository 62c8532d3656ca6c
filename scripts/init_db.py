import sys
from pathlib import Path
import os

from werkzeug.security import generate_password_hash
from sqlalchemy.orm import Session

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.officedesk.constants import ADMIN_ROLE, PERMISSIONS, ROLE_NAMES, ROLE_PERMISSIONS
from app.officedesk.models import Permission, Role, User
from app.officedesk.modules.settings.service import get_settings
from app.officedesk.db import standalone_session


def seed_access(s: Session) -> dict[str, Role]:
    """
    Idempotently create every permission, every role and the role grants
    from ``constants.ROLE_PERMISSIONS``, plus the settings row.
    Returns roles keyed by role key.
    """
    perms: dict[str, Permission] = {p.key: p for p in s.query(Permission).all()}
    for key, name in PERMISSIONS.items():
        if key not in perms:
            perms[key] = Permission(key=key, name=name)
            s.add(perms[key])

    roles: dict[str, Role] = {r.key: r for r in s.query(Role).all()}
    for key, granted in ROLE_PERMISSIONS.items():
        role = roles.get(key)
        if role is None:
            role = Role(key=key, name=ROLE_NAMES.get(key, key))
            s.add(role)
            roles[key] = role
        for perm_key in sorted(granted):
            if perms[perm_key] not in role.permissions:
                role.permissions.append(perms[perm_key])

    s.flush()
    get_settings(s)
    return roles


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed permissions/roles/settings/admin user in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@officedesk.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///officedesk.db").strip()

    with standalone_session(db_url) as s:
        roles = seed_access(s)
        role_admin = roles[ADMIN_ROLE]

        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(
                name="Administrator",
                email=admin_email,
                password_hash=generate_password_hash(admin_password),
                is_active=True,
            )
            s.add(user)
        if role_admin not in user.roles:
            user.roles.append(role_admin)

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
