# make_admin.py
# Usage: python make_admin.py <username> <password> [level]
#    or: flask --app app:create_app create-admin --username ... --password ...
import sys
import uuid
from datetime import datetime

from extensions import store
from models import Admin, PermissionLevel
from services.passwords import make_password
from services.users import ADMINS


def make_admin(username, password, level=PermissionLevel.ADMIN):
    """Create the admin, or reset password/level when the username exists. Returns (admin, created)."""
    if level not in (PermissionLevel.SUPER_ADMIN, PermissionLevel.ADMIN):
        raise ValueError("Admin level must be 0 (super admin) or 1 (admin)")

    with store.lock(ADMINS):
        admins = store.load(ADMINS, Admin)
        admin = next((a for a in admins if a.username == username), None)
        created = admin is None
        if created:
            admin = Admin(
                id=str(uuid.uuid4()),
                username=username,
                name=username,
                user_type="super_admin" if level == PermissionLevel.SUPER_ADMIN else "admin",
                created_at=datetime.now(),
            )
            admins.append(admin)
        admin.password = make_password(password)
        admin.permission_level = level
        admin.is_active = True
        store.save(ADMINS, admins)
    return admin, created


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python make_admin.py <username> <password> [level]")
        sys.exit(1)

    from app import create_app

    app = create_app()
    with app.app_context():
        level = int(sys.argv[3]) if len(sys.argv) > 3 else PermissionLevel.ADMIN
        admin, created = make_admin(sys.argv[1], sys.argv[2], level)
        print(f"{'Created' if created else 'Updated'} admin {admin.username} (level {admin.permission_level}).")
