"""
Create a POS admin account, or reset an existing admin's password.

Usage:
    python create_admin.py frontdesk
    python create_admin.py frontdesk --reset
"""
import argparse
import getpass
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent))

from sqlalchemy import select

from src.api.middleware.error_handler import ConflictException
from src.lib.db import get_db_context
from src.models.admins import Admin
from src.services.auth_service import AuthService


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a POS admin account")
    parser.add_argument("username")
    parser.add_argument("--reset", action="store_true", help="Reset the password of an existing admin")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match")
        return 1

    with get_db_context() as db:
        auth = AuthService(db)
        try:
            if args.reset:
                admin = db.execute(select(Admin).where(Admin.username == args.username)).scalar_one_or_none()
                if admin is None:
                    print(f"No admin named {args.username}")
                    return 1
                auth.set_password(admin, password)
                print(f"Password updated for {args.username}")
            else:
                admin = auth.create_admin(args.username, password)
                print(f"Created admin {admin.username} ({admin.id})")
        except (ValueError, ConflictException) as exc:
            print(f"Error: {exc}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
