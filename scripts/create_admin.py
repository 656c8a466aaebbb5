"""Create an admin account, or reset the password of an existing one.

Usage: python -m scripts.create_admin <username> [--name "Full Name"]
The password is read from the prompt, or from ADMIN_PASSWORD when set.
"""
import argparse
import getpass
import os
import sys

from app.core.database import SessionLocal
from app.services.auth import AuthService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create or reset a portal admin")
    parser.add_argument("username")
    parser.add_argument("--name", default=None, help="Display name (defaults to username)")
    args = parser.parse_args(argv)

    password = os.environ.get("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < 8:
        print("Password must be at least 8 characters", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        admin = AuthService(db).create_or_reset_admin(args.username, password, args.name)
        db.commit()
        print(f"Admin '{admin.username}' is ready (id={admin.id})")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
