"""
Seed Admin User

Creates (or promotes) an admin account with a password login.
Run this once to set up the first admin; further admins can be granted
from the Users screen.

Usage:
    python scripts/seed_admin.py --email admin@example.com --name "Ops Admin"

The password is read from SEED_ADMIN_PASSWORD, or prompted for.
"""

import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hold_tracker.core.database import async_session_maker, close_db
from hold_tracker.core.security import hash_password
from hold_tracker.modules.users.models import UserRole
from hold_tracker.modules.users.repository import UserRepository


async def seed_admin(email: str, name: str, password: str) -> None:
    """Create the admin user, or promote an existing account."""
    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)

        if existing_user:
            if existing_user.role != UserRole.ADMIN:
                await UserRepository.set_role(db, existing_user, UserRole.ADMIN)
                print(f"Existing user promoted to admin: {existing_user.email}")
            else:
                print(f"Admin already exists: {existing_user.email}")
            print(f"  ID: {existing_user.id}")
            return

        admin_user = await UserRepository.create(
            db,
            email=email,
            name=name,
            role=UserRole.ADMIN,
            password_hash=hash_password(password),
        )

        print("Admin created successfully!")
        print(f"  Email: {admin_user.email}")
        print(f"  Name: {admin_user.name}")
        print(f"  ID: {admin_user.id}")


async def _run(email: str, name: str, password: str) -> None:
    try:
        await seed_admin(email, name, password)
    finally:
        await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the first admin account.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    args = parser.parse_args()

    password = os.environ.get("SEED_ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < 8:
        print("Error: password must be at least 8 characters", file=sys.stderr)
        sys.exit(1)

    asyncio.run(_run(args.email, args.name, password))


if __name__ == "__main__":
    main()
