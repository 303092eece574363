"""User administration script for WineTrail.

Users are identified by email address.

Commands:
    add       Add a new user
    list      List all users
    disable   Disable a user account
    enable    Enable a user account
    promote   Grant or revoke administrator rights
    remove    Remove a user account
    passwd    Change a user's password
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, timezone
from getpass import getpass
from typing import Optional

from winetrail.auth.schemas import birth_datetime
from winetrail.database import close_db, init_db
from winetrail.models.user import User
from winetrail.services.auth import get_password_hash, get_user_by_email


async def _require_user(email: str) -> User:
    user = await get_user_by_email(email)
    if user is None:
        print(f"Error: User '{email}' not found.")
        sys.exit(1)
    return user


async def add_user(
    email: str,
    password: str,
    full_name: Optional[str] = None,
    date_of_birth: Optional[date] = None,
    is_admin: bool = False,
) -> None:
    if await get_user_by_email(email) is not None:
        print(f"Error: User '{email}' already exists.")
        sys.exit(1)

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        date_of_birth=birth_datetime(date_of_birth) if date_of_birth else None,
        is_superuser=is_admin,
        is_active=True,
        is_verified=True,
    )
    await user.insert()

    role = "admin" if is_admin else "user"
    print(f"User '{email}' created successfully as {role}.")


async def list_users() -> None:
    users = await User.find_all().sort(+User.email).to_list()
    if not users:
        print("No users found.")
        return

    print(f"{'Email':<35} {'Name':<20} {'Admin':<6} {'Active':<6} {'Last Login':<20}")
    print("-" * 90)
    for user in users:
        last_login = user.last_login.strftime("%Y-%m-%d %H:%M") if user.last_login else "Never"
        admin = "Yes" if user.is_superuser else "No"
        active = "Yes" if user.is_active else "No"
        print(f"{user.email:<35} {user.full_name or '':<20} {admin:<6} {active:<6} {last_login:<20}")


async def set_active(email: str, active: bool) -> None:
    user = await _require_user(email)
    state = "active" if active else "disabled"
    if user.is_active == active:
        print(f"User '{email}' is already {state}.")
        return

    user.is_active = active
    user.updated_at = datetime.now(timezone.utc)
    await user.save()
    print(f"User '{email}' has been {'enabled' if active else 'disabled'}.")


async def set_admin(email: str, admin: bool) -> None:
    user = await _require_user(email)
    user.is_superuser = admin
    user.updated_at = datetime.now(timezone.utc)
    await user.save()
    print(f"User '{email}' is {'now' if admin else 'no longer'} an admin.")


async def remove_user(email: str, force: bool = False) -> None:
    user = await _require_user(email)
    if not force:
        confirm = input(f"Are you sure you want to remove user '{email}'? [y/N]: ")
        if confirm.lower() != "y":
            print("Aborted.")
            return

    await user.delete()
    print(f"User '{email}' has been removed.")


async def change_password(email: str, password: str) -> None:
    user = await _require_user(email)
    user.hashed_password = get_password_hash(password)
    user.updated_at = datetime.now(timezone.utc)
    await user.save()
    print(f"Password for user '{email}' has been updated.")


async def _run(coro) -> None:
    await init_db()
    try:
        await coro
    finally:
        await close_db()


def get_password_interactive(confirm: bool = True) -> str:
    password = getpass("Password: ")
    if not password:
        print("Error: Password cannot be empty.")
        sys.exit(1)

    if confirm and getpass("Confirm password: ") != password:
        print("Error: Passwords do not match.")
        sys.exit(1)

    return password


def main() -> int:
    parser = argparse.ArgumentParser(
        description="User administration for WineTrail",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_parser = subparsers.add_parser("add", help="Add a new user")
    add_parser.add_argument("email", help="Email address of the new user")
    add_parser.add_argument("--name", "-n", help="Full name")
    add_parser.add_argument("--dob", type=date.fromisoformat, help="Date of birth (YYYY-MM-DD)")
    add_parser.add_argument("--admin", "-a", action="store_true", help="Make user an admin")
    add_parser.add_argument("--password", "-p", help="Password (will prompt if not provided)")

    subparsers.add_parser("list", help="List all users")

    for name, help_text in (("disable", "Disable a user account"), ("enable", "Enable a user account")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("email")

    promote_parser = subparsers.add_parser("promote", help="Grant administrator rights")
    promote_parser.add_argument("email")
    promote_parser.add_argument("--revoke", action="store_true", help="Revoke instead of grant")

    remove_parser = subparsers.add_parser("remove", help="Remove a user account")
    remove_parser.add_argument("email")
    remove_parser.add_argument("--force", "-f", action="store_true", help="Skip confirmation")

    passwd_parser = subparsers.add_parser("passwd", help="Change a user's password")
    passwd_parser.add_argument("email")
    passwd_parser.add_argument("--password", "-p", help="New password (will prompt if not provided)")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "add":
            password = args.password or get_password_interactive()
            asyncio.run(_run(add_user(args.email, password, args.name, args.dob, args.admin)))
        elif args.command == "list":
            asyncio.run(_run(list_users()))
        elif args.command in ("disable", "enable"):
            asyncio.run(_run(set_active(args.email, args.command == "enable")))
        elif args.command == "promote":
            asyncio.run(_run(set_admin(args.email, not args.revoke)))
        elif args.command == "remove":
            asyncio.run(_run(remove_user(args.email, args.force)))
        elif args.command == "passwd":
            password = args.password or get_password_interactive()
            asyncio.run(_run(change_password(args.email, password)))
    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
