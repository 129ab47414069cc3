"""Create or update a user in the credentials file.

Usage:
    python scripts/create_user.py alice --role admin [--users-file users.json]

The password is read interactively so it never lands in shell history.
"""

import argparse
import getpass

from docgate.app.auth.credentials import CredentialStore
from docgate.app.config import get_settings
from docgate.app.models.auth import Role


def main() -> None:
    """Prompt for a password and write the user entry."""
    parser = argparse.ArgumentParser(description="Create or update a docgate user")
    parser.add_argument("username")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.member.value)
    parser.add_argument("--users-file", default=None, help="defaults to USERS_FILE setting")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if not password or password != getpass.getpass("Confirm password: "):
        parser.error("passwords are empty or do not match")

    users_file = args.users_file or get_settings().users_file
    CredentialStore(users_file).add_user(args.username, password, Role(args.role))
    print(f"Saved user {args.username!r} ({args.role}) to {users_file}")


if __name__ == "__main__":
    main()
