"""Credential store backed by a JSON file of bcrypt hashes.

File format::

    {"alice": {"password": "<bcrypt hash>", "role": "admin"}, ...}

The file is re-read on every lookup so edits apply without a restart.
"""

import json
import logging
from pathlib import Path
from typing import Any

import bcrypt

from docgate.app.models.auth import Principal, Role

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10

# Compared against when the username is unknown, so both failure paths pay the
# same hashing cost.
_DUMMY_HASH = bcrypt.hashpw(b"docgate-dummy-password", bcrypt.gensalt(DEFAULT_ROUNDS))


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with a fresh salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        bcrypt.checkpw(password.encode("utf-8"), _DUMMY_HASH)
        return False


class CredentialStore:
    """Username-keyed credential lookups."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load_users(self) -> dict[str, dict[str, Any]]:
        """Read the users file; an unreadable file yields no users."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load users from {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Users file {self.path} must contain a JSON object")
            return {}
        return data

    def authenticate(self, username: str, password: str) -> Principal | None:
        """Return the principal for valid credentials, None otherwise.

        Unknown usernames and wrong passwords are indistinguishable to the caller.
        """
        user = self.load_users().get(username)

        if not isinstance(user, dict) or not isinstance(user.get("password"), str):
            bcrypt.checkpw(password.encode("utf-8"), _DUMMY_HASH)
            return None

        if not verify_password(password, user["password"]):
            return None

        try:
            role = Role(user.get("role", Role.member.value))
        except ValueError:
            logger.error(f"User {username!r} has an unknown role {user.get('role')!r}")
            return None

        return Principal(username=username, role=role)

    def add_user(
        self, username: str, password: str, role: Role = Role.member, rounds: int = DEFAULT_ROUNDS
    ) -> None:
        """Create or replace a user entry in the file."""
        users = self.load_users() if self.path.exists() else {}
        users[username] = {"password": hash_password(password, rounds), "role": role.value}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(users, indent=2) + "\n", encoding="utf-8")
