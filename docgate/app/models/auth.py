"""Identity types carried inside session tokens."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Authorization tier of a principal."""

    admin = "admin"
    member = "member"


class Principal(BaseModel):
    """Authenticated identity attached to a request."""

    model_config = ConfigDict(frozen=True)

    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin
