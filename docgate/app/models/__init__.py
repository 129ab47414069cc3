"""Models package - re-exports for convenience."""

from docgate.app.models.auth import Principal, Role
from docgate.app.models.documents import (
    DocumentRecord,
    DocumentStatus,
    LongRunningOperation,
    RemotePage,
    RemoteStore,
)

__all__ = [
    "DocumentRecord",
    "DocumentStatus",
    "LongRunningOperation",
    "Principal",
    "RemotePage",
    "RemoteStore",
    "Role",
]
