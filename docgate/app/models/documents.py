"""Remote store and document domain models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class DocumentStatus(str, Enum):
    """Ingestion state of a document in the remote store."""

    processing = "processing"
    ready = "ready"
    failed = "failed"
    unknown = "unknown"


class RemoteStore(BaseModel):
    """Reference to the remote managed store."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str


class DocumentRecord(BaseModel):
    """A document as reported by the remote store.

    ``display_name`` is the key clients use; ``remote_id`` is only used to talk
    to the remote service.
    """

    remote_id: str
    display_name: str
    word_count: int = Field(0, ge=0)
    status: DocumentStatus = DocumentStatus.unknown


class LongRunningOperation(BaseModel):
    """Snapshot of an asynchronous remote operation (e.g. ingest)."""

    name: str
    remote_id: str | None = None
    done: bool = False
    result: DocumentRecord | None = None
    error: str | None = None


@dataclass
class RemotePage(Generic[T]):
    """One page of a remote listing.

    ``next_cursor`` is only meaningful to the listing call that produced it.
    """

    items: list[T] = field(default_factory=list)
    next_cursor: str | None = None

    @property
    def has_next(self) -> bool:
        return self.next_cursor is not None
