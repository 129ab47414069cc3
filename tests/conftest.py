"""Shared pytest fixtures for all test suites.

The remote store and inference service are replaced by in-memory fakes; no
test makes a network call.
"""

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docgate.app.auth.credentials import hash_password
from docgate.app.config import Settings
from docgate.app.main import create_app
from docgate.app.models.auth import Principal, Role
from docgate.app.models.documents import (
    DocumentRecord,
    DocumentStatus,
    LongRunningOperation,
    RemotePage,
    RemoteStore,
)
from docgate.app.services import GatewayServices, build_services

ADMIN_PASSWORD = "admin-pass"
MEMBER_PASSWORD = "member-pass"


class FakeStoreBackend:
    """In-memory remote store with cursor pagination and delayed ingestion."""

    def __init__(self, page_size: int = 2, polls_until_done: int = 1) -> None:
        self.page_size = page_size
        self.polls_until_done = polls_until_done
        self.fail_ingest_with: str | None = None
        self.stores: list[RemoteStore] = []
        self.documents: dict[str, list[DocumentRecord]] = {}
        self.calls: list[str] = []
        self._remaining: dict[str, int] = {}
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def _page(self, items: list, cursor: str | None) -> RemotePage:
        start = int(cursor) if cursor else 0
        end = start + self.page_size
        return RemotePage(
            items=list(items[start:end]), next_cursor=str(end) if end < len(items) else None
        )

    def add_document(
        self,
        store_id: str,
        display_name: str,
        word_count: int = 0,
        status: DocumentStatus = DocumentStatus.ready,
    ) -> DocumentRecord:
        record = DocumentRecord(
            remote_id=self._next_id("file"),
            display_name=display_name,
            word_count=word_count,
            status=status,
        )
        self.documents.setdefault(store_id, []).append(record)
        return record

    async def list_stores(self, cursor: str | None = None) -> RemotePage[RemoteStore]:
        self.calls.append("list_stores")
        return self._page(self.stores, cursor)

    async def create_store(self, display_name: str) -> RemoteStore:
        self.calls.append("create_store")
        store = RemoteStore(id=self._next_id("store"), display_name=display_name)
        self.stores.append(store)
        self.documents[store.id] = []
        return store

    async def delete_store(self, store_id: str) -> None:
        self.calls.append("delete_store")
        self.stores = [s for s in self.stores if s.id != store_id]
        self.documents.pop(store_id, None)

    async def list_documents(
        self, store_id: str, cursor: str | None = None
    ) -> RemotePage[DocumentRecord]:
        self.calls.append("list_documents")
        return self._page(self.documents.get(store_id, []), cursor)

    async def start_upload(
        self,
        store_id: str,
        content: bytes,
        display_name: str,
        word_count: int | None = None,
    ) -> LongRunningOperation:
        self.calls.append("start_upload")
        record = self.add_document(
            store_id, display_name, word_count or 0, status=DocumentStatus.processing
        )
        name = f"{store_id}/{record.remote_id}"
        self._remaining[name] = self.polls_until_done
        return LongRunningOperation(name=name, remote_id=record.remote_id)

    async def get_operation(self, operation: LongRunningOperation) -> LongRunningOperation:
        self.calls.append("get_operation")
        self._remaining[operation.name] -= 1
        if self._remaining[operation.name] > 0:
            return operation

        store_id, remote_id = operation.name.split("/")
        record = next(d for d in self.documents[store_id] if d.remote_id == remote_id)
        if self.fail_ingest_with:
            record.status = DocumentStatus.failed
            return LongRunningOperation(
                name=operation.name, done=True, error=self.fail_ingest_with
            )
        record.status = DocumentStatus.ready
        return LongRunningOperation(name=operation.name, done=True, result=record.model_copy())

    async def delete_document(self, store_id: str, remote_id: str) -> None:
        self.calls.append("delete_document")
        self.documents[store_id] = [
            d for d in self.documents[store_id] if d.remote_id != remote_id
        ]


class FakeInference:
    """Records prompts and returns a canned answer."""

    def __init__(self, answer: str = "The answer.") -> None:
        self.answer = answer
        self.calls: list[dict[str, str]] = []

    async def generate(self, *, store_id: str, prompt: str) -> str:
        self.calls.append({"store_id": store_id, "prompt": prompt})
        return self.answer


@pytest.fixture
def fake_backend() -> FakeStoreBackend:
    return FakeStoreBackend()


@pytest.fixture
def fake_inference() -> FakeInference:
    return FakeInference()


@pytest.fixture
def users_file(tmp_path: Path) -> Path:
    """Credentials file with one admin and one member (cheap bcrypt rounds)."""
    path = tmp_path / "users.json"
    users = {
        "admin": {"password": hash_password(ADMIN_PASSWORD, rounds=4), "role": "admin"},
        "member": {"password": hash_password(MEMBER_PASSWORD, rounds=4), "role": "member"},
    }
    path.write_text(json.dumps(users), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path: Path, users_file: Path) -> Settings:
    return Settings(
        _env_file=None,
        users_file=str(users_file),
        prompt_file=str(tmp_path / "missing-prompt.md"),
        upload_dir=str(tmp_path / "uploads"),
        session_secret="test-session-secret",
        file_search_store_name="test-store",
        poll_interval_ms=0,
        poll_max_attempts=5,
    )


@pytest.fixture
def services(
    settings: Settings, fake_backend: FakeStoreBackend, fake_inference: FakeInference
) -> GatewayServices:
    return build_services(
        settings, backend=fake_backend, inference=fake_inference, instruction_prefix=""
    )


@pytest.fixture
def app(services: GatewayServices) -> FastAPI:
    return create_app(services=services)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the lifespan (store acquisition) run."""
    with TestClient(app) as test_client:
        yield test_client


def session_cookie(services: GatewayServices, username: str, role: Role) -> dict[str, str]:
    """Cookie jar entry for a freshly issued session."""
    token = services.tokens.issue(Principal(username=username, role=role))
    return {services.settings.session_cookie_name: token}


@pytest.fixture
def admin_client(client: TestClient, services: GatewayServices) -> TestClient:
    client.cookies.update(session_cookie(services, "admin", Role.admin))
    return client


@pytest.fixture
def member_client(client: TestClient, services: GatewayServices) -> TestClient:
    client.cookies.update(session_cookie(services, "member", Role.member))
    return client
