"""Wiring of the gateway's long-lived components."""

import logging
import secrets
from dataclasses import dataclass

from fastapi import Request
from openai import AsyncOpenAI

from docgate.app.auth.credentials import CredentialStore
from docgate.app.auth.tokens import TokenAuthority
from docgate.app.config import Settings
from docgate.app.llm.client import InferenceClient, OpenAIFileSearchClient
from docgate.app.query.gateway import QueryGateway, load_instruction_prefix
from docgate.app.store.backend import OpenAIStoreBackend, StoreBackend
from docgate.app.store.catalog import DocumentCatalog
from docgate.app.store.handle import RemoteStoreHandle
from docgate.app.store.poller import OperationPoller

logger = logging.getLogger(__name__)


@dataclass
class GatewayServices:
    """Components shared by every request."""

    settings: Settings
    tokens: TokenAuthority
    credentials: CredentialStore
    store_handle: RemoteStoreHandle
    catalog: DocumentCatalog
    query_gateway: QueryGateway


def session_secret(settings: Settings) -> str:
    """Configured signing secret, or a random one that lives as long as the process."""
    if settings.session_secret is not None and settings.session_secret.get_secret_value():
        return settings.session_secret.get_secret_value()
    logger.warning("SESSION_SECRET not set, using a random secret; sessions end on restart")
    return secrets.token_urlsafe(32)


def build_services(
    settings: Settings,
    backend: StoreBackend | None = None,
    inference: InferenceClient | None = None,
    instruction_prefix: str | None = None,
) -> GatewayServices:
    """Assemble services; OpenAI implementations are used unless overridden."""
    if backend is None or inference is None:
        settings.validate_for_startup()
        assert settings.openai_api_key is not None
        client = AsyncOpenAI(api_key=settings.openai_api_key.get_secret_value())
        if backend is None:
            backend = OpenAIStoreBackend(client, page_size=settings.pagination_page_size)
        if inference is None:
            inference = OpenAIFileSearchClient(client, model=settings.openai_model)

    if instruction_prefix is None:
        instruction_prefix = load_instruction_prefix(settings.prompt_file)

    handle = RemoteStoreHandle(backend, max_pages=settings.pagination_max_pages)
    poller = OperationPoller(
        backend.get_operation,
        poll_interval_ms=settings.poll_interval_ms,
        max_attempts=settings.poll_max_attempts,
    )
    return GatewayServices(
        settings=settings,
        tokens=TokenAuthority(session_secret(settings), max_age_ms=settings.session_max_age_ms),
        credentials=CredentialStore(settings.users_file),
        store_handle=handle,
        catalog=DocumentCatalog(handle, backend, poller, max_pages=settings.pagination_max_pages),
        query_gateway=QueryGateway(handle, inference, instruction_prefix),
    )


def get_services(request: Request) -> GatewayServices:
    """FastAPI dependency returning the application's services."""
    services: GatewayServices = request.app.state.services
    return services
