"""Query endpoint - POST /api/query."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from docgate.app.api.auth import require_authenticated
from docgate.app.models.auth import Principal
from docgate.app.models.common import ApiModel
from docgate.app.services import GatewayServices, get_services

router = APIRouter(prefix="/api", tags=["query"])


class QueryRequest(BaseModel):
    """Request body for POST /api/query."""

    question: str | None = None


class QueryResponse(ApiModel):
    """Response for POST /api/query."""

    success: bool = True
    answer: str


@router.post("/query", response_model=QueryResponse)
async def query(
    request: QueryRequest,
    principal: Annotated[Principal, Depends(require_authenticated)],
    services: Annotated[GatewayServices, Depends(get_services)],
) -> QueryResponse:
    """Answer a question from the stored documents.

    Requires a session (401 otherwise). Blank questions are rejected with 400
    before any remote call.
    """
    answer = await services.query_gateway.ask(request.question)
    return QueryResponse(answer=answer)
