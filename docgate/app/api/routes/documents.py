"""Document endpoints - POST /api/upload, GET /api/documents, DELETE /api/documents/{name}."""

import logging
import uuid
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from docgate.app.api.auth import require_admin, require_authenticated
from docgate.app.errors import NotFound, PayloadTooLarge, ValidationError
from docgate.app.models.auth import Principal
from docgate.app.models.common import ApiModel
from docgate.app.models.documents import DocumentStatus
from docgate.app.services import GatewayServices, get_services

router = APIRouter(prefix="/api", tags=["documents"])
logger = logging.getLogger(__name__)

UPLOAD_FIELD = "file"
CHUNK_SIZE = 1024 * 1024


class UploadResponse(ApiModel):
    """Response for POST /api/upload."""

    success: bool = True
    file_name: str
    message: str


class DocumentSummary(ApiModel):
    """One document in a listing."""

    display_name: str
    word_count: int
    status: DocumentStatus


class DocumentListResponse(ApiModel):
    """Response for GET /api/documents."""

    success: bool = True
    documents: list[DocumentSummary]
    count: int


class DeleteResponse(ApiModel):
    """Response for DELETE /api/documents/{display_name}."""

    success: bool = True
    message: str


def client_file_name(filename: str | None) -> str:
    """Base name of a client-supplied file name, whatever its path separators."""
    name = Path((filename or "").replace("\\", "/")).name.strip()
    if not name:
        raise ValidationError("Uploaded file has no name")
    return name


async def stage_upload(upload: UploadFile, upload_dir: Path, max_bytes: int) -> Path:
    """Copy an uploaded file into ``upload_dir`` under a unique name.

    The partial file is removed if the size cap is exceeded or the copy fails.

    Raises:
        PayloadTooLarge: Content exceeds ``max_bytes``
    """
    await run_in_threadpool(upload_dir.mkdir, parents=True, exist_ok=True)
    staged = upload_dir / f"{uuid.uuid4().hex}.upload"
    written = 0
    try:
        out = await run_in_threadpool(open, staged, "wb")
        try:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise PayloadTooLarge(f"File exceeds the {max_bytes} byte limit")
                await run_in_threadpool(out.write, chunk)
        finally:
            await run_in_threadpool(out.close)
    except BaseException:
        staged.unlink(missing_ok=True)
        raise
    return staged


def remove_staged(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Failed to remove staged upload {path}: {e}")


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    request: Request,
    principal: Annotated[Principal, Depends(require_admin)],
    services: Annotated[GatewayServices, Depends(get_services)],
) -> UploadResponse:
    """Upload the multipart ``file`` field to the remote store (admin only).

    The body is only read after the admin check passes. The staged copy is
    deleted whether the remote ingest succeeds or fails.
    """
    settings = services.settings
    form = await request.form()
    try:
        upload = form.get(UPLOAD_FIELD)
        if not isinstance(upload, UploadFile):
            raise ValidationError("No file provided")

        display_name = client_file_name(upload.filename)
        staged = await stage_upload(upload, Path(settings.upload_dir), settings.max_upload_bytes)
    finally:
        await form.close()

    try:
        await services.catalog.upload_file(staged, display_name)
    finally:
        await run_in_threadpool(remove_staged, staged)

    logger.info(f"{principal.username} uploaded {display_name!r}")
    return UploadResponse(file_name=display_name, message="File uploaded successfully")


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    principal: Annotated[Principal, Depends(require_authenticated)],
    services: Annotated[GatewayServices, Depends(get_services)],
) -> DocumentListResponse:
    """List every document in the remote store."""
    records = await services.catalog.list_documents()
    documents = [
        DocumentSummary(
            display_name=record.display_name,
            word_count=record.word_count,
            status=record.status,
        )
        for record in records
    ]
    return DocumentListResponse(documents=documents, count=len(documents))


@router.delete("/documents/{display_name:path}", response_model=DeleteResponse)
async def delete_document(
    display_name: str,
    principal: Annotated[Principal, Depends(require_admin)],
    services: Annotated[GatewayServices, Depends(get_services)],
) -> DeleteResponse:
    """Delete a document by display name (admin only).

    Raises:
        NotFound: 404 when no document has that name
    """
    if not display_name:
        raise ValidationError("Document name is required")

    if not await services.catalog.delete_by_display_name(display_name):
        raise NotFound("not found")

    logger.info(f"{principal.username} deleted {display_name!r}")
    return DeleteResponse(message="Document deleted")
