from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from errors import MalformedInput, PayloadTooLarge
from persistence.documents import parse_json_bytes
from persistence.paths import require_identifier
from persistence.repositories import AsyncDocumentRepository
from settings import Settings

router = APIRouter(prefix="/api", tags=["data"])
logger = logging.getLogger(__name__)

UPLOAD_SUCCESS_MESSAGE = "File uploaded and saved."


class StatusResponse(BaseModel):
    status: str = "success"


class UploadResponse(StatusResponse):
    message: str
    id: str


def get_documents(request: Request) -> AsyncDocumentRepository:
    return request.app.state.documents


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/data")
async def read_data(id: str | None = None, documents: AsyncDocumentRepository = Depends(get_documents)):
    doc_id = require_identifier(id)
    return JSONResponse(await documents.get(doc_id))


@router.post("/data", response_model=StatusResponse)
async def replace_data(
    request: Request,
    id: str | None = None,
    documents: AsyncDocumentRepository = Depends(get_documents),
):
    doc_id = require_identifier(id)
    value = parse_json_bytes(await request.body())
    await documents.replace(doc_id, value)
    return StatusResponse()


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile | None = File(default=None),
    documents: AsyncDocumentRepository = Depends(get_documents),
    settings: Settings = Depends(get_app_settings),
):
    if file is None:
        raise MalformedInput("Error retrieving file")

    max_bytes = settings.max_upload_size_bytes
    # Read one byte past the limit so oversize files are detected without buffering them whole.
    raw = await file.read(max_bytes + 1)
    if len(raw) > max_bytes:
        logger.info("UPLOAD: rejected %r, larger than %d bytes", file.filename, max_bytes)
        raise PayloadTooLarge(
            f"File exceeds maximum upload size of {settings.max_upload_size_mb}MB",
            details={"limit_bytes": max_bytes},
        )

    doc_id = await documents.upload(raw)
    return UploadResponse(message=UPLOAD_SUCCESS_MESSAGE, id=doc_id)


@router.get("/download")
async def download_data(id: str | None = None, documents: AsyncDocumentRepository = Depends(get_documents)):
    doc_id = require_identifier(id)
    download = await documents.download(doc_id)
    return Response(
        content=download.content,
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={download.filename}"},
    )


@router.post("/undo", response_model=StatusResponse)
async def undo_data(id: str | None = None, documents: AsyncDocumentRepository = Depends(get_documents)):
    doc_id = require_identifier(id)
    await documents.undo(doc_id)
    return StatusResponse()
