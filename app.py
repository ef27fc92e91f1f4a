from __future__ import annotations

import asyncio
import contextlib
import logging
import logging.handlers
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv

from errors import DocumentServiceError, StructureViolation
from persistence import (
    AsyncDocumentService,
    DiskJsonDocumentStore,
    DocumentLockRegistry,
    DocumentService,
    UndoLedger,
)
from persistence.cleanup import run_cleanup_loop
from settings import Settings, get_settings
from validation import ValidationLimits

logger = logging.getLogger(__name__)

DEMO_DOCUMENT_ID = "demo"
DEMO_DOCUMENT = [
    {
        "id": 1,
        "name": "Project Alpha",
        "kpis": [
            {"metric": "Revenue", "value": 100},
            {"metric": "Cost", "value": 50},
        ],
        "owner": "Alice",
    },
    {
        "id": 2,
        "name": "Project Beta",
        "owner": "Bob",
        "kpis": [
            {"metric": "Revenue", "value": 200},
        ],
    },
]


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    if not root.handlers:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(stream)
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        already = any(
            isinstance(h, logging.handlers.RotatingFileHandler)
            and Path(h.baseFilename) == log_path.resolve()
            for h in root.handlers
        )
        if not already:
            handler = logging.handlers.RotatingFileHandler(
                log_path, maxBytes=10 * 1024 * 1024, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
            root.addHandler(handler)


def build_document_service(settings: Settings) -> DocumentService:
    limits = ValidationLimits(
        max_keys_per_object=settings.max_keys_per_object,
        max_nesting_level=settings.max_nesting_level,
    )
    return DocumentService(
        DiskJsonDocumentStore(settings.data_dir),
        DocumentLockRegistry(),
        UndoLedger(),
        limits,
        normalize_uploads=settings.normalize_uploads,
    )


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    documents: AsyncDocumentService = app.state.documents

    if settings.seed_demo_data:
        try:
            created = await asyncio.to_thread(documents.service.create_if_absent, DEMO_DOCUMENT_ID, DEMO_DOCUMENT)
        except DocumentServiceError as e:
            logger.warning("Skipping demo document %r: %s", DEMO_DOCUMENT_ID, e.message)
        else:
            if created:
                logger.info("Seeded demo document %r", DEMO_DOCUMENT_ID)

    cleanup_task: asyncio.Task | None = None
    if settings.cleanup_enabled:
        cleanup_task = asyncio.create_task(
            run_cleanup_loop(
                settings.data_dir,
                interval_seconds=settings.cleanup_interval_seconds,
                max_age_seconds=settings.cleanup_max_age_seconds,
            )
        )

    logger.info("Serving documents from %s", settings.data_dir)
    try:
        yield
    finally:
        if cleanup_task is not None:
            cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup_task


async def document_error_handler(request: Request, exc: DocumentServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__ or exc
        )
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.error_code, exc.message)

    message = exc.message
    if isinstance(exc, StructureViolation):
        message = f"Validation Error: {exc.message}"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "error": exc.error_code,
            "message": message,
            "details": exc.details,
        },
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    load_dotenv()
    settings = settings or get_settings()
    configure_logging(settings)

    from endpoints.data_endpoints import router as data_router

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    # Raises on an unusable data directory, which aborts startup.
    app.state.documents = AsyncDocumentService(build_document_service(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DocumentServiceError, document_error_handler)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(data_router)

    return app


if __name__ == "__main__":
    import uvicorn

    load_dotenv()
    _settings = get_settings()
    uvicorn.run(create_app(_settings), host=_settings.host, port=_settings.port)
