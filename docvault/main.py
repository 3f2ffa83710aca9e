import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings as default_settings
from .db.credentials import resolve_remote_backend
from .documents.services import DocumentService
from .documents.store import StoreUnavailable, build_store
from .security.jwt import build_verifier

# Public
from .routes.status import router as status_router

# User-protected (bearer token checked per route)
from .routes.files import router as files_router
from .routes.profile import router as profile_router
from .documents.routes import router as documents_router

log = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status_code, headers=headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Resolve the backend once and wire it into the app. Nothing here changes
    for the lifetime of the process.
    """
    settings = settings or default_settings

    backend = resolve_remote_backend(settings)
    store = build_store(settings, backend)
    verifier = build_verifier(settings, backend.project_id if backend else None)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Metadata store: %s; content directory: %s", store.kind, settings.upload_root)
        yield

    app = FastAPI(title="DocVault API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.verifier = verifier
    app.state.documents = DocumentService(store, settings.upload_root, settings.max_file_size_bytes)

    # CORS (tighten in prod)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request")

    @app.exception_handler(StoreUnavailable)
    async def store_error(request: Request, exc: StoreUnavailable):
        log.error("Unhandled store failure on %s: %s", request.url.path, exc, exc_info=exc)
        return _error(500, "Storage backend unavailable")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        log.error("General error on %s", request.url.path, exc_info=exc)
        return _error(500, "Unexpected server error")

    app.include_router(status_router)
    app.include_router(files_router)
    app.include_router(documents_router)
    app.include_router(profile_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    s: Settings = app.state.settings
    log.info("POST files to /api/upload using form field name \"file\" (Auth required)")
    uvicorn.run(app, host=s.app_host, port=s.app_port, log_level=s.log_level.lower())


if __name__ == "__main__":
    run()
