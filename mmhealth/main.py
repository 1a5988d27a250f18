"""FastAPI application factory and lifespan."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from mmhealth.api.v1 import api_router
from mmhealth.cache import CacheRegistry
from mmhealth.core.config import get_settings
from mmhealth.core.errors import InvalidImportError, NotAuthenticatedError, NotFoundError, RemoteRejectedError
from mmhealth.db.session import async_session_maker, engine
from mmhealth.state.profile_context import ProfileContextRegistry
from mmhealth.storage import LocalBlobStore, create_blob_store

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: log the storage backend; shutdown: dispose the engine."""
    logger.info("Starting %s (%s storage)", settings.app_name, settings.storage_backend)
    yield
    await engine.dispose()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})

    @app.exception_handler(RemoteRejectedError)
    async def remote_rejected(request: Request, exc: RemoteRejectedError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE if exc.transient else status.HTTP_400_BAD_REQUEST
        return JSONResponse(status_code=code, content={"detail": exc.message})

    @app.exception_handler(InvalidImportError)
    async def invalid_import(request: Request, exc: InvalidImportError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    # One query cache per profile, one profile context per auth subject
    app.state.caches = CacheRegistry(
        settings.query_stale_seconds, settings.query_retry, max_profiles=settings.max_cached_profiles
    )
    app.state.profiles = ProfileContextRegistry(async_session_maker, max_subjects=settings.max_cached_profiles)
    app.state.blob_store = create_blob_store(settings)

    # CORS: allow localhost in dev; in production use CORS_ORIGINS env (comma-separated)
    if settings.debug:
        cors_origins = ["*"]
    elif settings.environment == "development":
        cors_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    else:
        cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"status": "ok", "message": settings.app_name}

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    if isinstance(app.state.blob_store, LocalBlobStore):
        app.mount(
            settings.media_url_prefix,
            StaticFiles(directory=settings.media_root, check_dir=False),
            name="media",
        )
    return app


app = create_application()
