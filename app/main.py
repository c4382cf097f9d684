import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.auth import router as auth_router
from app.api.v1.customers import router as customers_router
from app.api.v1.files import router as files_router
from app.api.v1.job_extras import router as job_extras_router
from app.api.v1.jobs import router as jobs_router
from app.api.v1.technicians import router as technicians_router
from app.api.v1.workers import router as workers_router
from app.core.config import settings
from app.core.errors import ServiceError
from app.db.session import Database
from app.services.storage import ObjectStore

if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger("fieldservice")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def create_app(database: Database | None = None, storage: ObjectStore | None = None) -> FastAPI:
    database = database or Database(settings.SQLALCHEMY_DATABASE_URI)
    storage = storage or ObjectStore.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.init()
        database.create_schema()
        storage.init()
        if settings.ENV.lower() == "production":
            if settings.SECRET_KEY == "dev-secret-change-me":
                logger.warning("SECRET_KEY is using the default value in production.")
            if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
                logger.warning("SQLALCHEMY_DATABASE_URI points at SQLite in production.")
            if storage.use_local:
                logger.warning("File storage is the local filesystem in production.")
        try:
            yield
        finally:
            storage.close()
            database.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Field service backend: customers, crews, jobs and job files",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.object_store = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _validation_message(exc)})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request method=%s path=%s status=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    for router in (
        auth_router,
        customers_router,
        technicians_router,
        workers_router,
        jobs_router,
        files_router,
        job_extras_router,
    ):
        app.include_router(router, prefix="/api/v1")

    @app.get("/api/health")
    def health():
        if not database.ping():
            return JSONResponse(status_code=503, content={"status": "degraded", "database": "down"})
        return {"status": "ok", "database": "ok"}

    return app


app = create_app()
