from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .db import create_db_engine, create_session_factory
from .errors import InvalidInput, ProductNotFound, StoreUnavailable
from .logging_config import get_child_logger, set_log_level
from .repository import CatalogRepository
from .routes import describe_errors, health_router, router
from .service import ProductService
from .storage import S3BlobStore, build_s3_client

logger = get_child_logger("main")

INTERNAL_ERROR = "Internal server error"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    s3_client=None,
) -> FastAPI:
    """
    Build the catalog app.

    ``settings`` defaults to the environment, read at startup. ``engine`` and
    ``s3_client`` are built from settings unless supplied.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or Settings.from_env()
        set_log_level(cfg.log_level)

        db_engine = engine or create_db_engine(cfg)
        repository = CatalogRepository(db_engine, create_session_factory(db_engine))
        # No schema, no service: let this abort startup
        repository.ensure_schema()
        logger.info("Database ready")

        blob_store = S3BlobStore(s3_client or build_s3_client(cfg), cfg.bucket_name, cfg.key_prefix)
        app.state.product_service = ProductService(repository, blob_store, cfg.signed_url_ttl)
        logger.info("Serving images from bucket %s", cfg.bucket_name)
        try:
            yield
        finally:
            db_engine.dispose()

    app = FastAPI(title="catalog-service", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidInput)
    async def handle_invalid_input(_: Request, exc: InvalidInput):
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, describe_errors(exc.errors()))

    @app.exception_handler(ProductNotFound)
    async def handle_not_found(_: Request, exc: ProductNotFound):
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(StoreUnavailable)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailable):
        logger.error(
            "Storage failure path=%s error=%s original=%r",
            request.url.path,
            exc,
            exc.original_exception,
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(_: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error path=%s", request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)

    app.include_router(router)
    app.include_router(health_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Settings.from_env().port)
