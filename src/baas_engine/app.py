"""FastAPI application factory for baas-engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from baas_engine.common.config import get_settings
from baas_engine.common.exceptions import BaasError, ValidationError
from baas_engine.common.logging import get_logger, setup_logging
from baas_engine.common.schemas import ErrorResponse, FieldError, HealthResponse

logger = get_logger("app")


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


async def _baas_error_handler(request: Request, exc: BaasError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            exc.message,
            exc_info=exc,
            extra={"code": exc.code, "path": request.url.path},
        )
    field_errors = exc.field_errors if isinstance(exc, ValidationError) else {}
    body = ErrorResponse(
        error=exc.message,
        code=exc.code,
        validation_errors=[
            FieldError(field=field, messages=messages)
            for field, messages in field_errors.items()
        ],
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    grouped: dict[str, list[str]] = {}
    for error in exc.errors():
        grouped.setdefault(_field_name(tuple(error.get("loc", ()))), []).append(error["msg"])
    body = ErrorResponse(
        error="Invalid inputs received.",
        code="VALIDATION_ERROR",
        validation_errors=[
            FieldError(field=field, messages=messages) for field, messages in grouped.items()
        ],
    )
    return JSONResponse(status_code=400, content=body.model_dump())


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from baas_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        logger.info("baas-engine started", extra={"environment": settings.environment})
        yield
        # Shutdown
        from baas_engine.deps import get_request_mediator, get_tenant_provisioner
        await get_request_mediator().close()
        await get_tenant_provisioner().close()
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaasError, _baas_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from baas_engine.projects.router import router as projects_router
    from baas_engine.tables.router import router as tables_router
    from baas_engine.api_tokens.router import router as api_tokens_router
    from baas_engine.user_data.router import router as user_data_router

    prefix = settings.api_prefix
    app.include_router(projects_router, prefix=prefix, tags=["projects"])
    app.include_router(tables_router, prefix=prefix, tags=["tables"])
    app.include_router(api_tokens_router, prefix=prefix, tags=["api-tokens"])
    app.include_router(user_data_router, prefix=prefix, tags=["user-data"])

    return app
