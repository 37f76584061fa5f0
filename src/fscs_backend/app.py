from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import Request
from starlette.responses import Response

import fscs_backend.db as db
from fscs_backend.auth.provider import IdentityProvider, build_identity_provider
from fscs_backend.auth.resolve import IdentityResolver
from fscs_backend.auth.session import ClaimSigner, set_auth_cookies
from fscs_backend.calendars import CalendarService, build_calendar_service
from fscs_backend.capabilities import CapabilityMap
from fscs_backend.db.models import Base
from fscs_backend.errors import FscsError, NotFoundError, StoreError, UnauthorizedError, UpstreamError
from fscs_backend.files import LocalFileStore
from fscs_backend.logging_config import (
    configure_logging,
    log_with_fields,
    reset_request_id,
    set_request_id,
)
from fscs_backend.settings import Settings, get_settings
from fscs_backend.web.routes import router as api_router

logger = logging.getLogger("fscs_backend.http")


def _log_handled_error(request: Request, exc: FscsError) -> None:
    if isinstance(exc, NotFoundError):
        level = logging.DEBUG
    elif isinstance(exc, UnauthorizedError):
        # Denials are already recorded by the security audit logger.
        level = logging.DEBUG
    elif isinstance(exc, StoreError | UpstreamError):
        level = logging.ERROR
    else:
        level = logging.INFO

    fields: dict[str, object] = {
        "method": request.method,
        "path": request.url.path,
        "status_code": exc.status_code,
        "error": type(exc).__name__,
    }
    detail = getattr(exc, "detail", None)
    if detail:
        fields["detail"] = detail
    source = getattr(exc, "source", None)
    if source:
        fields["source"] = source
    log_with_fields(
        logger,
        level,
        "request error",
        exc_info=exc if level >= logging.ERROR else None,
        **fields,
    )


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(FscsError)
    async def fscs_error_handler(request: Request, exc: FscsError) -> Response:
        _log_handled_error(request, exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError) -> Response:
        log_with_fields(
            logger,
            logging.ERROR,
            "store failure",
            method=request.method,
            path=request.url.path,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": StoreError.default_message})


def create_app(
    settings: Settings | None = None,
    *,
    identity_provider: IdentityProvider | None = None,
    calendar_service: CalendarService | None = None,
    file_store: LocalFileStore | None = None,
) -> FastAPI:
    settings = settings if settings is not None else get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.auto_create_db:
            async with db.database.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        yield

    app = FastAPI(title="fscs-backend", lifespan=lifespan)

    provider = identity_provider if identity_provider is not None else build_identity_provider(settings)
    signer = ClaimSigner(settings.signing_key.get_secret_value())
    app.state.settings = settings
    app.state.capabilities = CapabilityMap.from_groups(settings.groups)
    app.state.identity_provider = provider
    app.state.signer = signer
    app.state.resolver = IdentityResolver(
        provider=provider,
        signer=signer,
        claim_ttl_seconds=settings.user_claim_ttl_seconds,
    )
    app.state.calendars = (
        calendar_service if calendar_service is not None else build_calendar_service(settings)
    )
    app.state.file_store = file_store if file_store is not None else LocalFileStore(settings.upload_dir)

    # Registered first so it runs inside the request logging middleware.
    @app.middleware("http")
    async def identity_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        resolver: IdentityResolver = request.app.state.resolver
        resolution = await resolver.resolve(
            cookies=request.cookies,
            authorization=request.headers.get("authorization"),
        )
        request.state.identity = resolution.identity

        response = await call_next(request)
        if resolution.renewed is not None:
            set_auth_cookies(
                response,
                resolution.renewed,
                signer=request.app.state.signer,
                max_age=settings.cookie_max_age_seconds,
            )
        return response

    @app.middleware("http")
    async def request_logging_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = (request.headers.get("x-request-id") or "").strip() or uuid4().hex
        token = set_request_id(request_id)
        start = perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            if settings.log_http_requests:
                duration_ms = (perf_counter() - start) * 1000
                log_with_fields(
                    logger,
                    logging.ERROR,
                    "request failed",
                    method=request.method,
                    path=request.url.path,
                    duration_ms=f"{duration_ms:.2f}",
                    exc_info=True,
                )
            raise
        finally:
            reset_request_id(token)

        response.headers["X-Request-ID"] = request_id
        if settings.log_http_requests:
            duration_ms = (perf_counter() - start) * 1000
            log_with_fields(
                logger,
                logging.INFO,
                "request complete",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=f"{duration_ms:.2f}",
            )
        return response

    if settings.cors_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    _install_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()
