"""FastAPI application entrypoint. No business logic; only wiring, middleware and error rendering."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import health
from app.api import router as api_router
from app.core.config import settings
from app.core.database import SessionLocal, init_db
from app.core.errors import (
    ApiError,
    DatabaseUnavailable,
    InternalFault,
    InvalidJson,
    NotFound,
    RateLimited,
    ValidationFailed,
)
from app.services.rate_limit import RateLimitConfig, RateLimiter
from app.services.sessions import ensure_default_admin
from app.services.sweeper import SessionSweeper

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    db = SessionLocal()
    try:
        ensure_default_admin(db, settings)
    finally:
        db.close()

    sweeper = SessionSweeper(SessionLocal, settings.SESSION_CLEANUP_INTERVAL_MINUTES)
    app.state.session_sweeper = sweeper
    if settings.SESSION_CLEANUP_ENABLED:
        sweeper.start()
    logger.info(
        "Betting Tips API started: environment=%s, token_transport=%s",
        settings.APP_ENV,
        settings.AUTH_TOKEN_TRANSPORT,
    )
    try:
        yield
    finally:
        sweeper.shutdown()


app = FastAPI(
    title="Betting Tips API",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.global_rate_limiter = (
    RateLimiter(
        RateLimitConfig(
            max_requests=settings.GLOBAL_RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.GLOBAL_RATE_LIMIT_WINDOW_SEC,
        )
    )
    if settings.GLOBAL_RATE_LIMIT_ENABLED
    else None
)


@app.middleware("http")
async def limit_requests(request: Request, call_next):
    limiter = request.app.state.global_rate_limiter
    client = request.client.host if request.client else "unknown"
    if limiter is not None and not limiter.allow(client):
        error = RateLimited("Too many requests from this IP, please try again later")
        return JSONResponse(status_code=error.status_code, content=error.to_body())
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s status=%s client=%s duration_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        request.client.host if request.client else "-",
        (time.perf_counter() - start) * 1000,
    )
    return response


@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        error = InvalidJson()
        return JSONResponse(status_code=error.status_code, content=error.to_body())
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    error = ValidationFailed(details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_body())


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        error = DatabaseUnavailable()
    else:
        error = InternalFault()
    return JSONResponse(status_code=error.status_code, content=error.to_body())


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        body = NotFound().to_body()
        body["path"] = request.url.path
        return JSONResponse(status_code=404, content=body)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail), "code": f"HTTP_{exc.status_code}"},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalFault()
    return JSONResponse(status_code=error.status_code, content=error.to_body())


app.include_router(health.router, tags=["health"])
app.include_router(api_router, prefix=settings.API_PREFIX)
