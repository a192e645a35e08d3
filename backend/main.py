"""
COD Storefront — FastAPI Application

Order admission for a cash-on-delivery storefront: validated checkout,
server-side pricing, abuse controls and server-side conversion tracking
(Meta Conversions API, TikTok Events API).
"""
import logging
import os
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain import constants
from domain.responses import error_content
from routes import carts, health, orders, tracking

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, create DB tables. Shutdown: drain background tracking."""
    # Ensure data/ directory exists for SQLite
    if settings.database_url.startswith("sqlite:///./"):
        os.makedirs("data", exist_ok=True)

    settings.validate_production_settings()

    from database import init_db
    await init_db()
    logger.info("Database initialized")

    yield  # app runs here

    from services.async_executor import shutdown_executor
    await shutdown_executor()

    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="COD Storefront API",
    description="Order admission and server-side conversion tracking for a cash-on-delivery storefront",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(orders.router)
app.include_router(carts.router)
app.include_router(tracking.router)


# ── Exception Handlers ──────────────────────────────────────────────

def _error_code(exc: Exception) -> str:
    # RateLimitError → "rate_limit"
    name = exc.__class__.__name__.replace("Error", "")
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Never return raw exception details to clients. The full traceback is
    logged server-side for debugging.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_content("internal_server_error", constants.MSG_UNEXPECTED_ERROR),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    """Malformed bodies get the same localized 400 as any other bad submission."""
    logger.info(f"Malformed request on {request.url.path}: {len(exc.errors())} error(s)")
    fields = sorted({
        ".".join(str(p) for p in err.get("loc", ())[1:])
        for err in exc.errors()
        if len(err.get("loc", ())) > 1
    })
    return JSONResponse(
        status_code=400,
        content=error_content(
            "invalid_request",
            constants.MSG_INVALID_REQUEST,
            {"fields": fields} if fields else None,
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """
    Standardize HTTPException responses for frontend consumers.

    Keeps the original HTTP status code, but wraps the payload.
    """
    headers = getattr(exc, "headers", None)

    # DomainError carries a localized message and structured details
    if hasattr(exc, "message") and hasattr(exc, "details"):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_content(_error_code(exc), exc.message, exc.details or None),
            headers=headers,
        )

    # Regular HTTPException
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content("http_error", message, detail if not isinstance(detail, str) else None),
        headers=headers,
    )
