import logging
import os

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import sentry_sdk
from slowapi.errors import RateLimitExceeded

from .config import API_PREFIX
from .exceptions import DomainException, ProblemDetail
from .rate_limit import limiter, rate_limit_handler
from .routers import matches, periods, players
from .utils.sentry import init_sentry, sentry_dsn

logger = logging.getLogger(__name__)

init_sentry()


def _cors_settings() -> tuple[list[str], bool]:
    """Read ``ALLOWED_ORIGINS``/``ALLOW_CREDENTIALS`` and refuse unsafe values."""

    raw = os.getenv("ALLOWED_ORIGINS", "").strip()
    if not raw:
        raise ValueError(
            "ALLOWED_ORIGINS must be a comma-separated list of trusted league "
            "front-end origins."
        )

    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if not origins:
        raise ValueError("ALLOWED_ORIGINS must name at least one origin.")
    if "*" in origins:
        raise ValueError("ALLOWED_ORIGINS cannot contain '*'; list the origins explicitly.")

    credentials = os.getenv("ALLOW_CREDENTIALS", "true").lower() == "true"
    return origins, credentials


ALLOWED_ORIGINS, ALLOW_CREDENTIALS = _cors_settings()

app = FastAPI(
    title="Card League Tracker API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Pending match submissions are rate limited per client address.
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("API_PREFIX=%r origins=%s", API_PREFIX, ",".join(ALLOWED_ORIGINS))


@app.get("/healthz", tags=["health"])  # Unprefixed for reverse proxy / uptime checks
def root_healthz():
    return {"status": "ok"}


@app.post(f"{API_PREFIX}/sentry-test", tags=["health"])
def sentry_test_check():
    if not sentry_dsn():
        raise HTTPException(status_code=400, detail="Sentry is not configured (SENTRY_DSN missing)")

    event_id = sentry_sdk.capture_message("League API Sentry self-test", level="info")
    return {"status": "sent", "eventId": str(event_id)}


# -----------------------------------------------------------------------------
# Error handling: every error leaves the API as application/problem+json
# -----------------------------------------------------------------------------
def _problem_response(problem: ProblemDetail, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(),
        media_type="application/problem+json",
        headers=headers,
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    return _problem_response(
        ProblemDetail(
            type=exc.type,
            title=exc.title,
            detail=exc.detail,
            status=exc.status_code,
            instance=request.url.path,
            code=exc.code,
        )
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem_response(
        ProblemDetail(
            title=detail,
            detail=detail,
            status=exc.status_code,
            instance=request.url.path,
            code=getattr(exc, "code", f"http_{exc.status_code}"),
        ),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    return _problem_response(
        ProblemDetail(
            title="Internal Server Error",
            status=500,
            detail=str(exc),
            instance=request.url.path,
            code="internal_server_error",
        )
    )


api_router = APIRouter(prefix=API_PREFIX, tags=["meta"])


@api_router.get("/healthz", tags=["health"])
def api_healthz():
    return {"status": "ok"}


@api_router.get("")
def api_root():
    return {"message": "Card League Tracker API. See /docs."}


v0_router = APIRouter(prefix="/v0")
v0_router.include_router(players.router)
v0_router.include_router(periods.router)
v0_router.include_router(matches.router)

api_router.include_router(v0_router)
app.include_router(api_router)
