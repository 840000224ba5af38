import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# .env is loaded from the project root wherever uvicorn is started from
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from discfinder.api.deps import user_id_from_request
from discfinder.api.discs import router as discs_router
from discfinder.api.lookup import router as lookup_router
from discfinder.api.orders import router as orders_router
from discfinder.api.storage import router as storage_router
from discfinder.api.webhooks import router as webhooks_router
from discfinder.core.config import is_stripe_configured, settings
from discfinder.core.database import engine, get_db, init_db
from discfinder.core.errors import ServiceError
from discfinder.core.rate_limit import limiter
from discfinder.logging import setup_logging
from discfinder.models import AuditLog, ErrorLog
from discfinder.schemas.disc import FLIGHT_NUMBER_RANGES

setup_logging(level=logging.INFO)
log = logging.getLogger("discfinder")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("DiscFinder API starting: environment=%s", settings.environment)
    log.info("Payments configured: %s", "yes" if is_stripe_configured() else "NO (set STRIPE_SECRET_KEY)")
    if not settings.stripe_webhook_secret:
        log.warning("STRIPE_WEBHOOK_SECRET is not set; /stripe-webhook will reject events")
    yield


app = FastAPI(
    title="DiscFinder API",
    description="Lost-and-found QR stickers for disc golf discs",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _client_ip(request: Request) -> str | None:
    ip = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    return ip or (request.client.host if request.client else None)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    try:
        with Session(engine) as db:
            db.add(AuditLog(event="rate_limit", subject=request.url.path, ip=_client_ip(request)))
            db.commit()
    except SQLAlchemyError as e:
        log.warning("AuditLog rate_limit write failed: %s", e)
    return _error_response(request, 429, "Too many requests. Please wait a minute.")


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request"
    first = errs[0]
    err_type = first.get("type") or ""
    loc = [str(part) for part in (first.get("loc") or [])]
    field = loc[-1] if loc else None
    if err_type == "json_invalid":
        return "Invalid JSON body"
    if err_type == "missing":
        if field == "body":
            return "Invalid JSON body"
        return f"Missing required field: {field}"
    error = (first.get("ctx") or {}).get("error")
    if isinstance(error, ValueError) and str(error):
        return str(error)
    if field in FLIGHT_NUMBER_RANGES:
        return f"{field.capitalize()} must be a number"
    if field and field != "body":
        return f"Invalid value for field: {field}"
    return first.get("msg") or "Invalid request"


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.info(
        "Request validation error (400): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        exc.errors(),
    )
    return _error_response(request, 400, _validation_error_message(exc))


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(ServiceError)
def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("Service error %s: path=%s %s", exc.status_code, request.url.path, exc.message)
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        return _error_response(request, 405, "Method not allowed")
    response = _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc)
    try:
        with Session(engine) as db:
            db.add(ErrorLog(
                user_id=user_id_from_request(request),
                endpoint=request.url.path,
                method=request.method,
                error_message=str(exc)[:2000],
                stack_trace=traceback.format_exc()[:10000],
            ))
            db.commit()
    except SQLAlchemyError as e:
        log.warning("ErrorLog write failed: %s", e)
    return _error_response(request, 500, "Internal server error")


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(discs_router)
app.include_router(orders_router)
app.include_router(webhooks_router)
app.include_router(lookup_router)
app.include_router(storage_router)


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.exec(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        log.error("Health check: database unreachable: %s", e)
        database = "error"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "payments_configured": is_stripe_configured(),
    }
