from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from .logging import setup_logging
from .api.routes import router as api_router
from .config import settings
from .db import close_conn, get_conn
from .errors import AppError
from .pipeline.snapshots import wait_for_background
from .scheduler import schedule_jobs, shutdown_scheduler

setup_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    await get_conn()
    if settings.scheduler_enabled:
        schedule_jobs()
    log.info("service_started", environment=settings.environment, scheduler=bool(settings.scheduler_enabled))
    try:
        yield
    finally:
        await wait_for_background()
        shutdown_scheduler()
        await close_conn()
        log.info("service_stopped")

app = FastAPI(title="lifetrack-service", lifespan=lifespan)
app.include_router(api_router)

def _failure(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return _failure(exc.status_code, exc.message)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg") or "Invalid request")
    return _failure(400, message)

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _failure(exc.status_code, str(exc.detail))

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.error("request_failed", method=request.method, path=request.url.path, exc_info=exc)
    extra = {} if settings.is_production else {"error": str(exc)}
    return _failure(500, "Server error", **extra)
