import asyncio
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from liquipay.api.v1.api_router import api_router
from liquipay.core.config import settings
from liquipay.core.cron_runner import run_maintenance_cron_loop
from liquipay.core.exceptions import DomainError, REASON_STATUS_CODES
from liquipay.core.startup import ensure_tables, seed_demo_data

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Liquidation QR Payment API",
    description="Tax liquidations, late penalties and UEMOA QR payment codes",
    version="1.0.0",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """Create tables, optionally seed demo rows, then start the maintenance loop."""
    await ensure_tables()
    if settings.SEED_DEMO_DATA:
        await seed_demo_data()
    app.state.maintenance_cron_task = asyncio.create_task(run_maintenance_cron_loop())
    logger.info("liquipay started (environment=%s)", settings.ENVIRONMENT)


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "maintenance_cron_task", None)
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        logger.info("Maintenance loop stopped")


def _error_response(status_code: int, message, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


def _serializable_validation_errors(errors: list) -> list:
    """ctx may hold exception instances; stringify it so the body stays JSON."""
    out = []
    for e in errors:
        item = {"type": e.get("type"), "loc": e.get("loc"), "msg": e.get("msg")}
        if e.get("ctx"):
            item["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        out.append(item)
    return out


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    status_code = REASON_STATUS_CODES.get(exc.reason, status.HTTP_400_BAD_REQUEST)
    logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.reason.value, exc.message)
    return _error_response(status_code, exc.message, reason=exc.reason.value)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = _serializable_validation_errors(exc.errors())
    logger.info("%s %s invalid request: %s", request.method, request.url.path, errors)
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", errors=errors)


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", errors=_serializable_validation_errors(exc.errors())
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: method=%s path=%s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
