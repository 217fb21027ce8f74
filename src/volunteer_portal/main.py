"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from volunteer_portal.config import settings
from volunteer_portal.database.engine import dispose_db, init_db
from volunteer_portal.errors import PortalError, RateLimited
from volunteer_portal.routers.otp import router as otp_router
from volunteer_portal.routers.volunteer import router as volunteer_router
from volunteer_portal.services.document_store import DocumentStore
from volunteer_portal.services.email_service import EmailService
from volunteer_portal.services.otp_store import OTPStore

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    await init_db()
    logger.info("Database initialised")

    app.state.otp_store = OTPStore(
        ttl_seconds=settings.otp_ttl_seconds,
        resend_cooldown_seconds=settings.otp_resend_cooldown_seconds,
        max_attempts=settings.otp_max_attempts,
    )
    app.state.email_service = EmailService()
    app.state.document_store = DocumentStore()

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        app.state.otp_store.cleanup_expired,
        "interval",
        minutes=settings.otp_cleanup_interval_minutes,
        id="cleanup_expired_otps",
        replace_existing=True,
    )
    scheduler.start()
    yield
    scheduler.shutdown(wait=False)
    await dispose_db()
    logger.info("Shutting down %s …", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Volunteer registration backend with OTP email verification",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(otp_router)
app.include_router(volunteer_router)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies in the same envelope as other client errors."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        message = "Request body must be valid JSON."
    else:
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        message = f"Invalid value for '{loc[0]}'." if loc else "Invalid request body."
    logger.debug("Rejected request to %s: %s", request.url.path, errors)
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.get("/health")
async def health_check():
    """Simple liveness probe."""
    return {"status": "healthy", "app": settings.app_name}
