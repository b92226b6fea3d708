import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .domain.scheduler.router import router as scheduler_router
from .domain.scheduler.client import build_scheduler_client
from .email_service import build_email_service
from .errors import ApiError
from .routes.health import router as health_router
from .routes.mailer import router as mailer_router
from .routes.webhooks import router as webhooks_router
from .store import WebhookStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    app.state.scheduler_client = build_scheduler_client()
    app.state.email_service = build_email_service()
    app.state.webhook_store = WebhookStore(max_entries=config.WEBHOOK_STORE_MAX_ENTRIES)
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Dime.Scheduler Webhook API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.message}: {exc.error}")
    else:
        logger.warning(f"{request.method} {request.url.path} - {exc.status_code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report framework-level validation errors with the same envelope as every other 400"""
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request", "error": str(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ {request.method} {request.url.path} - Unhandled error: {exc}")
    return JSONResponse(
        status_code=500, content={"success": False, "message": "Internal server error"}
    )


# CORS Configuration
logger.info(f"CORS allowed origins: {config.CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(health_router)
app.include_router(webhooks_router)
app.include_router(mailer_router)
app.include_router(scheduler_router)


if __name__ == "__main__":
    uvicorn.run("app.main:app", host=config.HOST, port=config.PORT)
