"""Main FastAPI application - registration API, webhooks and content poller."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import APP_NAME, APP_VERSION, Settings, get_state_path, get_webhook_secret, settings
from .exceptions import AuthError, PushServiceError
from .routers import events_router, registrations_router
from .schemas import ErrorResponse, HealthResponse
from .services.notifier import NotificationService
from .services.poller import PollerService
from .services.push_sender import LoggingPushSender, PushSender
from .services.registry import SubscriberRegistry
from .services.webhook_auth import WebhookAuthenticator
from .storage import StateStore
from .utils.push_utils import utcnow

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info(f"Starting {APP_NAME} {APP_VERSION}")

    store: StateStore = app.state.store
    await store.ensure_directory()
    logger.info(f"State: {store.path}")

    if not app.state.authenticator.configured:
        logger.warning("WEBHOOK_SECRET not configured - webhook endpoints are locked")

    poller: PollerService = app.state.poller
    if app.state.settings.poll_enabled:
        poller.start()
    else:
        logger.info("Content polling disabled")

    yield

    # Shutdown
    await poller.stop()
    logger.info("Shutdown complete")


def _install_error_handlers(app: FastAPI):
    """Map service errors to status codes and the ``{ok:false,error}`` body."""

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        # No detail about why authentication failed
        return PlainTextResponse("Forbidden", status_code=403)

    @app.exception_handler(PushServiceError)
    async def service_error_handler(request: Request, exc: PushServiceError):
        message = exc.message
        if exc.status_code >= 500:
            # Details stay in the log
            logger.error(f"[http] error: {exc.message}")
            message = "Internal error"
        return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(ErrorResponse(error="Invalid request").model_dump(), status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Unknown paths and wrong methods are both plain "not found"
        if exc.status_code in (404, 405):
            return JSONResponse(ErrorResponse(error="Not found").model_dump(), status_code=404)
        return JSONResponse(ErrorResponse(error=str(exc.detail)).model_dump(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"[http] error: {exc}")
        return JSONResponse(ErrorResponse(error="Internal error").model_dump(), status_code=500)


def create_app(
    config: Optional[Settings] = None,
    sender: Optional[PushSender] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings to use instead of the environment
        sender: Push delivery implementation (defaults to logging only)
        transport: httpx transport for the content poller
    """
    config = config or settings

    app = FastAPI(
        title="Tyflocentrum Push",
        description="Push notification backend for the Tyflocentrum app",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    store = StateStore(get_state_path(config))
    notifier = NotificationService(store, sender or LoggingPushSender(config.token_log_salt))
    app.state.settings = config
    app.state.store = store
    app.state.registry = SubscriberRegistry(store)
    app.state.notifier = notifier
    app.state.authenticator = WebhookAuthenticator(get_webhook_secret(config))
    app.state.poller = PollerService(config, store, notifier, transport=transport)

    _install_error_handlers(app)

    @app.middleware("http")
    async def no_store(request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"
        return response

    app.include_router(registrations_router)
    app.include_router(events_router)

    # Health check endpoint
    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(
            name=APP_NAME,
            version=APP_VERSION,
            time=utcnow().isoformat(),
        )

    return app


# Create the application instance
app = create_app()


def run():
    """Serve the application with uvicorn on the configured loopback port."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
