import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assistant_backend.api import auth, chat
from assistant_backend.core.config import Settings, get_settings
from assistant_backend.core.database import Database
from assistant_backend.core.exceptions import AppError
from assistant_backend.core.rate_limit import RateLimiter
from assistant_backend.core.security import TokenIssuer
from assistant_backend.services.completion import CompletionClient, build_chat_model
from assistant_backend.services.notifications import (
    LoggingNotificationSender,
    NotificationSender,
    SendGridNotificationSender,
)
from assistant_backend.utils.logger import clear_request_id, get_logger, init_logging, set_request_id

logger = get_logger("assistant_backend.app")


def _build_notifier(settings: Settings) -> NotificationSender:
    if settings.SENDGRID_API_KEY:
        return SendGridNotificationSender(
            api_key=settings.SENDGRID_API_KEY,
            from_email=settings.EMAIL_FROM,
            from_name=settings.EMAIL_FROM_NAME,
            code_ttl_minutes=settings.OTP_EXPIRE_MINUTES,
        )
    logger.warning("SENDGRID_API_KEY not set - codes will only be logged")
    return LoggingNotificationSender()


def create_app(
    settings: Optional[Settings] = None,
    *,
    completion_client: Optional[CompletionClient] = None,
    notifier: Optional[NotificationSender] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """Build the application. Clients not passed in are constructed from settings at startup."""
    settings = settings or get_settings()
    init_logging(level=settings.LOG_LEVEL, file_logging=settings.LOG_TO_FILE, log_dir=settings.LOG_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.DATABASE_URL)
        # A store we cannot reach is fatal to startup
        await database.connect()

        limiter = rate_limiter or RateLimiter.from_url(settings.REDIS_URL)
        await limiter.connect()

        app.state.settings = settings
        app.state.database = database
        app.state.token_issuer = TokenIssuer(settings.JWT_SECRET_KEY, settings.JWT_ALGORITHM)
        app.state.notifier = notifier or _build_notifier(settings)
        app.state.completion_client = completion_client or CompletionClient(build_chat_model(settings))
        app.state.rate_limiter = limiter
        logger.info("Backend server started")
        try:
            yield
        finally:
            logger.info("Backend server shutting down")
            await app.state.notifier.aclose()
            await limiter.close()
            await database.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware for request tracing
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        set_request_id(request_id)
        logger.info("Request started", extra={
            "method": request.method,
            "path": request.url.path,
        })
        try:
            response = await call_next(request)
            logger.info("Request completed", extra={"status_code": response.status_code})
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            logger.error("Request failed", extra={"error": str(e)}, exc_info=True)
            raise
        finally:
            clear_request_id()

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("Request error", extra={"error": exc.message, "path": request.url.path})
        else:
            logger.info("Request rejected", extra={
                "error": exc.message,
                "error_type": type(exc).__name__,
                "path": request.url.path,
            })
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
        return JSONResponse(status_code=400, content={"errors": errors})

    app.include_router(auth.router)
    app.include_router(chat.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app
