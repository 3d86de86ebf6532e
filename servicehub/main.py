import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

# Load environment variables as early as possible
load_dotenv()

from .config import Settings, get_settings
from .database import build_engine, create_db_and_tables
from .exceptions import AuthError, auth_error_handler, http_exception_handler, validation_exception_handler
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware, SecurityMiddleware
from .application.ports.notification_gateway import NotificationGateway
from .application.services.identity_resolver import build_password_context
from .application.services.otp_engine import OtpEngine
from .application.services.session_issuer import SessionIssuer
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.otp.twilio_gateway import build_notification_gateway
from .infrastructure.persistence.sqlalchemy.repositories.otp_store_sql import SqlOtpStore
from .routers import auth_router, user_router
from .utils import utcnow

logger = logging.getLogger(__name__)


def reap_expired_otps(engine: Engine) -> int:
    with Session(engine) as session:
        return OtpEngine(store=SqlOtpStore(session)).cleanup_expired_otps()


async def _otp_reaper(engine: Engine, interval_seconds: int):
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_in_threadpool(reap_expired_otps, engine)
        except Exception:
            # Housekeeping only; expiry is also enforced at verification time
            logger.exception("Expired OTP cleanup failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    engine: Engine = app.state.db_engine
    create_db_and_tables(engine)
    logger.info("Database initialized successfully")

    reaper = None
    if settings.OTP_CLEANUP_INTERVAL_SECONDS > 0:
        reaper = asyncio.create_task(_otp_reaper(engine, settings.OTP_CLEANUP_INTERVAL_SECONDS))
    yield
    if reaper:
        reaper.cancel()
        with suppress(asyncio.CancelledError):
            await reaper
    engine.dispose()
    logger.info(f"Shutting down {settings.APP_NAME}...")


def create_app(settings: Optional[Settings] = None, gateway: Optional[NotificationGateway] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
    )

    # Resolved once; request handlers never look at the environment again
    app.state.settings = settings
    app.state.dev_mode = settings.dev_mode
    app.state.db_engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.notification_gateway = gateway or build_notification_gateway(settings)
    app.state.session_issuer = SessionIssuer(
        secret_key=settings.JWT_SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    app.state.pwd_context = build_password_context(settings.PASSWORD_HASH_ROUNDS)
    app.state.audit_logger = StdAuditLogger()

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)
    if app.state.dev_mode:
        logger.warning("Development mode: OTP codes are echoed and /auth/phone/get-otp is enabled")
        app.include_router(auth_router.testing_router)
    app.include_router(user_router.router)

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "timestamp": utcnow().isoformat(),
            "auth": {
                "secret_key_configured": settings.JWT_SECRET_KEY != "change-me-in-prod",
                "jwt_algorithm": settings.ALGORITHM,
                "token_expiry_minutes": settings.ACCESS_TOKEN_EXPIRE_MINUTES,
                "sms_gateway": type(app.state.notification_gateway).__name__,
            },
        }

    return app


_settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, _settings.LOG_LEVEL.upper(), logging.INFO),
    format=_settings.LOG_FORMAT
)

app = create_app(_settings)

# ------------------------
# Run with correct PORT in local/production
# ------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "servicehub.main:app",
        host=_settings.HOST,
        port=_settings.PORT,
        log_level=_settings.LOG_LEVEL.lower()
    )
