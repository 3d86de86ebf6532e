# ------------------------
# Minimal DI for services
# ------------------------
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ..database import get_session
from ..application.ports.user_repo import UserDto
from ..application.services.auth_service import AuthService
from ..application.services.identity_resolver import IdentityResolver
from ..application.services.otp_engine import OtpEngine
from ..infrastructure.persistence.sqlalchemy.repositories.otp_store_sql import SqlOtpStore
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from ..exceptions import InvalidTokenError

bearer_scheme = HTTPBearer(auto_error=False)

def get_otp_engine(request: Request, session: Session = Depends(get_session)) -> OtpEngine:
    settings = request.app.state.settings
    return OtpEngine(
        store=SqlOtpStore(session),
        ttl_minutes=settings.OTP_EXPIRY_MINUTES,
        invalidate_previous=settings.OTP_INVALIDATE_PREVIOUS,
    )

def get_identity_resolver(request: Request, session: Session = Depends(get_session)) -> IdentityResolver:
    return IdentityResolver(users=SqlUserRepository(session), pwd_context=request.app.state.pwd_context)

def get_auth_service(
    request: Request,
    otp_engine: OtpEngine = Depends(get_otp_engine),
    identities: IdentityResolver = Depends(get_identity_resolver),
) -> AuthService:
    state = request.app.state
    return AuthService(
        otp_engine=otp_engine,
        identities=identities,
        sessions=state.session_issuer,
        gateway=state.notification_gateway,
        audit=state.audit_logger,
        expose_codes=state.dev_mode,
        sms_brand=state.settings.SMS_BRAND,
    )

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserDto:
    if not credentials or not credentials.credentials:
        raise InvalidTokenError("Authentication required")
    return auth_service.current_user(credentials.credentials)
