import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..ports.audit_logger import AuditLogger
from ..ports.notification_gateway import (
    NotificationGateway,
    DeliveryReceipt,
    UNVERIFIED_RECIPIENT,
    INVALID_SENDER,
    SENDER_IS_RECIPIENT,
)
from ..ports.user_repo import UserDto
from .identity_resolver import IdentityResolver
from .otp_engine import OtpEngine
from .session_issuer import SessionIssuer
from ...exceptions import (
    ConflictError,
    DevOnlyEndpointError,
    InvalidCredentialsError,
    InvalidOrExpiredOtpError,
    InvalidTokenError,
)

logger = logging.getLogger(__name__)

DELIVERED_MESSAGE = "OTP sent successfully via SMS"
UNCONFIGURED_MESSAGE = "OTP sent successfully (SMS provider not configured)"
FAILED_MESSAGE = "OTP sent successfully (SMS delivery failed)"
PROVIDER_ERROR_MESSAGES = {
    UNVERIFIED_RECIPIENT: (
        "OTP sent successfully (Recipient number not verified - Trial account restriction. "
        "Verify number in Twilio Console or upgrade account)"
    ),
    INVALID_SENDER: "OTP sent successfully (Invalid sender number - check TWILIO_PHONE_NUMBER)",
    SENDER_IS_RECIPIENT: "OTP sent successfully (Sender and recipient cannot be the same number)",
}


@dataclass
class OtpDispatch:
    message: str
    otp: Optional[str] = None


@dataclass
class OtpLookup:
    otp: Optional[str]
    message: str


@dataclass
class AuthResult:
    access_token: str
    user: Dict[str, Any]


def phone_projection(user: UserDto) -> Dict[str, Any]:
    return {
        "id": user.id,
        "phoneNumber": user.phone_number,
        "role": user.role.value,
        "isPhoneVerified": user.is_phone_verified,
    }


def email_projection(user: UserDto) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role.value,
        "isEmailVerified": user.is_email_verified,
    }


def split_full_name(full_name: str):
    parts = full_name.strip().split()
    first_name = parts[0] if parts else ""
    last_name = " ".join(parts[1:])
    return first_name, last_name


@dataclass
class AuthService:
    """Phone OTP and email/password authentication.

    Phone flow: ``send_otp`` issues a code and hands it to the notification
    gateway on a best-effort basis; ``verify_otp_and_authenticate`` consumes
    the code, resolves (or creates) the identity, marks the phone verified and
    mints a session token.

    ``expose_codes`` is fixed when the app is built. When true (any
    non-production environment) plaintext codes are echoed back and the
    testing lookup works; otherwise codes never leave the server.
    """
    otp_engine: OtpEngine
    identities: IdentityResolver
    sessions: SessionIssuer
    gateway: NotificationGateway
    audit: AuditLogger
    expose_codes: bool = False
    sms_brand: str = "SERVICEHUB"

    def _dispatch_message(self, receipt: DeliveryReceipt) -> str:
        if receipt.delivered:
            return DELIVERED_MESSAGE
        if not receipt.configured:
            return UNCONFIGURED_MESSAGE
        return PROVIDER_ERROR_MESSAGES.get(receipt.error_code, FAILED_MESSAGE)

    def send_otp(self, phone_number: str) -> OtpDispatch:
        code = self.otp_engine.create_otp(phone_number)
        body = f"Your {self.sms_brand} verification code is: {code}"

        # Delivery problems never fail issuance
        try:
            receipt = self.gateway.send(phone_number, body)
        except Exception as e:
            logger.error(f"SMS gateway error: {e}")
            receipt = DeliveryReceipt(delivered=False, detail=str(e))

        if not receipt.delivered and receipt.configured:
            logger.warning(f"SMS delivery failed (code={receipt.error_code}): {receipt.detail}")

        self.audit.log(
            "otp_sent",
            phone_number,
            success=True,
            details={"delivered": receipt.delivered, "provider_error": receipt.error_code},
        )
        return OtpDispatch(
            message=self._dispatch_message(receipt),
            otp=code if self.expose_codes else None,
        )

    def get_otp_for_testing(self, phone_number: str) -> OtpLookup:
        if not self.expose_codes:
            raise DevOnlyEndpointError()

        code = self.otp_engine.get_latest_otp(phone_number)
        if not code:
            return OtpLookup(
                otp=None,
                message="No active OTP found for this phone number. Please request a new OTP first.",
            )
        return OtpLookup(otp=code, message="Latest OTP retrieved successfully")

    def verify_otp_and_authenticate(self, phone_number: str, code: str) -> AuthResult:
        if not self.otp_engine.verify_otp(phone_number, code):
            self.audit.log("otp_verify", phone_number, success=False)
            raise InvalidOrExpiredOtpError()

        # The code is spent from here on; a failure below is not retried.
        user = self.identities.resolve_or_create_by_phone(phone_number)
        if not user.is_phone_verified:
            self.identities.mark_phone_verified(user.id)
            user.is_phone_verified = True

        access_token = self.sessions.issue(user.id, phoneNumber=user.phone_number)
        self.audit.log("otp_verify", phone_number, user_id=user.id, success=True)
        return AuthResult(access_token=access_token, user=phone_projection(user))

    def email_register(self, full_name: str, email: str, password: str, confirm_password: str) -> AuthResult:
        if password != confirm_password:
            raise ConflictError("Password and confirm password do not match")

        first_name, last_name = split_full_name(full_name)
        try:
            user = self.identities.create_with_password(email, password, first_name=first_name, last_name=last_name)
        except ConflictError:
            self.audit.log("email_register", email, success=False, details={"error": "EMAIL_EXISTS"})
            raise

        access_token = self.sessions.issue(user.id, email=user.email)
        self.audit.log("email_register", email, user_id=user.id, success=True)
        return AuthResult(access_token=access_token, user=email_projection(user))

    def email_login(self, email: str, password: str) -> AuthResult:
        user = self.identities.find_by_email(email)
        if not user or not self.identities.verify_password(user, password):
            self.audit.log("email_login", email, user_id=user.id if user else None, success=False)
            raise InvalidCredentialsError()

        access_token = self.sessions.issue(user.id, email=user.email)
        self.audit.log("email_login", email, user_id=user.id, success=True)
        return AuthResult(access_token=access_token, user=email_projection(user))

    def current_user(self, token: str) -> UserDto:
        payload = self.sessions.decode(token)
        if not payload or not payload.get("sub"):
            raise InvalidTokenError()
        user = self.identities.get(payload["sub"])
        if not user:
            raise InvalidTokenError("User not found")
        return user
