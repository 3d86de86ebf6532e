import pytest

from servicehub.application.ports.notification_gateway import NotificationGateway, DeliveryReceipt
from servicehub.application.services.auth_service import AuthService
from servicehub.application.services.identity_resolver import IdentityResolver, build_password_context
from servicehub.application.services.otp_engine import OtpEngine
from servicehub.application.services.session_issuer import SessionIssuer
from servicehub.db.models import AuthMethod
from servicehub.exceptions import (
    ConflictError,
    DevOnlyEndpointError,
    InvalidCredentialsError,
    InvalidOrExpiredOtpError,
    InvalidTokenError,
)
from servicehub.infrastructure.otp.null_gateway import NullNotificationGateway
from servicehub.infrastructure.persistence.sqlalchemy.repositories.otp_store_sql import SqlOtpStore
from servicehub.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository

PHONE = "+1234567890"


class FakeGateway(NotificationGateway):
    def __init__(self, receipt=None, error=None):
        self.receipt = receipt or DeliveryReceipt(delivered=True, provider_id="SM123")
        self.error = error
        self.sent = []

    def send(self, destination: str, body: str) -> DeliveryReceipt:
        self.sent.append((destination, body))
        if self.error:
            raise self.error
        return self.receipt


def make_service(session, audit, gateway=None, expose_codes=True, clock=None):
    engine_kwargs = {"clock": clock} if clock else {}
    return AuthService(
        otp_engine=OtpEngine(store=SqlOtpStore(session), **engine_kwargs),
        identities=IdentityResolver(users=SqlUserRepository(session), pwd_context=build_password_context(rounds=4)),
        sessions=SessionIssuer(secret_key="test-secret"),
        gateway=gateway or FakeGateway(),
        audit=audit,
        expose_codes=expose_codes,
    )


def test_send_otp_delivers_sms_and_echoes_code_in_development(session, audit):
    gateway = FakeGateway()
    svc = make_service(session, audit, gateway=gateway)
    result = svc.send_otp(PHONE)

    assert result.message == "OTP sent successfully via SMS"
    assert result.otp and len(result.otp) == 6
    assert gateway.sent == [(PHONE, f"Your SERVICEHUB verification code is: {result.otp}")]
    assert audit.entries[-1][0] == "otp_sent"


def test_send_otp_hides_code_in_production(session, audit):
    svc = make_service(session, audit, expose_codes=False)
    result = svc.send_otp(PHONE)
    assert result.otp is None
    assert "OTP sent successfully" in result.message


def test_send_otp_unverified_recipient_still_succeeds(session, audit):
    gateway = FakeGateway(receipt=DeliveryReceipt(delivered=False, error_code=21608, detail="unverified"))
    svc = make_service(session, audit, gateway=gateway)
    result = svc.send_otp(PHONE)

    assert "not verified" in result.message
    assert result.otp is not None
    assert svc.otp_engine.get_latest_otp(PHONE) == result.otp


@pytest.mark.parametrize("code, fragment", [
    (21659, "Invalid sender"),
    (21266, "cannot be the same"),
    (30003, "SMS delivery failed"),
])
def test_send_otp_maps_provider_errors(session, audit, code, fragment):
    gateway = FakeGateway(receipt=DeliveryReceipt(delivered=False, error_code=code))
    result = make_service(session, audit, gateway=gateway).send_otp(PHONE)
    assert fragment in result.message
    assert result.message.startswith("OTP sent successfully")


def test_send_otp_survives_gateway_exception(session, audit):
    gateway = FakeGateway(error=TimeoutError("read timed out"))
    result = make_service(session, audit, gateway=gateway).send_otp(PHONE)
    assert result.message == "OTP sent successfully (SMS delivery failed)"
    assert result.otp is not None


def test_send_otp_with_unconfigured_gateway(session, audit):
    result = make_service(session, audit, gateway=NullNotificationGateway()).send_otp(PHONE)
    assert result.message == "OTP sent successfully (SMS provider not configured)"
    assert result.otp is not None


def test_round_trip_creates_verified_phone_identity(session, audit):
    svc = make_service(session, audit)
    code = svc.send_otp(PHONE).otp
    result = svc.verify_otp_and_authenticate(PHONE, code)

    assert result.user["phoneNumber"] == PHONE
    assert result.user["isPhoneVerified"] is True
    assert result.user["role"] == "customer"
    payload = svc.sessions.decode(result.access_token)
    assert payload["sub"] == result.user["id"]
    assert payload["phoneNumber"] == PHONE


def test_second_login_reuses_identity(session, audit):
    svc = make_service(session, audit)
    first = svc.verify_otp_and_authenticate(PHONE, svc.send_otp(PHONE).otp)
    second = svc.verify_otp_and_authenticate(PHONE, svc.send_otp(PHONE).otp)
    assert first.user["id"] == second.user["id"]


def test_verify_rejects_wrong_and_reused_code(session, audit):
    svc = make_service(session, audit)
    code = svc.send_otp(PHONE).otp
    wrong = "100000" if code != "100000" else "100001"

    with pytest.raises(InvalidOrExpiredOtpError):
        svc.verify_otp_and_authenticate(PHONE, wrong)

    svc.verify_otp_and_authenticate(PHONE, code)
    with pytest.raises(InvalidOrExpiredOtpError):
        svc.verify_otp_and_authenticate(PHONE, code)


def test_verify_rejects_expired_code(session, audit, clock):
    svc = make_service(session, audit, clock=clock)
    code = svc.send_otp(PHONE).otp
    clock.advance(minutes=11)
    with pytest.raises(InvalidOrExpiredOtpError):
        svc.verify_otp_and_authenticate(PHONE, code)


def test_get_otp_for_testing(session, audit):
    svc = make_service(session, audit)
    empty = svc.get_otp_for_testing(PHONE)
    assert empty.otp is None
    assert "No active OTP" in empty.message

    code = svc.send_otp(PHONE).otp
    assert svc.get_otp_for_testing(PHONE).otp == code


def test_get_otp_for_testing_refused_in_production(session, audit):
    svc = make_service(session, audit, expose_codes=False)
    with pytest.raises(DevOnlyEndpointError):
        svc.get_otp_for_testing(PHONE)


def test_email_register_and_login(session, audit):
    svc = make_service(session, audit)
    registered = svc.email_register("Ada King Lovelace", "a@b.com", "pw123456", "pw123456")
    assert registered.user["firstName"] == "Ada"
    assert registered.user["lastName"] == "King Lovelace"
    assert registered.user["isEmailVerified"] is False

    logged_in = svc.email_login("a@b.com", "pw123456")
    assert logged_in.user["id"] == registered.user["id"]
    assert svc.sessions.decode(logged_in.access_token)["email"] == "a@b.com"


def test_email_register_conflicts(session, audit):
    svc = make_service(session, audit)
    with pytest.raises(ConflictError):
        svc.email_register("Ada Lovelace", "a@b.com", "pw123456", "pw654321")

    svc.email_register("Ada Lovelace", "a@b.com", "pw123456", "pw123456")
    with pytest.raises(ConflictError):
        svc.email_register("Ada Lovelace", "a@b.com", "pw123456", "pw123456")


def test_email_login_failures(session, audit):
    svc = make_service(session, audit)
    svc.email_register("Ada Lovelace", "a@b.com", "pw123456", "pw123456")

    with pytest.raises(InvalidCredentialsError):
        svc.email_login("a@b.com", "wrong-pass")
    with pytest.raises(InvalidCredentialsError):
        svc.email_login("nobody@b.com", "pw123456")


def test_phone_and_email_identities_stay_separate(session, audit):
    svc = make_service(session, audit)
    svc.send_otp(PHONE)
    phone_user = svc.verify_otp_and_authenticate(PHONE, svc.get_otp_for_testing(PHONE).otp).user
    email_user = svc.email_register("Ada Lovelace", "a@b.com", "pw123456", "pw123456").user

    assert phone_user["id"] != email_user["id"]
    assert svc.identities.get(phone_user["id"]).auth_method == AuthMethod.PHONE
    assert svc.identities.get(email_user["id"]).auth_method == AuthMethod.EMAIL


def test_current_user_from_token(session, audit):
    svc = make_service(session, audit)
    token = svc.email_register("Ada Lovelace", "a@b.com", "pw123456", "pw123456").access_token
    assert svc.current_user(token).email == "a@b.com"

    with pytest.raises(InvalidTokenError):
        svc.current_user("garbage")
    with pytest.raises(InvalidTokenError):
        svc.current_user(svc.sessions.issue("missing-user"))


def test_audit_lines_never_carry_codes(session, audit):
    svc = make_service(session, audit)
    code = svc.send_otp(PHONE).otp
    svc.verify_otp_and_authenticate(PHONE, code)
    for entry in audit.entries:
        assert code not in repr(entry[4])
