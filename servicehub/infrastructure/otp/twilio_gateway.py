import logging
from typing import Optional

from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient
from twilio.base.exceptions import TwilioRestException

from ...config import Settings
from ...application.ports.notification_gateway import NotificationGateway, DeliveryReceipt
from .null_gateway import NullNotificationGateway

logger = logging.getLogger(__name__)


class TwilioSmsGateway(NotificationGateway):
    def __init__(self, client: Client, messaging_service_sid: Optional[str] = None, from_number: Optional[str] = None):
        if not (messaging_service_sid or from_number):
            raise ValueError("TWILIO_MESSAGING_SERVICE_SID or TWILIO_PHONE_NUMBER must be configured")
        self.client = client
        self.messaging_service_sid = messaging_service_sid
        self.from_number = from_number

    def send(self, destination: str, body: str) -> DeliveryReceipt:
        options = {"body": body, "to": destination}
        # A messaging service takes precedence over a single sender number
        if self.messaging_service_sid:
            options["messaging_service_sid"] = self.messaging_service_sid
        else:
            options["from_"] = self.from_number

        try:
            message = self.client.messages.create(**options)
        except TwilioRestException as e:
            logger.error(f"Twilio rejected SMS (code={e.code}, status={e.status}): {e.msg}")
            return DeliveryReceipt(delivered=False, error_code=e.code, detail=e.msg)

        logger.info(f"SMS accepted by Twilio, SID: {message.sid}")
        return DeliveryReceipt(delivered=True, provider_id=message.sid)


def build_notification_gateway(settings: Settings) -> NotificationGateway:
    """Construct the SMS transport once at startup; unconfigured setups get the null gateway."""
    if not settings.twilio_configured:
        logger.warning("Twilio not configured - OTP codes will not be delivered by SMS")
        return NullNotificationGateway(reason="Twilio credentials not configured")

    sender = settings.TWILIO_MESSAGING_SERVICE_SID or settings.TWILIO_PHONE_NUMBER
    if not sender:
        logger.warning("Twilio credentials present but no messaging service SID or phone number configured")
        return NullNotificationGateway(reason="Twilio sender not configured")

    http_client = TwilioHttpClient(timeout=settings.SMS_TIMEOUT_SECONDS)
    client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, http_client=http_client)
    logger.info("Twilio SMS gateway initialized successfully")
    return TwilioSmsGateway(
        client,
        messaging_service_sid=settings.TWILIO_MESSAGING_SERVICE_SID or None,
        from_number=settings.TWILIO_PHONE_NUMBER or None,
    )
