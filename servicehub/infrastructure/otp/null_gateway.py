import logging

from ...application.ports.notification_gateway import NotificationGateway, DeliveryReceipt

logger = logging.getLogger(__name__)


class NullNotificationGateway(NotificationGateway):
    """Stands in for the SMS provider when none is configured. Never delivers."""

    def __init__(self, reason: str = "not configured") -> None:
        self.reason = reason

    def send(self, destination: str, body: str) -> DeliveryReceipt:
        logger.debug(f"Dropping SMS, gateway unavailable: {self.reason}")
        return DeliveryReceipt(delivered=False, detail=self.reason, configured=False)
