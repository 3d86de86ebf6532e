from dataclasses import dataclass
from typing import Optional, Protocol


# Provider error codes the auth flow turns into specific user-facing messages
UNVERIFIED_RECIPIENT = 21608
INVALID_SENDER = 21659
SENDER_IS_RECIPIENT = 21266


@dataclass
class DeliveryReceipt:
    delivered: bool
    provider_id: Optional[str] = None
    error_code: Optional[int] = None
    detail: Optional[str] = None
    configured: bool = True


class NotificationGateway(Protocol):
    def send(self, destination: str, body: str) -> DeliveryReceipt:
        ...
