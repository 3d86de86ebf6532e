from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class OtpRecordDto:
    id: str
    identifier: str
    code: str
    is_used: bool
    created_at: datetime
    expires_at: datetime


class OtpStore(Protocol):
    def add(self, identifier: str, code: str, created_at: datetime, expires_at: datetime) -> OtpRecordDto:
        ...

    def has_active(self, identifier: str, code: str, now: datetime) -> bool:
        ...

    def consume(self, identifier: str, code: str, now: datetime) -> bool:
        """Flip one unused, unexpired matching record to used in a single conditional write."""
        ...

    def latest_active(self, identifier: str, now: datetime) -> Optional[OtpRecordDto]:
        ...

    def invalidate_active(self, identifier: str, now: datetime) -> int:
        ...

    def delete_expired(self, now: datetime) -> int:
        ...
