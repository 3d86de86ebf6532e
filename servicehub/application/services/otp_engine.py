import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..ports.otp_store import OtpStore
from ...utils import utcnow

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999
MAX_CODE_DRAWS = 10


@dataclass
class OtpEngine:
    """Issues and consumes six-digit one-time codes.

    Codes live for ``ttl_minutes``. A new request for an identifier leaves its
    earlier codes valid unless ``invalidate_previous`` is set. Verification is
    delegated to the store's atomic ``consume`` so each code succeeds at most
    once, however many requests race on it. Store errors are not caught here.
    """
    store: OtpStore
    ttl_minutes: int = 10
    invalidate_previous: bool = False
    clock: Callable[[], datetime] = field(default=utcnow)

    def generate_code(self) -> str:
        # Uniform over the whole range, kept as a 6-character string
        return f"{OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1):06d}"

    def create_otp(self, identifier: str) -> str:
        now = self.clock()
        if self.invalidate_previous:
            revoked = self.store.invalidate_active(identifier, now)
            if revoked:
                logger.info(f"Invalidated {revoked} outstanding OTP(s) before issuing a new one")

        for _ in range(MAX_CODE_DRAWS):
            code = self.generate_code()
            if not self.store.has_active(identifier, code, now):
                break
        else:
            raise RuntimeError("Could not draw an OTP code distinct from the active ones")

        self.store.add(identifier, code, created_at=now, expires_at=now + timedelta(minutes=self.ttl_minutes))
        return code

    def verify_otp(self, identifier: str, code: str) -> bool:
        return self.store.consume(identifier, code, self.clock())

    def get_latest_otp(self, identifier: str) -> Optional[str]:
        rec = self.store.latest_active(identifier, self.clock())
        return rec.code if rec else None

    def cleanup_expired_otps(self) -> int:
        removed = self.store.delete_expired(self.clock())
        if removed:
            logger.info(f"Removed {removed} expired OTP record(s)")
        return removed
