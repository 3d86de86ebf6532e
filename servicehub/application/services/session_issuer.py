import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import jwt

from ...utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class SessionIssuer:
    secret_key: str
    algorithm: str = "HS256"
    expires_minutes: int = 7 * 24 * 60
    clock: Callable[[], datetime] = field(default=utcnow)

    def issue(self, subject: str, **claims: Any) -> str:
        """Create a signed access token for ``subject``"""
        now = self.clock()
        to_encode: Dict[str, Any] = {k: v for k, v in claims.items() if v is not None}
        to_encode.update({
            "sub": subject,
            "iat": now,
            "exp": now + timedelta(minutes=self.expires_minutes),
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify signature and expiry; None for anything unusable"""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token has expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"JWT error: {e}")
            return None
