# Models package (re-export feature modules for stable imports)
from .users.user import User, UserRole, AuthMethod
from .auth.otp import OTPRecord

__all__ = [
    "User",
    "UserRole",
    "AuthMethod",
    "OTPRecord",
]
