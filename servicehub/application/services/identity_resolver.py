import logging
from dataclasses import dataclass
from typing import Optional

from passlib.context import CryptContext

from ..ports.user_repo import UserRepository, UserDto
from ...db.models.users.user import AuthMethod
from ...exceptions import ConflictError

logger = logging.getLogger(__name__)


def build_password_context(rounds: int = 10) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


@dataclass
class IdentityResolver:
    users: UserRepository
    pwd_context: CryptContext

    def get(self, user_id: str) -> Optional[UserDto]:
        return self.users.get_by_id(user_id)

    def find_by_email(self, email: str) -> Optional[UserDto]:
        return self.users.get_by_email(email)

    def resolve_or_create_by_phone(self, phone_number: str) -> UserDto:
        """Existing identity for the number, or a new unverified phone identity.

        Flipping ``is_phone_verified`` is left to the caller once the OTP has
        been accepted.
        """
        user = self.users.get_by_phone(phone_number)
        if user:
            return user
        try:
            user = self.users.create(auth_method=AuthMethod.PHONE, phone_number=phone_number)
        except ConflictError:
            # Concurrent first logins with different codes; the other insert won
            user = self.users.get_by_phone(phone_number)
            if user is None:
                raise
            return user
        logger.info(f"Created phone identity {user.id}")
        return user

    def mark_phone_verified(self, user_id: str) -> None:
        self.users.mark_phone_verified(user_id)

    def mark_email_verified(self, user_id: str) -> None:
        self.users.mark_email_verified(user_id)

    def create_with_password(self, email: str, password: str, first_name: Optional[str] = None,
                             last_name: Optional[str] = None) -> UserDto:
        if self.users.get_by_email(email):
            raise ConflictError("User with this email already exists")
        password_hash = self.pwd_context.hash(password)
        user = self.users.create(
            auth_method=AuthMethod.EMAIL,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        logger.info(f"Created email identity {user.id}")
        return user

    def verify_password(self, user: UserDto, password: str) -> bool:
        # Phone-only identities have no hash; that is a plain mismatch
        if not user.password_hash:
            return False
        return self.pwd_context.verify(password, user.password_hash)
