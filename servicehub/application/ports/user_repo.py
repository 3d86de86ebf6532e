from typing import Protocol, Optional
from datetime import datetime

from ...db.models.users.user import UserRole, AuthMethod

class UserDto:
    def __init__(self, id: str, phone_number: Optional[str], email: Optional[str], password_hash: Optional[str],
                 first_name: Optional[str], last_name: Optional[str], is_phone_verified: bool, is_email_verified: bool,
                 role: UserRole, auth_method: AuthMethod, created_at: datetime, updated_at: datetime):
        self.id = id
        self.phone_number = phone_number
        self.email = email
        self.password_hash = password_hash
        self.first_name = first_name
        self.last_name = last_name
        self.is_phone_verified = is_phone_verified
        self.is_email_verified = is_email_verified
        self.role = role
        self.auth_method = auth_method
        self.created_at = created_at
        self.updated_at = updated_at

class UserRepository(Protocol):
    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        ...

    def get_by_email(self, email: str) -> Optional[UserDto]:
        ...

    def create(self, auth_method: AuthMethod, phone_number: Optional[str] = None, email: Optional[str] = None,
               password_hash: Optional[str] = None, first_name: Optional[str] = None,
               last_name: Optional[str] = None) -> UserDto:
        ...

    def mark_phone_verified(self, user_id: str) -> None:
        ...

    def mark_email_verified(self, user_id: str) -> None:
        ...
