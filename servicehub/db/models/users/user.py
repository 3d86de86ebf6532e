# servicehub/db/models/users/user.py
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime
import uuid

from ....utils import utcnow

class UserRole(str, Enum):
    CUSTOMER = "customer"
    PROVIDER = "provider"

class AuthMethod(str, Enum):
    PHONE = "phone"
    EMAIL = "email"

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    # Unique but nullable: email identities carry no phone number
    phone_number: Optional[str] = Field(max_length=20, default=None, unique=True, index=True)
    email: Optional[str] = Field(max_length=255, default=None, unique=True, index=True)
    password_hash: Optional[str] = Field(max_length=255, default=None)
    first_name: Optional[str] = Field(max_length=100, default=None)
    last_name: Optional[str] = Field(max_length=100, default=None)
    is_phone_verified: bool = Field(default=False)
    is_email_verified: bool = Field(default=False)
    role: UserRole = Field(default=UserRole.CUSTOMER)
    auth_method: AuthMethod = Field(default=AuthMethod.PHONE)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
