# servicehub/db/models/auth/otp.py
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, Index
from datetime import datetime
import uuid

from ....utils import utcnow

class OTPRecord(SQLModel, table=True):
    __tablename__ = "otp_records"
    # Uniqueness of (identifier, code) only holds among active records, so it is
    # enforced when codes are issued rather than by a unique index.
    __table_args__ = (Index("ix_otp_records_identifier_code", "identifier", "code"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    identifier: str = Field(max_length=255, index=True)
    code: str = Field(max_length=6)
    is_used: bool = Field(default=False)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True), index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
