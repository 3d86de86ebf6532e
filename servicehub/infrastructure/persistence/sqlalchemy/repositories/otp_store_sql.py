from datetime import datetime
from typing import Optional

from sqlalchemy import update, delete
from sqlmodel import Session, select

from .....db.models import OTPRecord
from .....application.ports.otp_store import OtpStore, OtpRecordDto
from .....utils import as_utc


class SqlOtpStore(OtpStore):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: OTPRecord) -> OtpRecordDto:
        return OtpRecordDto(
            id=rec.id,
            identifier=rec.identifier,
            code=rec.code,
            is_used=bool(rec.is_used),
            created_at=as_utc(rec.created_at),
            expires_at=as_utc(rec.expires_at),
        )

    def _active(self, identifier: str, now: datetime):
        return select(OTPRecord).where(
            OTPRecord.identifier == identifier,
            OTPRecord.is_used == False,  # noqa: E712
            OTPRecord.expires_at >= now,  # still good at the expiry instant itself
        )

    def add(self, identifier: str, code: str, created_at: datetime, expires_at: datetime) -> OtpRecordDto:
        rec = OTPRecord(identifier=identifier, code=code, created_at=created_at, expires_at=expires_at)
        try:
            self.session.add(rec)
            self.session.commit()
            self.session.refresh(rec)
        except Exception:
            self.session.rollback()
            raise
        return self._to_dto(rec)

    def has_active(self, identifier: str, code: str, now: datetime) -> bool:
        stmt = self._active(identifier, now).where(OTPRecord.code == code)
        return self.session.exec(stmt).first() is not None

    def consume(self, identifier: str, code: str, now: datetime) -> bool:
        # Single conditional UPDATE; the affected row count decides the winner
        # when several requests race on the same code.
        stmt = (
            update(OTPRecord)
            .where(
                OTPRecord.identifier == identifier,
                OTPRecord.code == code,
                OTPRecord.is_used == False,  # noqa: E712
                OTPRecord.expires_at >= now,
            )
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount > 0

    def latest_active(self, identifier: str, now: datetime) -> Optional[OtpRecordDto]:
        stmt = self._active(identifier, now).order_by(OTPRecord.created_at.desc())
        rec = self.session.exec(stmt).first()
        return self._to_dto(rec) if rec else None

    def invalidate_active(self, identifier: str, now: datetime) -> int:
        stmt = (
            update(OTPRecord)
            .where(
                OTPRecord.identifier == identifier,
                OTPRecord.is_used == False,  # noqa: E712
                OTPRecord.expires_at >= now,
            )
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount

    def delete_expired(self, now: datetime) -> int:
        stmt = delete(OTPRecord).where(OTPRecord.expires_at < now).execution_options(synchronize_session=False)
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount
