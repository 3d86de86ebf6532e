from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import User, AuthMethod
from .....application.ports.user_repo import UserRepository, UserDto
from .....exceptions import ConflictError
from .....utils import as_utc, utcnow

class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            phone_number=user.phone_number,
            email=user.email,
            password_hash=user.password_hash,
            first_name=user.first_name,
            last_name=user.last_name,
            is_phone_verified=bool(user.is_phone_verified),
            is_email_verified=bool(user.is_email_verified),
            role=user.role,
            auth_method=user.auth_method,
            created_at=as_utc(user.created_at),
            updated_at=as_utc(user.updated_at),
        )

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.id == user_id)).first()
        return self._to_dto(user) if user else None

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.phone_number == phone_number)).first()
        return self._to_dto(user) if user else None

    def get_by_email(self, email: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.email == email)).first()
        return self._to_dto(user) if user else None

    def create(self, auth_method: AuthMethod, phone_number: Optional[str] = None, email: Optional[str] = None,
               password_hash: Optional[str] = None, first_name: Optional[str] = None,
               last_name: Optional[str] = None) -> UserDto:
        user = User(
            phone_number=phone_number,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            auth_method=auth_method,
        )
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError:
            # Lost a race with another insert for the same email or phone number
            self.session.rollback()
            if email:
                raise ConflictError("User with this email already exists")
            raise ConflictError("User with this phone number already exists")
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(user)
        return self._to_dto(user)

    def _set_flag(self, user_id: str, field: str) -> None:
        user = self.session.exec(select(User).where(User.id == user_id)).first()
        if not user or getattr(user, field):
            return
        setattr(user, field, True)
        user.updated_at = utcnow()
        try:
            self.session.add(user)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def mark_phone_verified(self, user_id: str) -> None:
        self._set_flag(user_id, "is_phone_verified")

    def mark_email_verified(self, user_id: str) -> None:
        self._set_flag(user_id, "is_email_verified")
