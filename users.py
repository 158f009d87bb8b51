from __future__ import annotations

import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from db import atomic
from errors import ConflictError
from models import User, UserIn, utcnow
from orm import UserORM

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _user_to_schema(u: UserORM) -> User:
    return User(
        id=u.id,
        username=u.username,
        email=u.email,
        role=u.role,  # type: ignore
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


class UserService:
    """Operators (admin / manager / staff) who record lendings and returns."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, body: UserIn, *, commit: bool = True) -> User:
        dup = self.db.execute(
            select(UserORM.username, UserORM.email).where(
                or_(UserORM.username == body.username, UserORM.email == body.email)
            )
        ).first()
        if dup:
            field = "username" if dup.username == body.username else "email"
            raise ConflictError(f"{field} already exists")

        now = utcnow()
        u = UserORM(
            username=body.username,
            email=str(body.email),
            password_hash=pwd_context.hash(body.password),
            role=body.role,
            created_at=now,
            updated_at=now,
        )
        with atomic(self.db, commit=commit):
            self.db.add(u)
        logger.info("user created id=%s username=%s role=%s", u.id, u.username, u.role)
        return _user_to_schema(u)

    def list(self) -> list[User]:
        rows = self.db.execute(select(UserORM).order_by(UserORM.id.asc())).scalars().all()
        return [_user_to_schema(u) for u in rows]

    def get_by_id(self, user_id: int) -> Optional[User]:
        row = self.db.get(UserORM, user_id)
        return _user_to_schema(row) if row else None

    def exists(self, user_id: int) -> bool:
        return self.db.get(UserORM, user_id) is not None

    def authenticate(self, username: str, password: str) -> Optional[User]:
        u = self.db.execute(select(UserORM).where(UserORM.username == username)).scalar_one_or_none()
        if not u or not pwd_context.verify(password, u.password_hash):
            return None
        return _user_to_schema(u)
