import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.users import User
from app.schemas.users import NewUserRequest, UserOut

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with id={user_id} was not found")
    return user


def register_user(db: Session, payload: NewUserRequest) -> UserOut:
    logger.info("Registering new user with email: %s", payload.email)

    if db.scalar(select(User.id).where(User.email == payload.email)) is not None:
        raise ConflictError(f"Email {payload.email} is already in use")

    user = User(name=payload.name, email=payload.email)
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("User registered with id: %s", user.id)
    return UserOut.model_validate(user)


def get_users(db: Session, ids: Optional[list[int]], from_: int, size: int) -> list[UserOut]:
    logger.info("Getting users: ids=%s, from=%s, size=%s", ids, from_, size)

    stmt = select(User).order_by(User.id)
    if ids:
        stmt = stmt.where(User.id.in_(ids))
    stmt = stmt.offset((from_ // size) * size).limit(size)

    return [UserOut.model_validate(user) for user in db.scalars(stmt)]
