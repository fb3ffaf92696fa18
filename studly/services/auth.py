import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from studly.core.config import get_settings
from studly.core.errors import AuthError, ConflictError
from studly.core.security import create_access_token, hash_password, verify_password
from studly.db.base import utcnow
from studly.models import User, UserRole
from studly.schemas.user import RegisterRequest

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register_user(db: Session, request: RegisterRequest) -> User:
    if get_user_by_email(db, request.email):
        raise ConflictError("A user with this email already exists")
    user = User(
        email=request.email,
        name=request.name,
        first_name=request.first_name,
        password_hash=hash_password(request.password),
        role=UserRole.STUDENT,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("New user registered: %s", user.email)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        raise AuthError(INVALID_CREDENTIALS, status_code=400)
    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)
    logger.info("User logged in: %s", user.email)
    return user


def build_access_token(user: User) -> str:
    settings = get_settings()
    return create_access_token(
        user_id=user.id,
        email=user.email,
        expires_delta=timedelta(hours=settings.access_token_expire_hours),
    )


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect", status_code=400)
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed for %s", user.email)
