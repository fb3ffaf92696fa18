from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from studly.core.config import get_settings
from studly.core.errors import AuthError, PermissionDeniedError, ValidationError
from studly.core.security import decode_access_token
from studly.db.session import SessionLocal
from studly.models import User, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/users/login")


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    payload = decode_access_token(token)
    user = db.get(User, payload["userId"])
    if not user or user.email != payload["email"]:
        raise AuthError("Could not validate credentials")
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise PermissionDeniedError("Admin role required")
    return current_user


@dataclass
class ListParams:
    limit: int
    offset: int
    search: Optional[str] = None
    include: Optional[str] = None


def list_params(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    include: Optional[str] = Query(None),
) -> ListParams:
    settings = get_settings()
    if limit is None:
        limit = settings.default_page_limit
    if limit > settings.max_page_limit:
        raise ValidationError.for_field("limit", f"limit must not exceed {settings.max_page_limit}")
    return ListParams(limit=limit, offset=offset, search=search, include=include)


@dataclass
class SearchParams:
    q: str
    limit: int


def search_params(
    q: str = Query(..., min_length=1),
    limit: Optional[int] = Query(None, ge=1),
) -> SearchParams:
    settings = get_settings()
    if limit is None:
        limit = settings.search_limit
    if limit > settings.max_page_limit:
        raise ValidationError.for_field("limit", f"limit must not exceed {settings.max_page_limit}")
    return SearchParams(q=q, limit=limit)
