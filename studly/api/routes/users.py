import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studly.api.deps import ListParams, get_current_user, get_db, list_params
from studly.api.responses import envelope, paginated
from studly.core.errors import ConflictError, PermissionDeniedError
from studly.core.security import hash_password
from studly.models import User, UserLesson, UserRole
from studly.schemas.lesson import LessonOut
from studly.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserOut,
    UserUpdate,
)
from studly.services.auth import authenticate, build_access_token, change_password, get_user_by_email, register_user
from studly.services.crud import apply_changes, remove, save
from studly.services.guard import Dependent, ensure_no_dependents, get_or_404
from studly.services.includes import Relation, loader_options, parse_includes, serialize
from studly.services.query import QuerySpec, contains_text, equals, fetch_page, newest_first

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

USER_INCLUDES = {
    "lessons": Relation("lesson_links", LessonOut, through="lesson"),
}
USER_DEPENDENTS = [
    Dependent(UserLesson, "user_id", "lesson enrolment"),
]


def ensure_self_or_admin(current_user: User, user_id: int) -> None:
    if current_user.id != user_id and current_user.role != UserRole.ADMIN:
        raise PermissionDeniedError("You can only manage your own account")


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = register_user(db, payload)
    return envelope(serialize(user, UserOut), message="User registered")


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    response = LoginResponse(token=build_access_token(user), user=UserOut.model_validate(user))
    return envelope(response.model_dump(by_alias=True, mode="json"), message="Logged in")


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    # tokens are stateless; the client discards its copy
    return envelope(message="Logged out")


@router.get("/me")
def me(
    include: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, USER_INCLUDES)
    return envelope(serialize(current_user, UserOut, includes))


@router.put("/me/password")
def update_my_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    change_password(db, current_user, payload.current_password, payload.new_password)
    return envelope(message="Password changed")


@router.get("")
def list_users(
    role: Optional[UserRole] = Query(None),
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(params.include, USER_INCLUDES)
    spec = (
        QuerySpec()
        .where(
            equals(User.role, role),
            contains_text(params.search, [User.email, User.name, User.first_name]),
        )
        .ordered(*newest_first(User))
    )
    page = fetch_page(db, User, spec, params.limit, params.offset, loader_options(User, includes))
    data = [serialize(item, UserOut, includes) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/{user_id}")
def get_user(
    user_id: int,
    include: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, USER_INCLUDES)
    user = get_or_404(db, User, user_id, "User")
    return envelope(serialize(user, UserOut, includes))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = get_or_404(db, User, user_id, "User")
    ensure_self_or_admin(current_user, user_id)
    changes = payload.changes()

    if "role" in changes and changes["role"] != user.role and current_user.role != UserRole.ADMIN:
        raise PermissionDeniedError("Admin role required to change roles")
    if "email" in changes and changes["email"] != user.email:
        if get_user_by_email(db, changes["email"]):
            raise ConflictError("This email is already in use")
    if "password" in changes:
        changes["password_hash"] = hash_password(changes.pop("password"))

    user = save(db, apply_changes(user, changes))
    return envelope(serialize(user, UserOut), message="User updated")


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = get_or_404(db, User, user_id, "User")
    ensure_self_or_admin(current_user, user_id)
    ensure_no_dependents(db, "user", user_id, USER_DEPENDENTS)
    remove(db, user)
    logger.info("User %s deleted", user_id)
    return envelope(message="User deleted")
