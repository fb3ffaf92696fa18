import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from studly.api.deps import ListParams, SearchParams, get_current_user, get_db, list_params, search_params
from studly.api.responses import envelope, paginated
from studly.core.errors import ConflictError, NotFoundError
from studly.models import Exercise, Lesson, SubLesson, Subject, User, UserLesson
from studly.schemas.exercise import ExerciseOut
from studly.schemas.lesson import LessonCreate, LessonOut, LessonUpdate, LessonUserCreate, LessonUserOut
from studly.schemas.school_class import ClassOut
from studly.schemas.sub_lesson import SubLessonOut
from studly.schemas.subject import SubjectOut
from studly.schemas.user import UserOut
from studly.services.crud import apply_changes, remove, save
from studly.services.guard import (
    Dependent,
    count_dependents,
    ensure_no_dependents,
    ensure_unique_name,
    get_or_404,
    reference_changed,
    require_reference,
)
from studly.services.includes import Relation, loader_options, parse_includes, serialize
from studly.services.query import QuerySpec, contains_text, equals, fetch_page, sort_order

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lessons", tags=["lessons"])

LESSON_INCLUDES = {
    "subject": Relation("subject", SubjectOut, many=False),
    "subLessons": Relation("sub_lessons", SubLessonOut),
    "exercises": Relation("exercises", ExerciseOut),
    "users": Relation("user_links", UserOut, through="user"),
}
LESSON_DEPENDENTS = [
    Dependent(SubLesson, "lesson_id", "sub-lesson"),
    Dependent(Exercise, "lesson_id", "exercise"),
    Dependent(UserLesson, "lesson_id", "enrolled user"),
]
LESSON_CONTENT = [
    Dependent(SubLesson, "lesson_id", "subLessons"),
    Dependent(Exercise, "lesson_id", "exercises"),
]

OrderBy = Literal["name", "createdAt", "updatedAt"]
Order = Literal["asc", "desc"]


@router.get("")
def list_lessons(
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    order_by: OrderBy = Query("name", alias="orderBy"),
    order: Order = Query("asc"),
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(params.include, LESSON_INCLUDES)
    spec = (
        QuerySpec()
        .where(
            equals(Lesson.subject_id, subject_id),
            contains_text(params.search, [Lesson.name_key, Lesson.description]),
        )
        .ordered(*sort_order(Lesson, order_by, order))
    )
    page = fetch_page(db, Lesson, spec, params.limit, params.offset, loader_options(Lesson, includes))
    data = [serialize(item, LessonOut, includes) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/search")
def search_lessons(
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    params: SearchParams = Depends(search_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    spec = (
        QuerySpec()
        .where(
            contains_text(params.q, [Lesson.name_key, Lesson.description]),
            equals(Lesson.subject_id, subject_id),
        )
        .ordered(Lesson.name.asc(), Lesson.id.asc())
    )
    options = [selectinload(Lesson.subject).selectinload(Subject.school_class)]
    page = fetch_page(db, Lesson, spec, params.limit, 0, options)

    data = []
    for lesson in page.items:
        hit = serialize(lesson, LessonOut)
        hit["subject"] = serialize(lesson.subject, SubjectOut, {"class": Relation("school_class", ClassOut, many=False)})
        hit["counts"] = count_dependents(db, lesson.id, LESSON_CONTENT)
        data.append(hit)
    return envelope(data)


@router.get("/{lesson_id}")
def get_lesson(
    lesson_id: int,
    include: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, LESSON_INCLUDES)
    lesson = get_or_404(db, Lesson, lesson_id, "Lesson")
    return envelope(serialize(lesson, LessonOut, includes))


@router.get("/{lesson_id}/sub-lessons")
def list_lesson_sub_lessons(
    lesson_id: int,
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, Lesson, lesson_id, "Lesson")
    spec = QuerySpec().where(SubLesson.lesson_id == lesson_id).ordered(SubLesson.created_at.asc(), SubLesson.id.asc())
    page = fetch_page(db, SubLesson, spec, params.limit, params.offset)
    data = [serialize(item, SubLessonOut) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/{lesson_id}/exercises")
def list_lesson_exercises(
    lesson_id: int,
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, Lesson, lesson_id, "Lesson")
    spec = QuerySpec().where(Exercise.lesson_id == lesson_id).ordered(Exercise.created_at.asc(), Exercise.id.asc())
    page = fetch_page(db, Exercise, spec, params.limit, params.offset)
    data = [serialize(item, ExerciseOut) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.post("", status_code=201)
def create_lesson(
    payload: LessonCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_reference(db, Subject, payload.subject_id, "subjectId")
    ensure_unique_name(db, Lesson, payload.name, "lesson", "subject_id", payload.subject_id)

    lesson = save(db, Lesson(**payload.model_dump()))
    logger.info("Lesson %s created in subject %s", lesson.id, lesson.subject_id)
    return envelope(serialize(lesson, LessonOut, {"subject": LESSON_INCLUDES["subject"]}), message="Lesson created")


@router.put("/{lesson_id}")
def update_lesson(
    lesson_id: int,
    payload: LessonUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lesson = get_or_404(db, Lesson, lesson_id, "Lesson")
    changes = payload.changes()

    if reference_changed(lesson.subject_id, changes.get("subject_id")):
        require_reference(db, Subject, changes["subject_id"], "subjectId")

    name = changes.get("name", lesson.name)
    subject_id = changes.get("subject_id", lesson.subject_id)
    if name != lesson.name or subject_id != lesson.subject_id:
        ensure_unique_name(db, Lesson, name, "lesson", "subject_id", subject_id, exclude_id=lesson.id)

    lesson = save(db, apply_changes(lesson, changes))
    return envelope(serialize(lesson, LessonOut, {"subject": LESSON_INCLUDES["subject"]}), message="Lesson updated")


@router.delete("/{lesson_id}")
def delete_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lesson = get_or_404(db, Lesson, lesson_id, "Lesson")
    ensure_no_dependents(db, "lesson", lesson_id, LESSON_DEPENDENTS)
    remove(db, lesson)
    logger.info("Lesson %s deleted", lesson_id)
    return envelope(message="Lesson deleted")


@router.post("/{lesson_id}/users", status_code=201)
def enrol_user(
    lesson_id: int,
    payload: LessonUserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, Lesson, lesson_id, "Lesson")
    require_reference(db, User, payload.user_id, "userId")
    existing = db.query(UserLesson).filter(
        UserLesson.lesson_id == lesson_id,
        UserLesson.user_id == payload.user_id,
    ).first()
    if existing:
        raise ConflictError("User is already enrolled in this lesson")

    link = save(db, UserLesson(lesson_id=lesson_id, user_id=payload.user_id))
    return envelope(serialize(link, LessonUserOut), message="User enrolled")


@router.delete("/{lesson_id}/users/{user_id}")
def unenrol_user(
    lesson_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    link = db.query(UserLesson).filter(
        UserLesson.lesson_id == lesson_id,
        UserLesson.user_id == user_id,
    ).first()
    if not link:
        raise NotFoundError("Enrolment not found")
    remove(db, link)
    return envelope(message="User unenrolled")
