import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from studly.api.deps import ListParams, SearchParams, get_current_user, get_db, list_params, search_params
from studly.api.responses import envelope, paginated
from studly.core.errors import ConflictError, ValidationError
from studly.db.base import fold_name
from studly.models import Exercise, Lesson, SubLesson, Subject, User
from studly.schemas.exercise import ExerciseOut
from studly.schemas.lesson import LessonOut
from studly.schemas.school_class import ClassOut
from studly.schemas.sub_lesson import SubLessonBulkUpdate, SubLessonCreate, SubLessonOut, SubLessonUpdate
from studly.schemas.subject import SubjectOut
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

router = APIRouter(prefix="/sub-lessons", tags=["sub-lessons"])

SUB_LESSON_INCLUDES = {
    "lesson": Relation("lesson", LessonOut, many=False),
    "exercises": Relation("exercises", ExerciseOut),
}
SUB_LESSON_DEPENDENTS = [
    Dependent(Exercise, "sub_lesson_id", "exercise"),
]

OrderBy = Literal["name", "createdAt", "updatedAt"]
Order = Literal["asc", "desc"]


def apply_sub_lesson_changes(db: Session, sub_lesson: SubLesson, changes: dict) -> SubLesson:
    """Run the reference and uniqueness checks for ``changes`` and apply them."""
    if reference_changed(sub_lesson.lesson_id, changes.get("lesson_id")):
        require_reference(db, Lesson, changes["lesson_id"], "lessonId")

    name = changes.get("name", sub_lesson.name)
    lesson_id = changes.get("lesson_id", sub_lesson.lesson_id)
    if name != sub_lesson.name or lesson_id != sub_lesson.lesson_id:
        ensure_unique_name(db, SubLesson, name, "sub-lesson", "lesson_id", lesson_id, exclude_id=sub_lesson.id)

    return apply_changes(sub_lesson, changes)


@router.get("")
def list_sub_lessons(
    lesson_id: Optional[int] = Query(None, alias="lessonId"),
    order_by: OrderBy = Query("name", alias="orderBy"),
    order: Order = Query("asc"),
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(params.include, SUB_LESSON_INCLUDES)
    spec = (
        QuerySpec()
        .where(
            equals(SubLesson.lesson_id, lesson_id),
            contains_text(params.search, [SubLesson.name_key, SubLesson.description]),
        )
        .ordered(*sort_order(SubLesson, order_by, order))
    )
    page = fetch_page(db, SubLesson, spec, params.limit, params.offset, loader_options(SubLesson, includes))
    data = [serialize(item, SubLessonOut, includes) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/search")
def search_sub_lessons(
    lesson_id: Optional[int] = Query(None, alias="lessonId"),
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    params: SearchParams = Depends(search_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    spec = QuerySpec().where(
        contains_text(params.q, [SubLesson.name_key, SubLesson.description]),
        equals(SubLesson.lesson_id, lesson_id),
    )
    if subject_id is not None and lesson_id is None:
        spec = spec.where(SubLesson.lesson.has(Lesson.subject_id == subject_id))
    spec = spec.ordered(SubLesson.name.asc(), SubLesson.id.asc())

    options = [selectinload(SubLesson.lesson).selectinload(Lesson.subject).selectinload(Subject.school_class)]
    page = fetch_page(db, SubLesson, spec, params.limit, 0, options)

    data = []
    for sub_lesson in page.items:
        hit = serialize(sub_lesson, SubLessonOut)
        lesson = serialize(sub_lesson.lesson, LessonOut)
        lesson["subject"] = serialize(
            sub_lesson.lesson.subject, SubjectOut, {"class": Relation("school_class", ClassOut, many=False)}
        )
        hit["lesson"] = lesson
        hit["counts"] = count_dependents(db, sub_lesson.id, [Dependent(Exercise, "sub_lesson_id", "exercises")])
        data.append(hit)
    return envelope(data)


@router.put("/bulk")
def bulk_update_sub_lessons(
    payload: SubLessonBulkUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ids = [update.id for update in payload.updates]
    if len(set(ids)) != len(ids):
        raise ValidationError.for_field("updates", "Each sub-lesson may appear only once")

    sub_lessons = {item.id: item for item in db.query(SubLesson).filter(SubLesson.id.in_(ids)).all()}
    missing = [str(sub_lesson_id) for sub_lesson_id in ids if sub_lesson_id not in sub_lessons]
    if missing:
        raise ValidationError.for_field("updates", f"Unknown sub-lesson id(s): {', '.join(missing)}")

    # Uniqueness is judged on the state after the whole batch, so two siblings
    # may swap names.
    planned = {}
    for update in payload.updates:
        changes = update.changes()
        changes.pop("id", None)
        sub_lesson = sub_lessons[update.id]
        if reference_changed(sub_lesson.lesson_id, changes.get("lesson_id")):
            require_reference(db, Lesson, changes["lesson_id"], "lessonId")
        planned[update.id] = changes

    final_keys = {}
    moving = []
    for sub_lesson_id, changes in planned.items():
        sub_lesson = sub_lessons[sub_lesson_id]
        name = changes.get("name", sub_lesson.name)
        lesson_id = changes.get("lesson_id", sub_lesson.lesson_id)
        key = (lesson_id, fold_name(name))
        if key in final_keys:
            raise ConflictError("A sub-lesson with this name already exists in this scope")
        final_keys[key] = sub_lesson_id
        if key != (sub_lesson.lesson_id, sub_lesson.name_key):
            ensure_unique_name(db, SubLesson, name, "sub-lesson", "lesson_id", lesson_id, exclude_ids=ids)
            moving.append(sub_lesson)

    # Park the moving rows on keys no stripped name folds to, then write the
    # real ones; SQLite checks the unique constraint row by row.
    for sub_lesson in moving:
        sub_lesson.name_key = f" {sub_lesson.id}"
    db.flush()
    for sub_lesson_id, changes in planned.items():
        sub_lesson = apply_changes(sub_lessons[sub_lesson_id], changes)
        sub_lesson.name_key = fold_name(sub_lesson.name)
    db.commit()
    logger.info("%s sub-lesson(s) bulk updated, %s renamed or moved", len(ids), len(moving))

    data = []
    for sub_lesson_id in ids:
        sub_lesson = sub_lessons[sub_lesson_id]
        db.refresh(sub_lesson)
        data.append(serialize(sub_lesson, SubLessonOut))
    return envelope(data, message=f"{len(data)} sub-lesson(s) updated")


@router.get("/{sub_lesson_id}")
def get_sub_lesson(
    sub_lesson_id: int,
    include: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, SUB_LESSON_INCLUDES)
    sub_lesson = get_or_404(db, SubLesson, sub_lesson_id, "Sub-lesson")
    return envelope(serialize(sub_lesson, SubLessonOut, includes))


@router.get("/{sub_lesson_id}/exercises")
def list_sub_lesson_exercises(
    sub_lesson_id: int,
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, SubLesson, sub_lesson_id, "Sub-lesson")
    spec = (
        QuerySpec()
        .where(Exercise.sub_lesson_id == sub_lesson_id)
        .ordered(Exercise.created_at.asc(), Exercise.id.asc())
    )
    page = fetch_page(db, Exercise, spec, params.limit, params.offset)
    data = [serialize(item, ExerciseOut) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.post("", status_code=201)
def create_sub_lesson(
    payload: SubLessonCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_reference(db, Lesson, payload.lesson_id, "lessonId")
    ensure_unique_name(db, SubLesson, payload.name, "sub-lesson", "lesson_id", payload.lesson_id)

    sub_lesson = save(db, SubLesson(**payload.model_dump()))
    logger.info("Sub-lesson %s created in lesson %s", sub_lesson.id, sub_lesson.lesson_id)
    return envelope(
        serialize(sub_lesson, SubLessonOut, {"lesson": SUB_LESSON_INCLUDES["lesson"]}),
        message="Sub-lesson created",
    )


@router.put("/{sub_lesson_id}")
def update_sub_lesson(
    sub_lesson_id: int,
    payload: SubLessonUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub_lesson = get_or_404(db, SubLesson, sub_lesson_id, "Sub-lesson")
    sub_lesson = save(db, apply_sub_lesson_changes(db, sub_lesson, payload.changes()))
    return envelope(
        serialize(sub_lesson, SubLessonOut, {"lesson": SUB_LESSON_INCLUDES["lesson"]}),
        message="Sub-lesson updated",
    )


@router.delete("/{sub_lesson_id}")
def delete_sub_lesson(
    sub_lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub_lesson = get_or_404(db, SubLesson, sub_lesson_id, "Sub-lesson")
    ensure_no_dependents(db, "sub-lesson", sub_lesson_id, SUB_LESSON_DEPENDENTS)
    remove(db, sub_lesson)
    logger.info("Sub-lesson %s deleted", sub_lesson_id)
    return envelope(message="Sub-lesson deleted")
