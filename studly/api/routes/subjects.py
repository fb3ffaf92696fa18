import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studly.api.deps import ListParams, get_current_user, get_db, list_params
from studly.api.responses import envelope, paginated
from studly.core.errors import ValidationError
from studly.models import Exercise, Lesson, SchoolClass, Subject, User
from studly.schemas.exercise import ExerciseOut
from studly.schemas.lesson import LessonOut
from studly.schemas.school_class import ClassOut
from studly.schemas.subject import SubjectCreate, SubjectOut, SubjectUpdate
from studly.services.crud import apply_changes, remove, save
from studly.services.guard import (
    Dependent,
    ensure_no_dependents,
    ensure_unique_name,
    get_or_404,
    reference_changed,
    require_reference,
)
from studly.services.includes import Relation, loader_options, parse_includes, serialize
from studly.services.query import QuerySpec, contains_text, equals, fetch_page, newest_first

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subjects", tags=["subjects"])

SUBJECT_INCLUDES = {
    "class": Relation("school_class", ClassOut, many=False),
    "lessons": Relation("lessons", LessonOut),
    "exercises": Relation("exercises", ExerciseOut),
}
SUBJECT_DEPENDENTS = [
    Dependent(Lesson, "subject_id", "lesson"),
    Dependent(Exercise, "subject_id", "exercise"),
]


def check_points(points_total: Optional[int], points_threshold: Optional[int]) -> None:
    if points_total is not None and points_threshold is not None and points_threshold > points_total:
        raise ValidationError.for_field("pointsThreshold", "pointsThreshold must not exceed pointsTotal")


@router.get("")
def list_subjects(
    class_id: Optional[int] = Query(None, alias="classId"),
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(params.include, SUBJECT_INCLUDES)
    spec = (
        QuerySpec()
        .where(
            equals(Subject.class_id, class_id),
            contains_text(params.search, [Subject.name_key, Subject.description]),
        )
        .ordered(*newest_first(Subject))
    )
    page = fetch_page(db, Subject, spec, params.limit, params.offset, loader_options(Subject, includes))
    data = [serialize(item, SubjectOut, includes) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/{subject_id}")
def get_subject(
    subject_id: int,
    include: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, SUBJECT_INCLUDES)
    subject = get_or_404(db, Subject, subject_id, "Subject")
    return envelope(serialize(subject, SubjectOut, includes))


@router.get("/{subject_id}/lessons")
def list_subject_lessons(
    subject_id: int,
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, Subject, subject_id, "Subject")
    spec = (
        QuerySpec()
        .where(Lesson.subject_id == subject_id, contains_text(params.search, [Lesson.name_key, Lesson.description]))
        .ordered(Lesson.name.asc(), Lesson.id.asc())
    )
    page = fetch_page(db, Lesson, spec, params.limit, params.offset)
    data = [serialize(item, LessonOut) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/{subject_id}/exercises")
def list_subject_exercises(
    subject_id: int,
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, Subject, subject_id, "Subject")
    spec = (
        QuerySpec()
        .where(Exercise.subject_id == subject_id, contains_text(params.search, [Exercise.name, Exercise.description]))
        .ordered(*newest_first(Exercise))
    )
    page = fetch_page(db, Exercise, spec, params.limit, params.offset)
    data = [serialize(item, ExerciseOut) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.post("", status_code=201)
def create_subject(
    payload: SubjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    check_points(payload.points_total, payload.points_threshold)
    require_reference(db, SchoolClass, payload.class_id, "classId")
    ensure_unique_name(db, Subject, payload.name, "subject", "class_id", payload.class_id)

    subject = save(db, Subject(**payload.model_dump()))
    logger.info("Subject %s created in class %s", subject.id, subject.class_id)
    return envelope(serialize(subject, SubjectOut, {"class": SUBJECT_INCLUDES["class"]}), message="Subject created")


@router.put("/{subject_id}")
def update_subject(
    subject_id: int,
    payload: SubjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subject = get_or_404(db, Subject, subject_id, "Subject")
    changes = payload.changes()

    check_points(
        changes.get("points_total", subject.points_total),
        changes.get("points_threshold", subject.points_threshold),
    )
    if reference_changed(subject.class_id, changes.get("class_id")):
        require_reference(db, SchoolClass, changes["class_id"], "classId")

    name = changes.get("name", subject.name)
    class_id = changes.get("class_id", subject.class_id)
    if name != subject.name or class_id != subject.class_id:
        ensure_unique_name(db, Subject, name, "subject", "class_id", class_id, exclude_id=subject.id)

    subject = save(db, apply_changes(subject, changes))
    return envelope(serialize(subject, SubjectOut, {"class": SUBJECT_INCLUDES["class"]}), message="Subject updated")


@router.delete("/{subject_id}")
def delete_subject(
    subject_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subject = get_or_404(db, Subject, subject_id, "Subject")
    ensure_no_dependents(db, "subject", subject_id, SUBJECT_DEPENDENTS)
    remove(db, subject)
    logger.info("Subject %s deleted", subject_id)
    return envelope(message="Subject deleted")
