import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studly.api.deps import ListParams, get_current_user, get_db, list_params
from studly.api.responses import envelope, paginated
from studly.models import AnswerOption, Exercise, ExerciseType, Lesson, SubLesson, Subject, User
from studly.schemas.answer_option import AnswerOptionOut
from studly.schemas.exercise import ExerciseCreate, ExerciseOut, ExerciseUpdate
from studly.schemas.lesson import LessonOut
from studly.schemas.sub_lesson import SubLessonOut
from studly.schemas.subject import SubjectOut
from studly.services.crud import apply_changes, remove, save
from studly.services.guard import get_or_404, reference_changed, require_reference
from studly.services.includes import Relation, loader_options, parse_includes, serialize
from studly.services.query import QuerySpec, contains_text, equals, fetch_page, newest_first

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exercises", tags=["exercises"])

EXERCISE_INCLUDES = {
    "subject": Relation("subject", SubjectOut, many=False),
    "lesson": Relation("lesson", LessonOut, many=False),
    "subLesson": Relation("sub_lesson", SubLessonOut, many=False),
    "options": Relation("options", AnswerOptionOut),
}
PARENT_INCLUDES = {name: EXERCISE_INCLUDES[name] for name in ("subject", "lesson", "subLesson")}

# optional parents: payload field, model, json name
OPTIONAL_PARENTS = (
    ("lesson_id", Lesson, "lessonId"),
    ("sub_lesson_id", SubLesson, "subLessonId"),
)


@router.get("")
def list_exercises(
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    lesson_id: Optional[int] = Query(None, alias="lessonId"),
    sub_lesson_id: Optional[int] = Query(None, alias="subLessonId"),
    exercise_type: Optional[ExerciseType] = Query(None, alias="exerciseType"),
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(params.include, EXERCISE_INCLUDES)
    spec = (
        QuerySpec()
        .where(
            equals(Exercise.subject_id, subject_id),
            equals(Exercise.lesson_id, lesson_id),
            equals(Exercise.sub_lesson_id, sub_lesson_id),
            equals(Exercise.exercise_type, exercise_type),
            contains_text(params.search, [Exercise.name, Exercise.description]),
        )
        .ordered(*newest_first(Exercise))
    )
    page = fetch_page(db, Exercise, spec, params.limit, params.offset, loader_options(Exercise, includes))
    data = [serialize(item, ExerciseOut, includes) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/{exercise_id}")
def get_exercise(
    exercise_id: int,
    include: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, EXERCISE_INCLUDES)
    exercise = get_or_404(db, Exercise, exercise_id, "Exercise")
    return envelope(serialize(exercise, ExerciseOut, includes))


@router.get("/{exercise_id}/answer-options")
def list_exercise_options(
    exercise_id: int,
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, Exercise, exercise_id, "Exercise")
    spec = (
        QuerySpec()
        .where(AnswerOption.exercise_id == exercise_id)
        .ordered(AnswerOption.created_at.asc(), AnswerOption.id.asc())
    )
    page = fetch_page(db, AnswerOption, spec, params.limit, params.offset)
    data = [serialize(item, AnswerOptionOut) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.post("", status_code=201)
def create_exercise(
    payload: ExerciseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_reference(db, Subject, payload.subject_id, "subjectId")
    for field, model, json_name in OPTIONAL_PARENTS:
        value = getattr(payload, field)
        if value is not None:
            require_reference(db, model, value, json_name)

    exercise = save(db, Exercise(**payload.model_dump()))
    logger.info("Exercise %s created in subject %s", exercise.id, exercise.subject_id)
    return envelope(serialize(exercise, ExerciseOut, PARENT_INCLUDES), message="Exercise created")


@router.put("/{exercise_id}")
def update_exercise(
    exercise_id: int,
    payload: ExerciseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exercise = get_or_404(db, Exercise, exercise_id, "Exercise")
    changes = payload.changes()

    if reference_changed(exercise.subject_id, changes.get("subject_id")):
        require_reference(db, Subject, changes["subject_id"], "subjectId")
    for field, model, json_name in OPTIONAL_PARENTS:
        if reference_changed(getattr(exercise, field), changes.get(field)):
            require_reference(db, model, changes[field], json_name)

    exercise = save(db, apply_changes(exercise, changes))
    return envelope(serialize(exercise, ExerciseOut, PARENT_INCLUDES), message="Exercise updated")


@router.delete("/{exercise_id}")
def delete_exercise(
    exercise_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exercise = get_or_404(db, Exercise, exercise_id, "Exercise")
    option_count = len(exercise.options)
    remove(db, exercise)
    logger.info("Exercise %s deleted with %s answer option(s)", exercise_id, option_count)
    return envelope({"deletedOptions": option_count}, message="Exercise deleted")
