import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studly.api.deps import ListParams, get_current_user, get_db, list_params
from studly.api.responses import envelope, paginated
from studly.core.errors import ValidationError
from studly.models import AnswerOption, Exercise, ExerciseType, User
from studly.schemas.answer_option import (
    AnswerOptionBulkCreate,
    AnswerOptionCreate,
    AnswerOptionOut,
    AnswerOptionSelect,
    AnswerOptionUpdate,
)
from studly.schemas.exercise import ExerciseOut
from studly.services.crud import apply_changes, remove, save
from studly.services.guard import get_or_404, require_reference
from studly.services.includes import Relation, loader_options, parse_includes, serialize
from studly.services.query import QuerySpec, contains_text, equals, fetch_page, newest_first

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/answer-options", tags=["answer-options"])

OPTION_INCLUDES = {
    "exercise": Relation("exercise", ExerciseOut, many=False),
}


def require_qcm_exercise(db: Session, exercise_id: int) -> Exercise:
    exercise = require_reference(db, Exercise, exercise_id, "exerciseId")
    if exercise.exercise_type != ExerciseType.QCM:
        raise ValidationError.for_field("exerciseId", "Answer options can only be attached to QCM exercises")
    return exercise


@router.get("")
def list_answer_options(
    exercise_id: Optional[int] = Query(None, alias="exerciseId"),
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(params.include, OPTION_INCLUDES)
    spec = (
        QuerySpec()
        .where(
            equals(AnswerOption.exercise_id, exercise_id),
            contains_text(params.search, [AnswerOption.name, AnswerOption.description]),
        )
        .ordered(*newest_first(AnswerOption))
    )
    page = fetch_page(db, AnswerOption, spec, params.limit, params.offset, loader_options(AnswerOption, includes))
    data = [serialize(item, AnswerOptionOut, includes) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.post("/bulk", status_code=201)
def bulk_create_answer_options(
    payload: AnswerOptionBulkCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_qcm_exercise(db, payload.exercise_id)

    options = [
        AnswerOption(exercise_id=payload.exercise_id, is_selected=False, **item.model_dump())
        for item in payload.options
    ]
    db.add_all(options)
    db.commit()
    for option in options:
        db.refresh(option)

    logger.info("%s answer option(s) created for exercise %s", len(options), payload.exercise_id)
    data = [serialize(option, AnswerOptionOut) for option in options]
    return envelope(data, message=f"{len(data)} answer option(s) created")


@router.get("/{option_id}")
def get_answer_option(
    option_id: int,
    include: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, OPTION_INCLUDES)
    option = get_or_404(db, AnswerOption, option_id, "Answer option")
    return envelope(serialize(option, AnswerOptionOut, includes))


@router.post("", status_code=201)
def create_answer_option(
    payload: AnswerOptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_qcm_exercise(db, payload.exercise_id)
    option = save(db, AnswerOption(**payload.model_dump()))
    return envelope(serialize(option, AnswerOptionOut, OPTION_INCLUDES), message="Answer option created")


@router.put("/{option_id}")
def update_answer_option(
    option_id: int,
    payload: AnswerOptionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    option = get_or_404(db, AnswerOption, option_id, "Answer option")
    option = save(db, apply_changes(option, payload.changes()))
    return envelope(serialize(option, AnswerOptionOut, OPTION_INCLUDES), message="Answer option updated")


@router.patch("/{option_id}/select")
def select_answer_option(
    option_id: int,
    payload: AnswerOptionSelect,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    option = get_or_404(db, AnswerOption, option_id, "Answer option")
    option.is_selected = payload.is_selected
    option = save(db, option)
    message = "Answer option selected" if option.is_selected else "Answer option deselected"
    return envelope(serialize(option, AnswerOptionOut), message=message)


@router.delete("/{option_id}")
def delete_answer_option(
    option_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    option = get_or_404(db, AnswerOption, option_id, "Answer option")
    remove(db, option)
    return envelope(message="Answer option deleted")
