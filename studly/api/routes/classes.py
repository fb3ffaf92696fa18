import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studly.api.deps import ListParams, get_current_user, get_db, list_params
from studly.api.responses import envelope, paginated
from studly.models import SchoolClass, Subject, User
from studly.schemas.school_class import ClassCreate, ClassOut, ClassUpdate
from studly.schemas.subject import SubjectOut
from studly.services.crud import apply_changes, remove, save
from studly.services.guard import Dependent, ensure_no_dependents, ensure_unique_name, get_or_404
from studly.services.includes import Relation, loader_options, parse_includes, serialize
from studly.services.query import QuerySpec, contains_text, fetch_page, newest_first

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes", tags=["classes"])

CLASS_INCLUDES = {
    "subjects": Relation("subjects", SubjectOut),
}
CLASS_DEPENDENTS = [
    Dependent(Subject, "class_id", "subject"),
]


@router.get("")
def list_classes(
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(params.include, CLASS_INCLUDES)
    spec = (
        QuerySpec()
        .where(contains_text(params.search, [SchoolClass.name_key]))
        .ordered(*newest_first(SchoolClass))
    )
    page = fetch_page(db, SchoolClass, spec, params.limit, params.offset, loader_options(SchoolClass, includes))
    data = [serialize(item, ClassOut, includes) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.get("/{class_id}")
def get_class(
    class_id: int,
    include: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    includes = parse_includes(include, CLASS_INCLUDES)
    school_class = get_or_404(db, SchoolClass, class_id, "Class")
    return envelope(serialize(school_class, ClassOut, includes))


@router.get("/{class_id}/subjects")
def list_class_subjects(
    class_id: int,
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_or_404(db, SchoolClass, class_id, "Class")
    spec = (
        QuerySpec()
        .where(Subject.class_id == class_id, contains_text(params.search, [Subject.name_key, Subject.description]))
        .ordered(Subject.name.asc(), Subject.id.asc())
    )
    page = fetch_page(db, Subject, spec, params.limit, params.offset)
    data = [serialize(item, SubjectOut) for item in page.items]
    return paginated(data, page.total, params.limit, params.offset)


@router.post("", status_code=201)
def create_class(
    payload: ClassCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_unique_name(db, SchoolClass, payload.name, "class")
    school_class = save(db, SchoolClass(name=payload.name))
    logger.info("Class %s created: %s", school_class.id, school_class.name)
    return envelope(serialize(school_class, ClassOut), message="Class created")


@router.put("/{class_id}")
def update_class(
    class_id: int,
    payload: ClassUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    school_class = get_or_404(db, SchoolClass, class_id, "Class")
    changes = payload.changes()

    if "name" in changes and changes["name"] != school_class.name:
        ensure_unique_name(db, SchoolClass, changes["name"], "class", exclude_id=school_class.id)

    school_class = save(db, apply_changes(school_class, changes))
    return envelope(serialize(school_class, ClassOut), message="Class updated")


@router.delete("/{class_id}")
def delete_class(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    school_class = get_or_404(db, SchoolClass, class_id, "Class")
    ensure_no_dependents(db, "class", class_id, CLASS_DEPENDENTS)
    remove(db, school_class)
    logger.info("Class %s deleted", class_id)
    return envelope(message="Class deleted")
