"""Checks every mutating request runs before it writes.

Order inside a handler: payload validation (pydantic), then
``require_reference`` for each parent id, then ``ensure_unique_name``, then the
write. Deletes go through ``get_or_404`` and ``ensure_no_dependents``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Type

from sqlalchemy import func
from sqlalchemy.orm import Session

from studly.core.errors import ConflictError, MissingReferenceError, NotFoundError
from studly.db.base import fold_name

logger = logging.getLogger(__name__)


def get_or_404(db: Session, model: Type[Any], entity_id: int, label: str) -> Any:
    entity = db.get(model, entity_id)
    if entity is None:
        raise NotFoundError(f"{label} not found")
    return entity


def require_reference(db: Session, model: Type[Any], entity_id: int, field: str) -> Any:
    entity = db.get(model, entity_id)
    if entity is None:
        raise MissingReferenceError(field, entity_id)
    return entity


def reference_changed(current: Any, new: Any) -> bool:
    return new is not None and new != current


def ensure_unique_name(
    db: Session,
    model: Type[Any],
    name: str,
    label: str,
    scope_column: Optional[str] = None,
    scope_id: Optional[int] = None,
    exclude_id: Optional[int] = None,
    exclude_ids: Iterable[int] = (),
) -> None:
    """Raise ``ConflictError`` if a sibling already uses ``name``.

    Names are compared on their folded ``name_key``, so "École" and "ÉCOLE"
    collide. Siblings are rows sharing ``scope_column == scope_id``; without a
    scope column the check is global.
    """
    query = db.query(model.id).filter(model.name_key == fold_name(name))
    if scope_column is not None:
        query = query.filter(getattr(model, scope_column) == scope_id)
    excluded = set(exclude_ids)
    if exclude_id is not None:
        excluded.add(exclude_id)
    if excluded:
        query = query.filter(model.id.notin_(excluded))
    if query.first() is not None:
        if scope_column is None:
            raise ConflictError(f"A {label} with this name already exists")
        raise ConflictError(f"A {label} with this name already exists in this scope")


@dataclass(frozen=True)
class Dependent:
    model: Type[Any]
    foreign_key: str
    label: str


def count_dependents(db: Session, entity_id: int, dependents: Sequence[Dependent]) -> dict:
    counts = {}
    for dependent in dependents:
        column = getattr(dependent.model, dependent.foreign_key)
        counts[dependent.label] = db.query(func.count(dependent.model.id)).filter(column == entity_id).scalar()
    return counts


def ensure_no_dependents(db: Session, label: str, entity_id: int, dependents: Sequence[Dependent]) -> None:
    counts = count_dependents(db, entity_id, dependents)
    blocking = [f"{count} {name}(s)" for name, count in counts.items() if count]
    if blocking:
        logger.info("Refused to delete %s %s: %s", label, entity_id, ", ".join(blocking))
        raise ConflictError(f"Cannot delete {label}: it contains {', '.join(blocking)}")
