"""Listing helpers: a small predicate list independent of route code."""
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type

from sqlalchemy import or_
from sqlalchemy.orm import Session

from studly.db.base import fold_name


@dataclass(frozen=True)
class QuerySpec:
    predicates: Tuple[Any, ...] = ()
    order_by: Tuple[Any, ...] = ()

    def where(self, *clauses: Any) -> "QuerySpec":
        kept = tuple(clause for clause in clauses if clause is not None)
        return QuerySpec(self.predicates + kept, self.order_by)

    def ordered(self, *columns: Any) -> "QuerySpec":
        return QuerySpec(self.predicates, tuple(columns))


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    total: int = 0


def equals(column: Any, value: Any) -> Optional[Any]:
    if value is None:
        return None
    return column == value


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_text(term: Optional[str], columns: Sequence[Any]) -> Optional[Any]:
    """Case-insensitive substring match against any of ``columns``.

    The term is case-folded first. Against a ``name_key`` column that folds
    accented capitals too; other columns rely on the database ``LIKE``, which
    for SQLite only folds ASCII letters.
    """
    if not term or not term.strip():
        return None
    pattern = f"%{_escape_like(fold_name(term.strip()))}%"
    return or_(*(column.ilike(pattern, escape="\\") for column in columns))


def newest_first(model: Type[Any]) -> Tuple[Any, ...]:
    return (model.created_at.desc(), model.id.desc())


def sort_order(model: Type[Any], order_by: str, order: str) -> Tuple[Any, ...]:
    column = {
        "name": model.name,
        "createdAt": model.created_at,
        "updatedAt": model.updated_at,
    }[order_by]
    if order == "desc":
        return (column.desc(), model.id.desc())
    return (column.asc(), model.id.asc())


def fetch_page(
    db: Session,
    model: Type[Any],
    spec: QuerySpec,
    limit: int,
    offset: int,
    options: Iterable[Any] = (),
) -> Page:
    query = db.query(model)
    for predicate in spec.predicates:
        query = query.filter(predicate)
    total = query.count()
    items = (
        query.options(*options)
        .order_by(*spec.order_by)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return Page(items=items, total=total)
