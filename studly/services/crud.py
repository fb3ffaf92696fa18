from typing import Any, Dict

from sqlalchemy.orm import Session


def apply_changes(entity: Any, changes: Dict[str, Any]) -> Any:
    for key, value in changes.items():
        setattr(entity, key, value)
    return entity


def save(db: Session, entity: Any) -> Any:
    db.add(entity)
    db.commit()
    db.refresh(entity)
    return entity


def remove(db: Session, entity: Any) -> None:
    db.delete(entity)
    db.commit()
