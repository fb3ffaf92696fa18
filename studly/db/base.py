from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base, validates

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fold_name(name: str) -> str:
    """Comparison key for case-insensitive names, including accented capitals."""
    return name.casefold()


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class NameKeyMixin:
    # folded copy of ``name``; uniqueness constraints and name search use it
    name_key = Column(String(200), nullable=False)

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = fold_name(value)
        return value
