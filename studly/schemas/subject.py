from typing import Optional

from pydantic import PositiveInt

from studly.schemas.base import CamelModel, Description, Name, TimestampedOut, UpdateModel


class SubjectCreate(CamelModel):
    name: Name
    description: Optional[Description] = None
    class_id: PositiveInt
    points_total: Optional[PositiveInt] = None
    points_threshold: Optional[PositiveInt] = None


class SubjectUpdate(UpdateModel):
    nullable_fields = frozenset({"description", "points_total", "points_threshold"})

    name: Optional[Name] = None
    description: Optional[Description] = None
    class_id: Optional[PositiveInt] = None
    points_total: Optional[PositiveInt] = None
    points_threshold: Optional[PositiveInt] = None


class SubjectOut(TimestampedOut):
    name: str
    description: Optional[str] = None
    class_id: int
    points_total: Optional[int] = None
    points_threshold: Optional[int] = None
