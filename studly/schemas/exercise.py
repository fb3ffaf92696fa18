from typing import Optional

from pydantic import PositiveInt

from studly.models.exercise import ExerciseType
from studly.schemas.base import CamelModel, Description, Name, TimestampedOut, UpdateModel


class ExerciseCreate(CamelModel):
    name: Name
    description: Optional[Description] = None
    subject_id: PositiveInt
    lesson_id: Optional[PositiveInt] = None
    sub_lesson_id: Optional[PositiveInt] = None
    exercise_type: ExerciseType = ExerciseType.QCM


class ExerciseUpdate(UpdateModel):
    nullable_fields = frozenset({"description", "lesson_id", "sub_lesson_id"})

    name: Optional[Name] = None
    description: Optional[Description] = None
    subject_id: Optional[PositiveInt] = None
    lesson_id: Optional[PositiveInt] = None
    sub_lesson_id: Optional[PositiveInt] = None
    exercise_type: Optional[ExerciseType] = None


class ExerciseOut(TimestampedOut):
    name: str
    description: Optional[str] = None
    subject_id: int
    lesson_id: Optional[int] = None
    sub_lesson_id: Optional[int] = None
    exercise_type: ExerciseType
