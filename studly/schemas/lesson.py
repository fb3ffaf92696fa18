from typing import Optional

from pydantic import PositiveInt

from studly.schemas.base import CamelModel, Description, Name, TimestampedOut, UpdateModel


class LessonCreate(CamelModel):
    name: Name
    description: Optional[Description] = None
    subject_id: PositiveInt


class LessonUpdate(UpdateModel):
    name: Optional[Name] = None
    description: Optional[Description] = None
    subject_id: Optional[PositiveInt] = None


class LessonOut(TimestampedOut):
    name: str
    description: Optional[str] = None
    subject_id: int


class LessonUserCreate(CamelModel):
    user_id: PositiveInt


class LessonUserOut(TimestampedOut):
    user_id: int
    lesson_id: int
