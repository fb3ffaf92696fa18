from typing import List, Optional

from pydantic import Field, PositiveInt

from studly.schemas.base import CamelModel, Description, Name, TimestampedOut, UpdateModel


class SubLessonCreate(CamelModel):
    name: Name
    description: Optional[Description] = None
    lesson_id: PositiveInt


class SubLessonUpdate(UpdateModel):
    name: Optional[Name] = None
    description: Optional[Description] = None
    lesson_id: Optional[PositiveInt] = None


class SubLessonBulkItem(SubLessonUpdate):
    id: PositiveInt


class SubLessonBulkUpdate(CamelModel):
    updates: List[SubLessonBulkItem] = Field(min_length=1)


class SubLessonOut(TimestampedOut):
    name: str
    description: Optional[str] = None
    lesson_id: int
