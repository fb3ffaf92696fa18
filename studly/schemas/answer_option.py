from typing import List, Optional

from pydantic import Field, NonNegativeInt, PositiveInt

from studly.schemas.base import CamelModel, Description, Name, TimestampedOut, UpdateModel


class AnswerOptionCreate(CamelModel):
    name: Name
    description: Optional[Description] = None
    exercise_id: PositiveInt
    points: Optional[NonNegativeInt] = None
    is_correct: bool = False
    is_selected: bool = False


class AnswerOptionUpdate(UpdateModel):
    nullable_fields = frozenset({"description", "points"})

    name: Optional[Name] = None
    description: Optional[Description] = None
    points: Optional[NonNegativeInt] = None
    is_correct: Optional[bool] = None
    is_selected: Optional[bool] = None


class AnswerOptionBulkItem(CamelModel):
    name: Name
    description: Optional[Description] = None
    points: Optional[NonNegativeInt] = None
    is_correct: bool = False


class AnswerOptionBulkCreate(CamelModel):
    exercise_id: PositiveInt
    options: List[AnswerOptionBulkItem] = Field(min_length=1)


class AnswerOptionSelect(CamelModel):
    is_selected: bool


class AnswerOptionOut(TimestampedOut):
    name: str
    description: Optional[str] = None
    exercise_id: int
    points: Optional[int] = None
    is_correct: bool
    is_selected: bool
