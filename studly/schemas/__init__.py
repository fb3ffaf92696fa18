from studly.schemas.base import Pagination
from studly.schemas.school_class import ClassCreate, ClassUpdate, ClassOut
from studly.schemas.subject import SubjectCreate, SubjectUpdate, SubjectOut
from studly.schemas.lesson import LessonCreate, LessonUpdate, LessonOut, LessonUserCreate, LessonUserOut
from studly.schemas.sub_lesson import (
    SubLessonCreate,
    SubLessonUpdate,
    SubLessonBulkUpdate,
    SubLessonOut,
)
from studly.schemas.exercise import ExerciseCreate, ExerciseUpdate, ExerciseOut
from studly.schemas.answer_option import (
    AnswerOptionCreate,
    AnswerOptionUpdate,
    AnswerOptionBulkCreate,
    AnswerOptionSelect,
    AnswerOptionOut,
)
from studly.schemas.user import (
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    ChangePasswordRequest,
    UserUpdate,
    UserOut,
)

__all__ = [
    "Pagination",
    "ClassCreate",
    "ClassUpdate",
    "ClassOut",
    "SubjectCreate",
    "SubjectUpdate",
    "SubjectOut",
    "LessonCreate",
    "LessonUpdate",
    "LessonOut",
    "LessonUserCreate",
    "LessonUserOut",
    "SubLessonCreate",
    "SubLessonUpdate",
    "SubLessonBulkUpdate",
    "SubLessonOut",
    "ExerciseCreate",
    "ExerciseUpdate",
    "ExerciseOut",
    "AnswerOptionCreate",
    "AnswerOptionUpdate",
    "AnswerOptionBulkCreate",
    "AnswerOptionSelect",
    "AnswerOptionOut",
    "RegisterRequest",
    "LoginRequest",
    "LoginResponse",
    "ChangePasswordRequest",
    "UserUpdate",
    "UserOut",
]
