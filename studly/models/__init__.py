from studly.models.user import User, UserRole
from studly.models.school_class import SchoolClass
from studly.models.subject import Subject
from studly.models.lesson import Lesson, UserLesson
from studly.models.sub_lesson import SubLesson
from studly.models.exercise import Exercise, ExerciseType, AnswerOption

__all__ = [
    "User",
    "UserRole",
    "SchoolClass",
    "Subject",
    "Lesson",
    "UserLesson",
    "SubLesson",
    "Exercise",
    "ExerciseType",
    "AnswerOption",
]
