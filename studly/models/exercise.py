import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship

from studly.db.base import Base, TimestampMixin


class ExerciseType(str, enum.Enum):
    QCM = "QCM"
    TRUE_FALSE = "TRUE_FALSE"
    COMPLETION = "COMPLETION"
    ESSAY = "ESSAY"


class Exercise(TimestampMixin, Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="SET NULL"), nullable=True, index=True)
    sub_lesson_id = Column(Integer, ForeignKey("sub_lessons.id", ondelete="SET NULL"), nullable=True, index=True)
    exercise_type = Column(Enum(ExerciseType, name="exercise_type"), nullable=False, default=ExerciseType.QCM)

    subject = relationship("Subject", back_populates="exercises")
    lesson = relationship("Lesson", back_populates="exercises")
    sub_lesson = relationship("SubLesson", back_populates="exercises")
    options = relationship(
        "AnswerOption",
        back_populates="exercise",
        cascade="all, delete-orphan",
        order_by="AnswerOption.created_at",
    )


class AnswerOption(TimestampMixin, Base):
    __tablename__ = "answer_options"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False, index=True)
    points = Column(Integer, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    is_selected = Column(Boolean, nullable=False, default=False)

    exercise = relationship("Exercise", back_populates="options")
