from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from studly.db.base import Base, NameKeyMixin, TimestampMixin


class Lesson(NameKeyMixin, TimestampMixin, Base):
    __tablename__ = "lessons"
    __table_args__ = (UniqueConstraint("subject_id", "name_key", name="uq_lessons_subject_name"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True)

    subject = relationship("Subject", back_populates="lessons")
    sub_lessons = relationship("SubLesson", back_populates="lesson", order_by="SubLesson.created_at")
    exercises = relationship("Exercise", back_populates="lesson", order_by="Exercise.created_at")
    user_links = relationship("UserLesson", back_populates="lesson", order_by="UserLesson.created_at")


class UserLesson(TimestampMixin, Base):
    __tablename__ = "user_lessons"
    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_user_lessons"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="RESTRICT"), nullable=False, index=True)

    user = relationship("User", back_populates="lesson_links")
    lesson = relationship("Lesson", back_populates="user_links")
