from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from studly.db.base import Base, NameKeyMixin, TimestampMixin


class SubLesson(NameKeyMixin, TimestampMixin, Base):
    __tablename__ = "sub_lessons"
    __table_args__ = (UniqueConstraint("lesson_id", "name_key", name="uq_sub_lessons_lesson_name"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="RESTRICT"), nullable=False, index=True)

    lesson = relationship("Lesson", back_populates="sub_lessons")
    exercises = relationship("Exercise", back_populates="sub_lesson", order_by="Exercise.created_at")
