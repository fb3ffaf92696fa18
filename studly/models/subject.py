from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from studly.db.base import Base, NameKeyMixin, TimestampMixin


class Subject(NameKeyMixin, TimestampMixin, Base):
    __tablename__ = "subjects"
    __table_args__ = (UniqueConstraint("class_id", "name_key", name="uq_subjects_class_name"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    points_total = Column(Integer, nullable=True)
    points_threshold = Column(Integer, nullable=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)

    school_class = relationship("SchoolClass", back_populates="subjects")
    lessons = relationship("Lesson", back_populates="subject", order_by="Lesson.name")
    exercises = relationship("Exercise", back_populates="subject", order_by="Exercise.created_at")
