from sqlalchemy import Column, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from studly.db.base import Base, NameKeyMixin, TimestampMixin


class SchoolClass(NameKeyMixin, TimestampMixin, Base):
    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("name_key", name="uq_classes_name_key"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    subjects = relationship("Subject", back_populates="school_class", order_by="Subject.name")
