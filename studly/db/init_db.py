import logging

from sqlalchemy.orm import Session

from studly.core.security import hash_password
from studly.db.base import Base
from studly.db.session import SessionLocal, engine
from studly.models import (
    AnswerOption,
    Exercise,
    ExerciseType,
    Lesson,
    SchoolClass,
    SubLesson,
    Subject,
    User,
    UserLesson,
    UserRole,
)

logger = logging.getLogger(__name__)


def seed_demo_data(db: Session) -> bool:
    """Load a small demo hierarchy. Returns False if the database already has users."""
    if db.query(User).first():
        return False

    admin = User(
        email="admin@studly.local",
        name="Admin",
        first_name="Studly",
        password_hash=hash_password("admin123"),
        role=UserRole.ADMIN,
    )
    student = User(
        email="student@studly.local",
        name="Martin",
        first_name="Léa",
        password_hash=hash_password("student123"),
        role=UserRole.STUDENT,
    )
    db.add_all([admin, student])

    cm2 = SchoolClass(name="CM2")
    cm1 = SchoolClass(name="CM1")
    db.add_all([cm2, cm1])
    db.flush()

    math = Subject(name="Mathématiques", description="Nombres et calcul", class_id=cm2.id, points_total=100, points_threshold=50)
    french = Subject(name="Français", description="Lecture et grammaire", class_id=cm2.id)
    db.add_all([math, french])
    db.flush()

    fractions = Lesson(name="Les fractions", description="Comprendre et comparer les fractions", subject_id=math.id)
    db.add(fractions)
    db.flush()

    simplify = SubLesson(name="Simplifier une fraction", lesson_id=fractions.id)
    db.add(simplify)
    db.flush()

    exercise = Exercise(
        name="Fractions égales",
        description="Quelle fraction est égale à 1/2 ?",
        subject_id=math.id,
        lesson_id=fractions.id,
        sub_lesson_id=simplify.id,
        exercise_type=ExerciseType.QCM,
    )
    db.add(exercise)
    db.flush()

    db.add_all([
        AnswerOption(name="2/4", exercise_id=exercise.id, points=1, is_correct=True),
        AnswerOption(name="2/3", exercise_id=exercise.id, points=0),
        AnswerOption(name="3/4", exercise_id=exercise.id, points=0),
        UserLesson(user_id=student.id, lesson_id=fractions.id),
    ])

    db.commit()
    logger.info("Demo data loaded")
    return True


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_demo_data(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
