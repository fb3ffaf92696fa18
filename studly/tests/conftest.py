import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from studly.api.deps import get_db
from studly.core.config import get_settings
from studly.core.security import hash_password
from studly.db.base import Base
from studly.db.session import build_engine
from studly.models import User, UserRole


@pytest.fixture()
def db_engine(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    get_settings.cache_clear()
    settings = get_settings()
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()
    get_settings.cache_clear()


@pytest.fixture()
def db_session(db_engine):
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    from studly.main import app

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db_session, email, password, role=UserRole.STUDENT, name=None):
    user = User(email=email, name=name, password_hash=hash_password(password), role=role)
    db_session.add(user)
    db_session.commit()
    return user


def login(client, email, password):
    response = client.post("/api/users/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


@pytest.fixture()
def admin(db_session):
    return make_user(db_session, "admin@example.com", "admin123", role=UserRole.ADMIN, name="Admin")


@pytest.fixture()
def auth_client(client, admin):
    token = login(client, admin.email, "admin123")
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client


@pytest.fixture()
def create(auth_client):
    def _create(path, payload):
        response = auth_client.post(f"/api/{path}", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture()
def hierarchy(create):
    school_class = create("classes", {"name": "CM2"})
    subject = create("subjects", {"name": "Math", "classId": school_class["id"]})
    lesson = create("lessons", {"name": "Fractions", "subjectId": subject["id"]})
    sub_lesson = create("sub-lessons", {"name": "Simplify", "lessonId": lesson["id"]})
    return {"class": school_class, "subject": subject, "lesson": lesson, "sub_lesson": sub_lesson}


@pytest.fixture()
def student(db_session):
    return make_user(db_session, "student@example.com", "student123", name="Martin")


@pytest.fixture()
def student_headers(client, student):
    token = login(client, student.email, "student123")
    return {"Authorization": f"Bearer {token}"}
