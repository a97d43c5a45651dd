import os
import tempfile

# must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "guitar-school-logs"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.schemas.class_schedule import ClassScheduleData, SessionIn
from app.utils.auth import get_current_user


def make_session(day, start, end):
    return SessionIn(day_of_week=day, start_time=start, end_time=end)


def make_class(name, grade, *sessions):
    return ClassScheduleData(name=name, grade=grade, sessions=[make_session(*s) for s in sessions])


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def teacher(db_session):
    user = User(username="thaybien", full_name="Thầy Biển", password_hash="x", role="teacher")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def student(db_session):
    user = User(username="hocsinh1", full_name="Nguyễn An", password_hash="x", role="student")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def anon_client(db_session):
    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def client(anon_client, teacher):
    app.dependency_overrides[get_current_user] = lambda: teacher
    return anon_client


@pytest.fixture()
def as_student(client, student):
    app.dependency_overrides[get_current_user] = lambda: student
    return client
