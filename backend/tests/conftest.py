import os

# Must be set before app.core.config is first imported.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.classroom import Classroom, ClassroomType
from app.models.user import User, UserRole
from app.services.settings_provider import settings_provider


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    settings_provider.clear()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    settings_provider.clear()


@pytest.fixture()
def make_user(db):
    def _make(name: str, role: UserRole, email: str | None = None) -> User:
        user = User(name=name, email=email or f"{name.lower().replace(' ', '.')}@campus.edu", role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_classroom(db):
    def _make(room_number: str, capacity: int = 40, room_type: ClassroomType = ClassroomType.lecture) -> Classroom:
        classroom = Classroom(room_number=room_number, type=room_type, capacity=capacity, features=[])
        db.add(classroom)
        db.commit()
        db.refresh(classroom)
        return classroom

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
