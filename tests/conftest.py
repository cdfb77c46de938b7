"""Shared pytest fixtures for the materials backend tests.

Provides:
- ``engine``: in-memory SQLite engine with tables and the FTS5 index
- ``db``: SQLAlchemy session bound to ``engine``
- ``make_user`` / ``make_material``: row factories
- ``client``: FastAPI TestClient using ``db``
- ``auth_headers``: builds a Bearer header for a user
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import get_db, init_db
from app.models.material_db_models import Favorite, Material
from app.models.user_db_models import User
from app.services.auth import create_access_token
from main import app

BASE_TIME = datetime(2024, 9, 1, 8, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(name: str = None, **kwargs) -> User:
        counter["n"] += 1
        user = User(
            email=kwargs.pop("email", f"teacher{counter['n']}@school.kz"),
            name=name or f"Teacher {counter['n']}",
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def author(make_user) -> User:
    return make_user("Aigerim")


@pytest.fixture
def make_material(db, author):
    """Creates a material; ``minutes`` sets created_at relative to BASE_TIME."""
    counter = {"n": 0}

    def _make_material(title: str = None, minutes: int = None, **kwargs) -> Material:
        counter["n"] += 1
        material = Material(
            user_id=kwargs.pop("user_id", author.id),
            title=title or f"Material {counter['n']}",
            subject=kwargs.pop("subject", "Биология"),
            grade=kwargs.pop("grade", "7"),
            type=kwargs.pop("type", "Конспект"),
            created_at=BASE_TIME + timedelta(minutes=counter["n"] if minutes is None else minutes),
            **kwargs,
        )
        db.add(material)
        db.commit()
        db.refresh(material)
        return material

    return _make_material


@pytest.fixture
def favorite(db):
    def _favorite(user: User, material: Material) -> Favorite:
        row = Favorite(user_id=user.id, material_id=material.id)
        db.add(row)
        db.commit()
        return row

    return _favorite


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token(user.id, name=user.name)
        return {"Authorization": f"Bearer {token}"}

    return _headers
