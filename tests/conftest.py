import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')
os.environ.setdefault('PASSWORD_HASH_ROUNDS', '4')
os.environ.setdefault('SENDGRID_API_KEY', '')

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from natours.auth import jwt_handler  # noqa: E402
from natours.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from natours.main import app  # noqa: E402
from natours.repositories.tours import tours  # noqa: E402
from natours.repositories.users import users  # noqa: E402
from natours.schemas.tour import TourCreate  # noqa: E402
from natours.services.mailer import get_mailer  # noqa: E402

DEFAULT_PASSWORD = 'pass1234'


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.error = None

    async def send(self, to, subject, body):
        if self.error is not None:
            raise self.error
        self.sent.append({'to': to, 'subject': subject, 'body': body})


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(session_factory, mailer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def create_user(session_factory):
    """Store a user in its own session and return its id."""

    def _create(email='user@example.com', role='user', name='Test User', password=DEFAULT_PASSWORD, **extra):
        session = session_factory()
        try:
            user = users.create(
                session,
                {'name': name, 'email': email, 'password': password, 'role': role, **extra},
            )
            return user.id
        finally:
            session.close()

    return _create


@pytest.fixture
def create_tour(session_factory):
    """Store a tour in its own session and return its id."""

    def _create(name='The Forest Hiker', **overrides):
        fields = {
            'name': name,
            'duration': 5,
            'maxGroupSize': 25,
            'difficulty': 'easy',
            'price': 397,
            'summary': 'Breathtaking hike through the Canadian Banff National Park',
            'imageCover': 'tour-1-cover.jpg',
        }
        fields.update(overrides)
        session = session_factory()
        try:
            return tours.create(session, TourCreate(**fields)).id
        finally:
            session.close()

    return _create


@pytest.fixture
def auth_header():
    def _header(user_id: int, issued_at: datetime | None = None) -> dict:
        token = jwt_handler.create_access_token(user_id, issued_at=issued_at)
        return {'Authorization': f'Bearer {token}'}

    return _header
