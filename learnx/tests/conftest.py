import itertools
from contextlib import nullcontext
from types import SimpleNamespace

import pytest
from flask import has_app_context

from learnx import create_app, db
from learnx.config import TestingConfig
from learnx.models.user import User
from learnx.utils.records import create_user, create_course

PASSWORD = 'secret123'


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """Application context for calling the core functions directly"""
    with app.app_context():
        yield
        db.session.rollback()


def _context(app):
    # Reuse the test's context when there is one so everything shares a session
    return nullcontext() if has_app_context() else app.app_context()


@pytest.fixture
def make_user(app):
    numbers = itertools.count(1)

    def _make(role='student', email=None):
        n = next(numbers)
        email = email or f'{role}{n}@example.com'
        with _context(app):
            user = create_user(f'{role.title()} {n}', email, PASSWORD, role=role)
            return SimpleNamespace(user_id=user.user_id, email=email, role=role)
    return _make


@pytest.fixture
def make_course(app):
    def _make(instructor_id=None, **overrides):
        data = {
            'title': 'Python for Beginners',
            'description': 'Variables, loops and functions.',
            'category': 'programming',
            'level': 'Beginner',
            'teachingMode': 'face-to-face',
            'location': {'address': '1 High Street', 'city': 'London', 'postcode': 'N1 1AA'},
            'schedule': [{'day': 'Monday', 'time': '18:00-20:00'}],
            'maxStudents': 10,
            'price': 120,
        }
        data.update(overrides)
        with _context(app):
            instructor = User.query.filter_by(user_id=instructor_id).first() if instructor_id else None
            return create_course(data, instructor=instructor).course_id
    return _make


@pytest.fixture
def login(client):
    def _login(user, password=PASSWORD):
        response = client.post('/api/auth/login', json={'email': user.email, 'password': password})
        assert response.status_code == 200
        return response
    return _login
