import os
import sys
import pytest

# Ensure the backend root (containing the `scramble` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from scramble import SEED_FLAGS, create_app, db, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    NO_REPEAT_QUESTIONS = False
    LOG_LEVEL = 'WARNING'


class NoRepeatConfig(TestConfig):
    NO_REPEAT_QUESTIONS = True


def _make_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scramble.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def flask_app():
    yield from _make_app(TestConfig)


@pytest.fixture()
def no_repeat_app():
    yield from _make_app(NoRepeatConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


@pytest.fixture()
def seeded_flags(flask_app):
    from scramble.models import FeatureFlag
    for name, enabled, description in SEED_FLAGS:
        db.session.add(FeatureFlag(name=name, enabled=enabled, description=description))
    db.session.commit()
    return [name for name, _, _ in SEED_FLAGS]


@pytest.fixture()
def player(flask_app):
    from scramble.services import players
    return players.register('xiaoming', 'xiaoming@example.com', 'password123')


def make_player(username, password='password123'):
    from scramble.services import players
    return players.register(username, f"{username}@example.com", password)


def session_answer(session_id):
    """The expected answer stored for a running game session."""
    from scramble.models import GameSession
    db.session.expire_all()
    return db.session.get(GameSession, session_id).data['answer']


def session_words(session_id):
    from scramble.models import GameSession
    db.session.expire_all()
    return db.session.get(GameSession, session_id).data['question']['words']
