import os
import sys
import pytest

# Ensure the backend root (containing the `bingo` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bingo import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    CORS_ORIGINS = ['http://localhost:8081']
    MIN_TEMPLATE_OPTIONS = 25
    SHARE_CODE_LENGTH = 6
    HISTORY_LIMIT = 10
    ACTIVE_GAMES_LIMIT = 30
    # Keep hashing fast in tests
    BCRYPT_LOG_ROUNDS = 4


def make_items(prefix='Option', count=25):
    return [f'{prefix} {i}' for i in range(count)]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import bingo.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def template(client):
    res = client.post('/api/bingo/templates', json={'name': 'Movie Night', 'items': make_items('Movie')})
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def game(client, template):
    res = client.post('/api/bingo/games', json={'template_id': template['id']})
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def admin(flask_app):
    from bingo.models import User
    user = User(username='admin')
    user.set_password('secret')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
