import os
import sys
from types import SimpleNamespace

import pytest

# Ensure the backend root (containing the `triviaboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from triviaboard import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DEFAULT_TEAM_LIMIT = 4
    CORS_ORIGINS = ['http://localhost:5173']
    # Keep password hashing fast in tests
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import triviaboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def api_app():
    """App for multi-user HTTP tests.

    No app context stays pushed, so every request gets its own ``g`` and
    Flask-Login never serves one client's user to another. The in-memory
    database survives between contexts because it sits on a single pooled
    connection.
    """
    application = create_app(TestConfig)
    with application.app_context():
        import triviaboard.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def users(flask_app):
    """Seed one host, one operator and three players; exposes their ids."""
    from triviaboard.models import User, ROLE_HOST, ROLE_OPERATOR, ROLE_PLAYER

    seeded = {}
    for username, role in [
        ('host', ROLE_HOST),
        ('other_host', ROLE_HOST),
        ('operator', ROLE_OPERATOR),
        ('alice', ROLE_PLAYER),
        ('bob', ROLE_PLAYER),
        ('carol', ROLE_PLAYER),
    ]:
        user = User(username=username, email=f'{username}@example.com', role=role)
        user.set_password('password')
        db.session.add(user)
        seeded[username] = user
    db.session.commit()
    return SimpleNamespace(**{name: user.id for name, user in seeded.items()})


SAMPLE_CATEGORIES = [
    {
        'title': 'Science',
        'clues': [
            {'question': 'H2O is commonly called this', 'answer': 'Water', 'value': 400},
            {'question': 'The closest star to Earth', 'answer': 'The Sun', 'value': 200},
        ],
    },
    {
        'title': 'History',
        'clues': [
            {'question': 'First man on the moon', 'answer': 'Neil Armstrong', 'value': 200,
             'is_daily_double': True},
        ],
    },
]


@pytest.fixture()
def lobby_game(flask_app, users):
    """A LOBBY game owned by ``users.host`` with one authored round."""
    from triviaboard.services.games import lifecycle, board

    game = lifecycle.create_game(users.host, 'Friday Trivia', team_limit=2)
    round_ = board.create_round(users.host, game.id, SAMPLE_CATEGORIES)
    return SimpleNamespace(
        id=game.id,
        round_id=round_.id,
        clue_ids=[clue.id for category in round_.categories for clue in category.clues],
    )


@pytest.fixture()
def live_game(lobby_game, users):
    """``lobby_game`` started with Team A (alice) and Team B (bob)."""
    from triviaboard.services.games import lifecycle, roster

    team_a = roster.create_team(lobby_game.id, 'Team A', users.alice)
    team_b = roster.create_team(lobby_game.id, 'Team B', users.bob)
    lifecycle.start_game(lobby_game.id, users.host)
    lobby_game.team_a = team_a.id
    lobby_game.team_b = team_b.id
    return lobby_game
