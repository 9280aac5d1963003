"""
Shared fixtures: an app on in-memory SQLite with roles, two venues, three
courts and a handful of users.
"""
from datetime import date
from types import SimpleNamespace

import pytest

from app import create_app
from config import Config
from models import db
from models.court import Court
from models.user import Role, User
from models.venue import Venue
from services.actor import UserActor
from utils.seed import seed_roles

BOOKING_DAY = date(2025, 1, 10)  # a Friday


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SMTP_HOST = None
    SMTP_FROM_EMAIL = None
    STRIPE_SECRET_KEY = None
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    PAYMENT_WEBHOOK_TOKEN = "callback-token"
    LOGIN_URL = "https://courts.example.com/login"
    LOG_LEVEL = "WARNING"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    seed_roles(db.session)
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def session(app):
    return db.session


def _user(session, email, *roles):
    user = User(email=email, password_hash="")
    for name in roles:
        user.roles.append(session.query(Role).filter_by(name=name).one())
    session.add(user)
    return user


@pytest.fixture
def world(session):
    """Venue A owns courts X and Y, venue B owns court Z."""
    venue_a = Venue(name="Arena A")
    venue_b = Venue(name="Arena B")
    session.add_all([venue_a, venue_b])
    session.flush()

    court_x = Court(venue_id=venue_a.id, name="Court X", price=100000)
    court_y = Court(venue_id=venue_a.id, name="Court Y", price=120000)
    court_z = Court(venue_id=venue_b.id, name="Court Z", price=90000)
    session.add_all([court_x, court_y, court_z])

    player = _user(session, "player.one@example.com", "PLAYER")
    other = _user(session, "player.two@example.com", "PLAYER")
    staff = _user(session, "staff@example.com", "STAFF")
    admin = _user(session, "admin@example.com", "ADMIN")
    session.commit()

    return SimpleNamespace(
        venue_a=venue_a, venue_b=venue_b,
        court_x=court_x, court_y=court_y, court_z=court_z,
        player=player, other=other, staff=staff, admin=admin,
    )


@pytest.fixture
def player_actor(world):
    return UserActor(user_id=world.player.id, role="PLAYER")


@pytest.fixture
def staff_actor(world):
    return UserActor(user_id=world.staff.id, role="STAFF")


@pytest.fixture
def admin_actor(world):
    return UserActor(user_id=world.admin.id, role="ADMIN")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth(app):
    """auth(user) -> headers the upstream auth layer would forward."""
    header = app.config["AUTH_USER_HEADER"]

    def _headers(user):
        return {header: str(user.id)}

    return _headers


@pytest.fixture
def day():
    return BOOKING_DAY
