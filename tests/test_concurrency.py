"""
Two requests racing for the same court hour, each on its own thread, app
context and connection to a file-backed SQLite database. Both pass their
first availability read before either takes the court lock; exactly one may
win.
"""
import threading
from datetime import date
from types import SimpleNamespace

import pytest

import services.manual_booking as manual_booking
import services.reservation as reservation
from app import create_app
from config import Config
from models import db
from models.blocking import Blocking
from models.court import Court
from models.user import Role, User
from models.venue import Venue
from services.actor import UserActor
from services.errors import SlotConflict
from services.manual_booking import ManualBookingRequest, create_manual_booking
from services.reservation import OrderItem, create_order
from services.timeslots import build_slots, parse_slots
from utils.seed import seed_roles

RACE_DAY = date(2025, 1, 10)


@pytest.fixture
def shared_db(tmp_path):
    class FileDatabaseConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'race.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}
        SMTP_HOST = None
        SMTP_FROM_EMAIL = None
        LOGIN_URL = "https://courts.example.com/login"
        LOG_LEVEL = "WARNING"

    app = create_app(FileDatabaseConfig)
    with app.app_context():
        db.create_all()
        seed_roles(db.session)

        venue = Venue(name="Arena A")
        db.session.add(venue)
        db.session.flush()
        court = Court(venue_id=venue.id, name="Court X", price=100000)
        db.session.add(court)

        roles = {r.name: r for r in db.session.query(Role).all()}
        users = []
        for email, role in [
            ("player.one@example.com", "PLAYER"),
            ("player.two@example.com", "PLAYER"),
            ("staff@example.com", "STAFF"),
        ]:
            user = User(email=email, password_hash="")
            user.roles.append(roles[role])
            users.append(user)
        db.session.add_all(users)
        db.session.commit()

        world = SimpleNamespace(
            app=app,
            venue_id=venue.id,
            court_id=court.id,
            players=[(u.id, u.email) for u in users[:2]],
            staff_id=users[2].id,
        )

    yield world

    with app.app_context():
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def both_checked(monkeypatch):
    """Hold every request at the court lock until both have read availability."""
    barrier = threading.Barrier(2, timeout=10)

    def hold(module):
        real = module.lock_court

        def lock_court(session, court_id):
            barrier.wait()
            return real(session, court_id)

        monkeypatch.setattr(module, "lock_court", lock_court)

    hold(manual_booking)
    hold(reservation)


def race(app, *calls):
    outcomes = []

    def run(call):
        with app.app_context():
            try:
                call(db.session)
                outcomes.append("ok")
            except SlotConflict:
                outcomes.append("conflict")
            except Exception as exc:
                outcomes.append(repr(exc))

    threads = [threading.Thread(target=run, args=(call,)) for call in calls]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return sorted(outcomes)


def manual(world, email):
    actor = UserActor(user_id=world.staff_id, role="STAFF")
    request = ManualBookingRequest(court_id=world.court_id, venue_id=world.venue_id, email=email,
                                   date=RACE_DAY, slots=build_slots("07:00", "08:00"))
    return lambda session: create_manual_booking(session, actor, request)


def checkout(world, user_id):
    actor = UserActor(user_id=user_id, role="PLAYER")
    items = [OrderItem(court_id=world.court_id, date=RACE_DAY, slots=parse_slots(["07:00-08:00"]), price=100000)]
    return lambda session: create_order(session, actor, user_id, items, "QRIS")


def active_blockings(world):
    with world.app.app_context():
        return db.session.query(Blocking).filter_by(is_blocking=True).count()


def test_two_manual_bookings_one_winner(shared_db, both_checked):
    (_, first), (_, second) = shared_db.players
    outcomes = race(shared_db.app, manual(shared_db, first), manual(shared_db, second))
    assert outcomes == ["conflict", "ok"]
    assert active_blockings(shared_db) == 1


def test_two_orders_one_winner(shared_db, both_checked):
    (first, _), (second, _) = shared_db.players
    outcomes = race(shared_db.app, checkout(shared_db, first), checkout(shared_db, second))
    assert outcomes == ["conflict", "ok"]
    assert active_blockings(shared_db) == 1


def test_order_against_manual_booking_one_winner(shared_db, both_checked):
    (player_id, _), (_, walk_in) = shared_db.players
    outcomes = race(shared_db.app, checkout(shared_db, player_id), manual(shared_db, walk_in))
    assert outcomes == ["conflict", "ok"]
    assert active_blockings(shared_db) == 1
