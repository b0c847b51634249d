import threading

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.booking import Booking
from scheduling import service
from scheduling.errors import ConflictError
from security.rbac import CLIENT
from tests.conftest import BOOKING_DATE, make_cafe, make_user
from utils.seed import ensure_roles

WORKERS = 8


@pytest.fixture
def file_app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "race.db")
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
        ensure_roles()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _race(app, user_ids, cafe_id, windows):
    barrier = threading.Barrier(len(user_ids))
    outcomes = []
    lock = threading.Lock()

    def worker(user_id, window):
        with app.app_context():
            barrier.wait()
            try:
                booking, _ = service.create_booking(
                    user_id, cafe_id, "pc", None, 7, BOOKING_DATE, *window
                )
                outcome = ("ok", booking.id)
            except ConflictError:
                outcome = ("conflict", None)
            except Exception as exc:  # surfaced through the assertion below
                outcome = ("error", repr(exc))
            finally:
                db.session.remove()
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=worker, args=(uid, w)) for uid, w in zip(user_ids, windows)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def _setup(app):
    with app.app_context():
        owner = make_user("owner@example.com")
        cafe = make_cafe(owner)
        user_ids = [make_user(f"gamer{i}@example.com", CLIENT).id for i in range(WORKERS)]
        return cafe.id, user_ids


def test_simultaneous_identical_requests_book_once(file_app):
    cafe_id, user_ids = _setup(file_app)
    outcomes = _race(file_app, user_ids, cafe_id, [("18:00", "20:00")] * WORKERS)

    kinds = sorted(kind for kind, _ in outcomes)
    assert kinds.count("ok") == 1, outcomes
    assert kinds.count("conflict") == WORKERS - 1, outcomes

    with file_app.app_context():
        assert Booking.query.filter_by(station_number=7).count() == 1


def test_simultaneous_overlapping_requests_leave_no_overlap(file_app):
    cafe_id, user_ids = _setup(file_app)
    windows = [(f"{10 + i}:00", f"{12 + i}:00") for i in range(WORKERS)]
    outcomes = _race(file_app, user_ids, cafe_id, windows)
    assert all(kind in ("ok", "conflict") for kind, _ in outcomes), outcomes

    with file_app.app_context():
        rows = Booking.query.filter_by(station_number=7).order_by(Booking.start_time).all()
        assert len(rows) == sum(1 for kind, _ in outcomes if kind == "ok")
        for a, b in zip(rows, rows[1:]):
            assert a.end_time <= b.start_time
