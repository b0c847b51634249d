from datetime import time

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.cafe import Cafe
from models.user import User, Role
from security.password import hash_password
from security.rbac import CLIENT, OWNER, ADMIN
from utils.seed import ensure_roles

PASSWORD = "s3cret-pass"
BOOKING_DATE = "2030-01-15"


def make_user(email: str, *role_names) -> User:
    user = User(email=email, password_hash=hash_password(PASSWORD, rounds=4))
    for name in role_names:
        user.roles.append(Role.query.filter_by(name=name).one())
    db.session.add(user)
    db.session.commit()
    return user


def make_cafe(owner: User, **overrides) -> Cafe:
    fields = dict(
        owner_user_id=owner.id,
        name="Respawn Lounge",
        address="12 MG Road",
        city="Pune",
        latitude=18.5204,
        longitude=73.8567,
        hourly_rate=80,
        pc_hourly_rate=100,
        total_pc_stations=20,
        pc_games=["Valorant"],
        consoles={
            "ps5": {"quantity": 2, "hourly_rate": "150", "games": ["FC 25"]},
            "xbox_one": {"quantity": 1, "hourly_rate": "0", "games": []},
            "nintendo_switch": {"quantity": 0, "hourly_rate": "90", "games": []},
        },
        opening_time=time(9, 0),
        closing_time=time(23, 0),
        amenities=[],
    )
    fields.update(overrides)
    cafe = Cafe(**fields)
    db.session.add(cafe)
    db.session.commit()
    return cafe


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        ensure_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def owner(app):
    return make_user("owner@example.com", OWNER)


@pytest.fixture
def gamer(app):
    return make_user("gamer@example.com", CLIENT)


@pytest.fixture
def other_gamer(app):
    return make_user("other@example.com", CLIENT)


@pytest.fixture
def admin(app):
    return make_user("admin@example.com", ADMIN)


@pytest.fixture
def cafe(owner):
    return make_cafe(owner)


class ApiClient:
    """Test client wrapper that logs in and echoes the CSRF cookie."""

    def __init__(self, client, email):
        self.client = client
        resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        self.csrf = None
        for header in resp.headers.getlist("Set-Cookie"):
            if header.startswith("csrf_token="):
                self.csrf = header.split(";", 1)[0].split("=", 1)[1]
        assert self.csrf

    def get(self, url, **kwargs):
        return self.client.get(url, **kwargs)

    def post(self, url, json=None):
        return self.client.post(url, json=json or {}, headers={"X-CSRF-Token": self.csrf})

    def patch(self, url, json=None):
        return self.client.patch(url, json=json or {}, headers={"X-CSRF-Token": self.csrf})


@pytest.fixture
def login(app):
    def _login(user):
        return ApiClient(app.test_client(), user.email)
    return _login
