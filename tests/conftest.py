"""
Pytest configuration and fixtures.

Every app gets its own SQLite file database seeded with identities 1 and 2.
Clients are created with use_cookies=False so each test states exactly which
cookies it sends.
"""
from datetime import datetime, timezone

import pytest
from werkzeug.http import parse_date

from api import create_app
from models.user import User
from utils.cookies import CookieSettings
from utils.security import ExpiryPolicy, TokenCodec, TokenSettings

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        "testing",
        {"DATABASE_URL": f"sqlite:///{tmp_path / 'auth.db'}"},
    )
    with app.app_context():
        storage = app.extensions["storage"]
        storage.new(User(id=1, first_name="Ada", last_name="Lovelace"))
        storage.new(User(id=2, first_name="Alan", last_name="Turing"))
        storage.save()

    yield app

    app.extensions["storage"].dispose()


@pytest.fixture
def client(app):
    return app.test_client(use_cookies=False)


@pytest.fixture
def controller(app):
    return app.extensions["rotation_controller"]


@pytest.fixture
def store(app):
    with app.app_context():
        yield app.extensions["rotation_controller"].store


@pytest.fixture
def settings():
    return TokenSettings(ACCESS_SECRET, REFRESH_SECRET)


@pytest.fixture
def codec(settings):
    return TokenCodec(settings)


@pytest.fixture
def policy():
    return ExpiryPolicy()


@pytest.fixture
def cookie_settings():
    return CookieSettings()


def parse_set_cookies(response):
    """Map cookie name -> {"value": ..., lower-cased attribute: value or True}."""
    cookies = {}
    for header in response.headers.getlist("Set-Cookie"):
        name_value, *attrs = [part.strip() for part in header.split(";")]
        name, _, value = name_value.partition("=")
        parsed = {"value": value}
        for attr in attrs:
            key, _, val = attr.partition("=")
            parsed[key.lower()] = val or True
        cookies[name] = parsed
    return cookies


def cookie_expiry(parsed_cookie) -> datetime:
    return parse_date(parsed_cookie["expires"]).astimezone(timezone.utc)


def cookie_header(**cookies):
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


def login(client, user_id=1, **cookies):
    headers = cookie_header(**cookies) if cookies else {}
    return client.post("/login", json={"id": user_id}, headers=headers)
