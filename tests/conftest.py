import pytest

from config import Settings
from handlers.api import build_services
from main import create_app
from services.telegram_auth import compute_telegram_hash
from tests.fakes import MemoryStore

BOT_TOKEN = "123456:TEST-bot-token"
ADMIN_ID = 1


@pytest.fixture
def settings():
    return Settings(
        bot_token=BOT_TOKEN,
        jwt_secret="test-jwt-secret",
        admin_ids=frozenset({ADMIN_ID}),
        cookie_secure=False,
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def services(settings, store):
    return build_services(settings, store)


@pytest.fixture
def app(settings, store):
    app = create_app(settings, store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def signed_payload(user_id, first_name="Ann", bot_token=BOT_TOKEN, **extra):
    payload = {"id": user_id, "first_name": first_name, "auth_date": 1757000000}
    payload.update(extra)
    payload["hash"] = compute_telegram_hash(payload, bot_token)
    return payload


@pytest.fixture
def session_for(services, client):
    """Puts a session cookie for the user into the test client's jar.

    Returns an empty header mapping so call sites can keep passing it along.
    """
    def make(user):
        client.set_cookie("session", services.sessions.issue(user))
        return {}
    return make
