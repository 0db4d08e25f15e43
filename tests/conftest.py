from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from redis.exceptions import ConnectionError as RedisConnectionError

from assistant_backend.app import create_app
from assistant_backend.core.config import Settings
from assistant_backend.core.database import Database
from assistant_backend.core.rate_limit import RateLimiter
from assistant_backend.core.security import TokenIssuer
from assistant_backend.services.auth_service import AuthService
from assistant_backend.services.chat_service import ChatService
from assistant_backend.services.completion import CompletionClient

AI_REPLIES = ["Hello! What article may I write for you today?", "Here is your article.", "Anything else?"]


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class RecordingNotifier:
    """Keeps every code it was asked to send, keyed by recipient."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.verification_codes = {}
        self.reset_codes = {}
        self.closed = False

    async def send_verification_code(self, email, code):
        if self.fail:
            raise ConnectionError("smtp down")
        self.verification_codes[email] = code

    async def send_password_reset_code(self, email, code):
        if self.fail:
            raise ConnectionError("smtp down")
        self.reset_codes[email] = code

    async def aclose(self):
        self.closed = True


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.counts = {}
        self.ttls = {}

    async def ping(self):
        if self.fail:
            raise RedisConnectionError("no redis")
        return True

    async def incr(self, key):
        if self.fail:
            raise RedisConnectionError("no redis")
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, window):
        self.ttls[key] = window

    async def aclose(self):
        pass


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET_KEY="test-secret",
        LOG_TO_FILE=False,
    )


@pytest.fixture
async def database(settings):
    db = Database(settings.DATABASE_URL)
    await db.connect()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def token_issuer(settings):
    return TokenIssuer(settings.JWT_SECRET_KEY, settings.JWT_ALGORITHM)


@pytest.fixture
def auth_service(db_session, token_issuer, notifier, settings, clock):
    return AuthService(db_session, token_issuer, notifier, settings, now=clock)


@pytest.fixture
def chat_model():
    return FakeListChatModel(responses=list(AI_REPLIES))


@pytest.fixture
def chat_service(db_session, chat_model):
    return ChatService(db_session, CompletionClient(chat_model))


@pytest.fixture
def client(settings, notifier, chat_model):
    app = create_app(
        settings,
        completion_client=CompletionClient(chat_model),
        notifier=notifier,
        rate_limiter=RateLimiter(None),
    )
    with TestClient(app) as test_client:
        yield test_client
