"""
Pytest configuration and fixtures
"""
from typing import AsyncGenerator, Dict, List

import httpx
import pytest

from tyflopush.config import Settings, get_state_path
from tyflopush.main import create_app
from tyflopush.services.notifier import NotificationService
from tyflopush.services.push_sender import PushSender
from tyflopush.services.registry import SubscriberRegistry
from tyflopush.storage import StateStore


WEBHOOK_SECRET = "test-webhook-secret"
PODCAST_URL = "https://podcast.test/wp-json/wp/v2/posts"
ARTICLE_URL = "https://articles.test/wp-json/wp/v2/posts"

TOKEN_A = "a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d6"
TOKEN_B = "f0e1d2c3b4a5968778695a4b3c2d1e0f"


class RecordingPushSender(PushSender):
    """Push sender that keeps every delivery in memory."""

    def __init__(self):
        self.sent = []

    async def send(self, token: str, category: str, payload: dict):
        self.sent.append((token, category, payload))

    def tokens(self, category: str) -> List[str]:
        return [token for token, sent_category, _ in self.sent if sent_category == category]


class FakeWordPress:
    """Serves canned post lists per source through an httpx.MockTransport."""

    def __init__(self):
        self.posts: Dict[str, list] = {"podcast.test": [], "articles.test": []}
        self.status: Dict[str, int] = {"podcast.test": 200, "articles.test": 200}
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        status = self.status[host]
        if status != 200:
            return httpx.Response(status, json={"code": "error"})
        return httpx.Response(200, json=self.posts[host])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_post(post_id, title="Tytuł", date="2026-10-19T10:00:00"):
    return {
        "id": post_id,
        "date": date,
        "link": f"https://example.test/?p={post_id}",
        "title": {"rendered": title},
    }


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a temporary state file and fake content sources."""
    return Settings(
        data_dir=str(tmp_path),
        state_path=str(tmp_path / "state.json"),
        webhook_secret=WEBHOOK_SECRET,
        poll_enabled=False,
        poll_per_page=20,
        tyflopodcast_wp=PODCAST_URL,
        tyfloswiat_wp=ARTICLE_URL,
        token_log_salt="test-salt",
    )


@pytest.fixture
def store(settings) -> StateStore:
    return StateStore(get_state_path(settings))


@pytest.fixture
def sender() -> RecordingPushSender:
    return RecordingPushSender()


@pytest.fixture
def registry(store) -> SubscriberRegistry:
    return SubscriberRegistry(store)


@pytest.fixture
def notifier(store, sender) -> NotificationService:
    return NotificationService(store, sender)


@pytest.fixture
def wordpress() -> FakeWordPress:
    return FakeWordPress()


@pytest.fixture
def app(settings, sender, wordpress):
    return create_app(settings, sender=sender, transport=wordpress.transport)


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client talking to the app in-process."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {WEBHOOK_SECRET}"}
