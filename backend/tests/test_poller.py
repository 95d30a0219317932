"""
Content poller tests
"""
import asyncio

import httpx
import pytest

from tyflopush.exceptions import FetchError
from tyflopush.services.content import ContentSource, build_payload, fetch_latest
from tyflopush.services.poller import PollerService
from tyflopush.utils.push_utils import HISTORY_LIMIT
from tests.conftest import ARTICLE_URL, PODCAST_URL, TOKEN_A, TOKEN_B, make_post


@pytest.fixture
def poller(settings, store, notifier, wordpress) -> PollerService:
    return PollerService(settings, store, notifier, transport=wordpress.transport)


def sent_ids(sender, category):
    return [payload["id"] for _, sent_category, payload in sender.sent if sent_category == category]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_each_post_is_notified_once(poller, registry, wordpress, sender):
    """Posts seen in an earlier iteration are never notified again"""
    await registry.register(TOKEN_A, "apns")

    wordpress.posts["podcast.test"] = [make_post(5), make_post(6)]
    assert await poller.poll_once() == {"podcast": 2, "article": 0}

    wordpress.posts["podcast.test"] = [make_post(5), make_post(6), make_post(7)]
    assert await poller.poll_once() == {"podcast": 1, "article": 0}

    assert await poller.poll_once() == {"podcast": 0, "article": 0}
    assert sent_ids(sender, "podcast") == [5, 6, 7]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_posts_are_processed_in_source_order(poller, registry, wordpress, sender, store):
    await registry.register(TOKEN_A, "apns")
    wordpress.posts["articles.test"] = [make_post(30), make_post(20), make_post(10)]

    await poller.poll_once()

    assert sent_ids(sender, "article") == [30, 20, 10]
    state = await store.load()
    # Most recent insertion first
    assert state.sent.tyfloswiat == [10, 20, 30]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_history_is_recorded_without_subscribers(poller, wordpress, sender, store):
    """Posts are marked as seen even if nobody is subscribed yet"""
    wordpress.posts["podcast.test"] = [make_post(1)]

    await poller.poll_once()

    state = await store.load()
    assert state.sent.tyflopodcast == [1]
    assert sender.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_iteration_sees_new_registrations(poller, registry, wordpress, sender):
    wordpress.posts["podcast.test"] = [make_post(1)]
    await poller.poll_once()

    await registry.register(TOKEN_A, "apns")
    await registry.register(TOKEN_B, "apns", {"podcast": False})
    wordpress.posts["podcast.test"] = [make_post(2), make_post(1)]
    await poller.poll_once()

    assert sender.tokens("podcast") == [TOKEN_A]
    assert sent_ids(sender, "podcast") == [2]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_one_failing_source_aborts_the_whole_iteration(poller, registry, wordpress, sender, store):
    """Sources are fetched jointly: a single failure skips both and saves nothing"""
    await registry.register(TOKEN_A, "apns")
    wordpress.posts["podcast.test"] = [make_post(5)]
    wordpress.status["articles.test"] = 500

    with pytest.raises(FetchError):
        await poller.poll_once()

    assert sender.sent == []
    state = await store.load()
    assert state.sent.tyflopodcast == []

    assert await poller.run_iteration() is False

    # Retried on the next successful iteration
    wordpress.status["articles.test"] = 200
    assert await poller.run_iteration() is True
    assert sent_ids(sender, "podcast") == [5]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_items_without_numeric_id_are_skipped(poller, registry, wordpress, sender):
    await registry.register(TOKEN_A, "apns")
    wordpress.posts["podcast.test"] = [
        {"id": "12", "title": {"rendered": "string id"}},
        {"title": {"rendered": "no id"}},
        {"id": True},
        "junk",
        None,
        make_post(13),
    ]

    assert await poller.poll_once() == {"podcast": 1, "article": 0}
    assert sent_ids(sender, "podcast") == [13]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_history_is_bounded(poller, wordpress, store):
    """The dedup list keeps the newest HISTORY_LIMIT ids"""
    state = await store.load()
    state.sent.tyflopodcast = list(range(HISTORY_LIMIT, 0, -1))
    await store.save(state)

    wordpress.posts["podcast.test"] = [make_post(1000)]
    await poller.poll_once()

    state = await store.load()
    assert len(state.sent.tyflopodcast) == HISTORY_LIMIT
    assert state.sent.tyflopodcast[0] == 1000
    assert 1 not in state.sent.tyflopodcast
    assert 2 in state.sent.tyflopodcast


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fetch_requests_embed_projection(poller, wordpress):
    await poller.poll_once()

    assert len(wordpress.requests) == 2
    for request in wordpress.requests:
        assert request.url.params["context"] == "embed"
        assert request.url.params["per_page"] == "20"
        assert request.url.params["_fields"] == "id,date,link,title"
        assert request.headers["accept"] == "application/json"
    assert {f"{r.url.scheme}://{r.url.host}{r.url.path}" for r in wordpress.requests} == {PODCAST_URL, ARTICLE_URL}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fetch_latest_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(FetchError):
            await fetch_latest(client, PODCAST_URL, 5)


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("response", [
    httpx.Response(404, json=[]),
    httpx.Response(200, json={"not": "a list"}),
    httpx.Response(200, text="<html>"),
])
async def test_fetch_latest_bad_responses(response):
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response)) as client:
        with pytest.raises(FetchError):
            await fetch_latest(client, PODCAST_URL, 5)


@pytest.mark.unit
def test_build_payload_falls_back_to_default_title():
    source = ContentSource("tyflopodcast", "podcast", PODCAST_URL, "Nowy odcinek")

    payload = build_payload(source, make_post(42, title="   "))

    assert payload == {
        "kind": "podcast",
        "id": 42,
        "title": "Nowy odcinek",
        "url": "https://example.test/?p=42",
        "publishedAt": "2026-10-19T10:00:00",
    }
    assert build_payload(source, {"id": 1})["title"] == "Nowy odcinek"
    assert build_payload(source, {"id": 1, "title": "Plain"})["title"] == "Plain"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_article_payload_uses_article_defaults(poller, registry, wordpress, sender):
    await registry.register(TOKEN_A, "apns")
    wordpress.posts["articles.test"] = [make_post(8, title="")]

    await poller.poll_once()

    _, category, payload = sender.sent[0]
    assert category == "article"
    assert payload["kind"] == "article"
    assert payload["title"] == "Nowy artykuł"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_start_runs_first_iteration_and_stop_waits(poller, wordpress, store):
    """Starting polls immediately; stopping shuts the scheduler down"""
    wordpress.posts["podcast.test"] = [make_post(1)]

    poller.start()
    assert poller.running
    for _ in range(100):
        if store.path.exists():
            break
        await asyncio.sleep(0.02)
    await poller.stop()

    assert not poller.running
    state = await store.load()
    assert state.sent.tyflopodcast == [1]
