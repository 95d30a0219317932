"""Content sources - WordPress "latest posts" endpoints."""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from ..config import Settings
from ..exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentSource:
    """A polled WordPress site."""
    history_key: str  # key of the dedup list in state.sent
    category: str  # notification category
    url: str  # wp-json posts endpoint
    default_title: str  # used when a post has a blank title


def content_sources(config: Settings) -> List[ContentSource]:
    """The two polled sources, podcast first."""
    return [
        ContentSource(
            history_key="tyflopodcast",
            category="podcast",
            url=config.tyflopodcast_wp,
            default_title="Nowy odcinek",
        ),
        ContentSource(
            history_key="tyfloswiat",
            category="article",
            url=config.tyfloswiat_wp,
            default_title="Nowy artykuł",
        ),
    ]


async def fetch_latest(client: httpx.AsyncClient, url: str, per_page: int) -> list:
    """Fetch the newest ``per_page`` posts in the embed projection.

    Raises:
        FetchError: On transport errors, non-2xx responses or a non-list body
    """
    params = {
        "context": "embed",
        "per_page": str(per_page),
        "_fields": "id,date,link,title",
    }
    try:
        response = await client.get(url, params=params, headers={"Accept": "application/json"})
    except httpx.HTTPError as e:
        raise FetchError(f"WP fetch failed: {url}: {e}") from e

    if not response.is_success:
        raise FetchError(f"WP fetch failed: {response.status_code}")

    try:
        posts = response.json()
    except ValueError as e:
        raise FetchError(f"WP fetch returned invalid JSON: {url}") from e

    if not isinstance(posts, list):
        raise FetchError(f"WP fetch returned {type(posts).__name__}, expected a list")

    logger.debug(f"Fetched {len(posts)} posts from {url}")
    return posts


def post_id(post) -> Optional[int]:
    """Numeric id of a post, or None if the item has none."""
    if not isinstance(post, dict):
        return None
    value = post.get("id")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def build_payload(source: ContentSource, post: dict) -> dict:
    """Notification body for a newly discovered post."""
    title = post.get("title")
    if isinstance(title, dict):
        title = title.get("rendered")
    if not isinstance(title, str) or not title.strip():
        title = source.default_title

    return {
        "kind": source.category,
        "id": post_id(post),
        "title": title,
        "url": post.get("link"),
        "publishedAt": post.get("date"),
    }
