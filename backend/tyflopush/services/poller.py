"""Content poller - discovers new posts and notifies subscribers once per post.

Design:
- One APScheduler interval job, never more than one iteration at a time
- Every iteration reloads the state file, so it sees registrations made since
  the previous one
- Both sources are fetched concurrently as a single unit: if either fetch
  fails, the iteration is abandoned and nothing is saved, so no dedup progress
  is recorded for either source until the next successful iteration
- A post is new iff its id is not in the source's dedup history; new posts are
  dispatched in the order the source lists them and then recorded
"""
import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import Settings
from ..models.state import PersistedState
from ..storage import StateStore
from .content import ContentSource, build_payload, content_sources, fetch_latest, post_id
from .notifier import NotificationService

logger = logging.getLogger(__name__)


class PollerService:
    """Periodically polls the content sources and fans out new posts."""

    def __init__(
        self,
        config: Settings,
        store: StateStore,
        notifier: NotificationService,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.sources: List[ContentSource] = content_sources(config)
        self.interval_seconds = config.poll_interval_seconds
        self.per_page = config.poll_per_page
        self.timeout = config.fetch_timeout_seconds
        self._transport = transport
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._iteration_lock = asyncio.Lock()
        self._iteration: Optional[asyncio.Future] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start polling; the first iteration runs immediately."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.run_iteration,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id="poll_content",
            replace_existing=True,
            max_instances=1,
            next_run_time=datetime.now(timezone.utc),
        )
        self.scheduler.start()
        self._running = True
        logger.info(
            f"Poller started (interval={self.interval_seconds}s, per_page={self.per_page})"
        )

    async def stop(self):
        """Stop polling, letting an in-flight iteration finish first."""
        if not self.scheduler or not self._running:
            return

        # The executor cancels running jobs; the iteration itself is shielded
        self.scheduler.shutdown(wait=False)
        self._running = False
        if self._iteration and not self._iteration.done():
            logger.info("Waiting for the in-flight poll iteration")
            with contextlib.suppress(Exception):
                await self._iteration
        logger.info("Poller stopped")

    async def run_iteration(self) -> bool:
        """Run one poll iteration, logging instead of raising.

        Returns:
            True if the iteration completed and its state was saved
        """
        self._iteration = asyncio.ensure_future(self.poll_once())
        try:
            new_counts = await asyncio.shield(self._iteration)
        except Exception as e:
            logger.error(f"[poll] error: {e}")
            return False

        if any(new_counts.values()):
            logger.info(f"[poll] new items: {new_counts}")
        return True

    async def poll_once(self) -> Dict[str, int]:
        """Fetch both sources, notify about unseen posts and save once.

        Returns:
            Number of newly notified posts per category

        Raises:
            FetchError: If either source fails; nothing is saved in that case
        """
        async with self._iteration_lock:
            state = await self.store.load()

            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                results = await asyncio.gather(
                    *[fetch_latest(client, source.url, self.per_page) for source in self.sources],
                    return_exceptions=True,
                )

            errors = []
            for source, result in zip(self.sources, results):
                if isinstance(result, Exception):
                    logger.warning(f"[poll] {source.history_key} fetch failed: {result}")
                    errors.append(result)
            if errors:
                raise errors[0]

            new_counts = {}
            for source, posts in zip(self.sources, results):
                new_counts[source.category] = await self._process_source(state, source, posts)

            await self.store.save(state)
            return new_counts

    async def _process_source(
        self,
        state: PersistedState,
        source: ContentSource,
        posts: list,
    ) -> int:
        """Dispatch every unseen post of one source and record its id."""
        new_posts = 0
        for post in posts:
            pid = post_id(post)
            if pid is None:
                continue
            if state.sent.contains(source.history_key, pid):
                continue

            await self.notifier.dispatch(state, source.category, build_payload(source, post))
            state.sent.push(source.history_key, pid)
            new_posts += 1

        return new_posts
